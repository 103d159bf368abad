"""Pytest configuration and shared fixtures."""

import pytest
import pytest_asyncio
from factories import ScriptedRandom, make_recipe
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool

from wellnest.database import Base, get_db, get_session_factory
from wellnest.main import app
from wellnest.plan.lottery import Lottery, make_random_source
from wellnest.routers.dependencies import get_lottery

# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (require external services)"
    )


# =============================================================================
# Random Source & Recipe Fixtures
# =============================================================================


@pytest.fixture
def scripted_random():
    """Random source whose coin flips never fall below 0.99."""
    return ScriptedRandom()


@pytest.fixture
def pancake_recipes():
    """Two breakfast recipes sharing flour."""
    return [
        make_recipe("A", ingredients=[("flour", 2, "cup")], name="Pancakes"),
        make_recipe("B", ingredients=[("flour", 1, "cup"), ("milk", 1, "cup")], name="Waffles"),
    ]


@pytest.fixture
def full_week_recipes():
    """At least one recipe for every planned meal type, plus an unplanned dessert."""
    return [
        make_recipe("oats", "breakfast", [("oats", 80, "g"), ("milk", 200, "ml")]),
        make_recipe("eggs", "breakfast", [("egg", 2, "")]),
        make_recipe("salad", "lunch", [("lettuce", 1, "head"), ("olive oil", 1, "tbsp")]),
        make_recipe("pasta", "dinner", [("pasta", 100, "g"), ("Olive Oil", 2, "TBSP")]),
        make_recipe("curry", "dinner", [("rice", 75, "g"), ("chickpeas", 1, "can")]),
        make_recipe("nuts", "snack", [("almonds", 30, "g")]),
        make_recipe("cake", "dessert", [("flour", 200, "g")]),
    ]


# =============================================================================
# SQLite Test Database Fixtures
# =============================================================================


@pytest.fixture
def database_path(tmp_path):
    """File-backed SQLite database so several connections see the same data."""
    return tmp_path / "wellnest.db"


@pytest.fixture
def sync_engine(database_path):
    """Synchronous engine used to create the schema and seed rows."""
    engine = create_engine(f"sqlite:///{database_path}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def seed(sync_engine):
    """Insert ORM rows; see factories.recipe_row and factories.routine_row."""

    def _seed(*rows) -> None:
        with Session(sync_engine) as session:
            session.add_all(rows)
            session.commit()

    return _seed


@pytest_asyncio.fixture
async def async_engine(database_path, sync_engine):
    """Async engine over the same SQLite file; no pooling across event loops."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{database_path}", poolclass=NullPool)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine):
    """Session factory configured like the application's."""
    return async_sessionmaker(async_engine, expire_on_commit=False)


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def client(database_path, sync_engine):
    """TestClient bound to the SQLite test database with a seeded lottery."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{database_path}", poolclass=NullPool)
    factory = async_sessionmaker(engine, expire_on_commit=False)

    async def override_get_db():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_session_factory] = lambda: factory
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_lottery] = lambda: Lottery(make_random_source(1234))

    yield TestClient(app)

    app.dependency_overrides.clear()

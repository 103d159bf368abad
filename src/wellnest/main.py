"""FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wellnest import __version__
from wellnest.config import settings
from wellnest.database import Base, async_engine
from wellnest.logging_config import configure_logging, get_logger
from wellnest.routers import lottery_router, meal_plans_router

# Configure logging on module load
configure_logging(log_level=settings.log_level)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Starting Wellnest API")

    # Create database tables if they don't exist
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialized")

    yield

    logger.info("Shutting down Wellnest API")
    await async_engine.dispose()


app = FastAPI(
    title="Wellnest API",
    description="Household meal planning, grocery lists and routine lottery",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(meal_plans_router)
app.include_router(lottery_router)


@app.get("/health")
async def health_check() -> dict:
    """Basic health check endpoint."""
    return {"status": "ok", "service": "wellnest-api"}


@app.get("/")
async def root() -> dict:
    """Root endpoint with API information."""
    return {
        "name": "Wellnest API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }

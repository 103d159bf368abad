"""Uniform random draws without replacement ("surprise me")."""

import random
from collections.abc import Callable, Hashable, Iterable, Sequence
from dataclasses import dataclass, field
from operator import attrgetter
from typing import Generic, Protocol, TypeVar

from wellnest.exceptions import InvalidInputError
from wellnest.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

STATUS_OK = "ok"
STATUS_NO_CANDIDATES = "no_candidates"


class RandomSource(Protocol):
    """The subset of ``random.Random`` the planner relies on."""

    def random(self) -> float: ...

    def sample(self, population: Sequence[T], k: int) -> list[T]: ...


def make_random_source(seed: int | None = None) -> RandomSource:
    """Create a private generator; never the module-level one."""
    return random.Random(seed)


@dataclass
class LotteryResult(Generic[T]):
    """Outcome of one draw."""

    items: list[T] = field(default_factory=list)
    total_available: int = 0
    status: str = STATUS_OK

    @property
    def message(self) -> str:
        if self.status == STATUS_NO_CANDIDATES:
            return "No candidates found matching your criteria"
        return f"Selected {len(self.items)} of {self.total_available} candidate(s)"


class Lottery:
    """
    Draws up to ``count`` distinct candidates uniformly at random.

    Candidates are identified by ``key`` (their ``id`` attribute by default).
    Excluded ids are removed and duplicate ids collapsed before drawing.
    """

    def __init__(
        self,
        rng: RandomSource | None = None,
        key: Callable[[T], Hashable] = attrgetter("id"),
    ):
        self.rng = rng if rng is not None else make_random_source()
        self.key = key

    def eligible(self, candidates: Iterable[T], exclude_ids: Iterable[Hashable] = ()) -> list[T]:
        """Candidates left after exclusions, one per id, in input order."""
        excluded = set(exclude_ids)
        seen: set[Hashable] = set()
        pool: list[T] = []
        for candidate in candidates:
            candidate_id = self.key(candidate)
            if candidate_id in excluded or candidate_id in seen:
                continue
            seen.add(candidate_id)
            pool.append(candidate)
        return pool

    def draw(
        self,
        candidates: Iterable[T],
        count: int = 1,
        exclude_ids: Iterable[Hashable] = (),
    ) -> LotteryResult[T]:
        """
        Draw without replacement.

        Args:
            candidates: Items to draw from.
            count: Maximum number of items to return (at least 1).
            exclude_ids: Ids that must not be drawn.

        Returns:
            LotteryResult with at most ``count`` items; fewer when the pool is
            smaller, and an empty ``no_candidates`` result when nothing is eligible.
        """
        if count < 1:
            raise InvalidInputError(f"count must be at least 1, got {count}")

        pool = self.eligible(candidates, exclude_ids)
        if not pool:
            logger.debug("Lottery draw with no eligible candidates")
            return LotteryResult(items=[], total_available=0, status=STATUS_NO_CANDIDATES)

        picked = self.rng.sample(pool, k=min(count, len(pool)))
        return LotteryResult(items=list(picked), total_available=len(pool))

    def flip(self, probability: float) -> bool:
        """Return True with the given probability (independent coin flip)."""
        return self.rng.random() < probability

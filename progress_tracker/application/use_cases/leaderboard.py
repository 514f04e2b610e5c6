import uuid

import structlog

from ..ports import ICache, IProgressStore
from ...domain.entities import LeaderboardEntry
from ...infrastructure.metrics import cache_hits_total, cache_misses_total

logger = structlog.get_logger()

LEADERBOARD_CACHE_PATTERN = "leaderboard:*"
# вне паттерна: переживает инвалидацию и меняется при каждой
LEADERBOARD_GENERATION_KEY = "leaderboard_generation"


def invalidate_leaderboard(cache: ICache) -> None:
    cache.set(LEADERBOARD_GENERATION_KEY, uuid.uuid4().hex)
    cache.delete_pattern(LEADERBOARD_CACHE_PATTERN)


def rank_page(rows: list[tuple[str, int]], offset: int) -> list[LeaderboardEntry]:
    """Assign sequential ranks to an already ordered page.

    Equal scores still get distinct ranks; ``user_id`` ascending decides who
    comes first, so a page is always a contiguous slice of one total order.
    """
    return [
        LeaderboardEntry(user_id=user_id, total_score=score, rank=offset + position + 1)
        for position, (user_id, score) in enumerate(rows)
    ]


class TopN:
    """Ranked leaderboard pages, cached until the next score change.

    A page computed while an invalidation was in flight is dropped again
    instead of living in the cache for a full TTL.
    """

    def __init__(self, store: IProgressStore, cache: ICache):
        self.store = store
        self.cache = cache

    def _cached(self, cache_key: str, compute):
        cached = self.cache.get(cache_key)
        if cached is not None:
            cache_hits_total.inc()
            return cached

        cache_misses_total.inc()
        generation = self.cache.get(LEADERBOARD_GENERATION_KEY)
        value = compute()
        self.cache.set(cache_key, value)
        if self.cache.get(LEADERBOARD_GENERATION_KEY) != generation:
            self.cache.delete(cache_key)
            logger.debug("leaderboard_page_discarded", key=cache_key)
        return value

    def execute(self, limit: int, offset: int) -> list[LeaderboardEntry]:
        def compute():
            return [
                {"user_id": e.user_id, "total_score": e.total_score, "rank": e.rank}
                for e in rank_page(self.store.top_scores(limit, offset), offset)
            ]

        page = self._cached(f"leaderboard:{limit}:{offset}", compute)
        return [LeaderboardEntry(**entry) for entry in page]

    def total(self) -> int:
        return self._cached("leaderboard:total", self.store.count_users)


class AwardPoints:
    def __init__(self, store: IProgressStore, cache: ICache):
        self.store = store
        self.cache = cache

    def execute(self, user_id: str, points: int) -> int:
        if points <= 0:
            raise ValueError("points must be positive")
        self.store.ensure_user(user_id)
        total = self.store.add_points(user_id, points)
        invalidate_leaderboard(self.cache)
        logger.info("points_awarded", user_id=user_id, points=points, total_score=total)
        return total


class ResetScore:
    def __init__(self, store: IProgressStore, cache: ICache):
        self.store = store
        self.cache = cache

    def execute(self, user_id: str) -> None:
        self.store.reset_score(user_id)
        invalidate_leaderboard(self.cache)
        logger.warning("score_reset", user_id=user_id)

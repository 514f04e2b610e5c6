import structlog

from ..ports import ICache, IFocusStore, IProgressStore
from .leaderboard import invalidate_leaderboard
from ...domain.focus import reconcile
from ...infrastructure.metrics import focus_flush_total

logger = structlog.get_logger()


class FlushFocus:
    """Server side of focus reconciliation.

    The store keeps the larger of its value and the submitted one, so
    overlapping sessions for one user never pull the counter back.
    """

    def __init__(self, store: IProgressStore, cache: ICache):
        self.store = store
        self.cache = cache

    def execute(self, user_id: str, accumulated_seconds: int) -> int:
        if accumulated_seconds < 0:
            raise ValueError("accumulated_seconds must not be negative")
        if self.store.ensure_user(user_id):
            invalidate_leaderboard(self.cache)
        stored, written = self.store.raise_focus(user_id, accumulated_seconds)
        outcome = "written" if written else "kept_stored"
        focus_flush_total.labels(outcome=outcome).inc()
        logger.debug("focus_flushed", user_id=user_id, submitted=accumulated_seconds, stored=stored)
        return reconcile(accumulated_seconds, stored)


class ReadFocus:
    def __init__(self, store: IProgressStore):
        self.store = store

    def execute(self, user_id: str) -> int:
        return self.store.get_focus(user_id)


class RepositoryFocusStore(IFocusStore):
    """Focus store for sessions running next to the database."""

    def __init__(self, store: IProgressStore, cache: ICache, user_id: str):
        self.user_id = user_id
        self._read = ReadFocus(store)
        self._flush = FlushFocus(store, cache)

    def read_focus(self) -> int:
        return self._read.execute(self.user_id)

    def flush_focus(self, accumulated_seconds: int) -> int:
        return self._flush.execute(self.user_id, accumulated_seconds)

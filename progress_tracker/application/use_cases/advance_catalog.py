import structlog

from ..ports import ICache, ICatalogRepository, IProgressStore
from .leaderboard import invalidate_leaderboard
from ...domain.entities import AdvanceResult
from ...domain.errors import ConflictAbandoned, Exhausted, NotFound
from ...infrastructure.metrics import catalog_advance_total

logger = structlog.get_logger()


class AdvanceCatalog:
    """Serve the next item of a catalog and move the user's cursor past it.

    The counter read at the start is the guard for the write. If another
    request moved the counter in between, the write is abandoned rather than
    retried: the caller gets ``advanced=False`` and should re-read.
    """

    def __init__(self, store: IProgressStore, catalogs: ICatalogRepository, cache: ICache):
        self.store = store
        self.catalogs = catalogs
        self.cache = cache

    def execute(self, user_id: str, catalog_name: str) -> AdvanceResult:
        if self.catalogs.get(catalog_name) is None:
            raise NotFound(f"catalog {catalog_name!r} not found")
        if self.store.ensure_user(user_id):
            invalidate_leaderboard(self.cache)

        guard = self.store.get_counter(user_id, catalog_name)
        next_index = guard + 1
        item = self.catalogs.get_item(catalog_name, next_index)
        if item is None:
            catalog_advance_total.labels(catalog=catalog_name, outcome="exhausted").inc()
            logger.info("catalog_exhausted", user_id=user_id, catalog=catalog_name, completed=guard)
            raise Exhausted(catalog_name, guard)

        try:
            self.store.compare_and_set_counter(user_id, catalog_name, expected=guard, value=next_index)
        except ConflictAbandoned:
            catalog_advance_total.labels(catalog=catalog_name, outcome="conflict").inc()
            logger.info("catalog_advance_abandoned", user_id=user_id, catalog=catalog_name, guard=guard)
            return AdvanceResult(item_index=next_index, item_key=item.key, advanced=False)

        catalog_advance_total.labels(catalog=catalog_name, outcome="advanced").inc()
        logger.info("catalog_advanced", user_id=user_id, catalog=catalog_name, item_index=next_index)
        return AdvanceResult(item_index=next_index, item_key=item.key, advanced=True)


class SetCatalogCursor:
    """Administrative repair: put a user's cursor at an arbitrary index.

    Skips the guard entirely, so callers must hold the repair capability.
    """

    def __init__(self, store: IProgressStore, catalogs: ICatalogRepository):
        self.store = store
        self.catalogs = catalogs

    def execute(self, user_id: str, catalog_name: str, item_index: int) -> int:
        catalog = self.catalogs.get(catalog_name)
        if catalog is None:
            raise NotFound(f"catalog {catalog_name!r} not found")
        if item_index < 0 or item_index > catalog.size:
            raise NotFound(f"catalog {catalog_name!r} has no position {item_index}")
        self.store.set_counter(user_id, catalog_name, item_index)
        logger.warning("catalog_cursor_forced", user_id=user_id, catalog=catalog_name, item_index=item_index)
        return item_index

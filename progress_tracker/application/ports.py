from datetime import date

from ..domain.entities import Catalog, CatalogItem, UserProgress


class IProgressStore:
    """Row-per-user progress table with atomic single-row writes.

    Conditional writes raise ``ConflictAbandoned`` when their guard no longer
    matches; connectivity failures raise ``StoreUnavailable``.
    """

    def ensure_user(self, user_id: str) -> bool: ...
    def get(self, user_id: str) -> UserProgress | None: ...

    def get_counter(self, user_id: str, catalog_name: str) -> int: ...
    def compare_and_set_counter(self, user_id: str, catalog_name: str, expected: int, value: int) -> None: ...
    def set_counter(self, user_id: str, catalog_name: str, value: int) -> None: ...

    def compare_and_set_streak(
        self, user_id: str, expected_last_date: date | None, last_date: date, run_length: int
    ) -> None: ...

    def get_focus(self, user_id: str) -> int: ...
    def raise_focus(self, user_id: str, seconds: int) -> tuple[int, bool]: ...

    def add_points(self, user_id: str, points: int) -> int: ...
    def reset_score(self, user_id: str) -> None: ...

    def top_scores(self, limit: int, offset: int) -> list[tuple[str, int]]: ...
    def count_users(self) -> int: ...


class ICatalogRepository:
    def get(self, name: str) -> Catalog | None: ...
    def list_all(self) -> list[Catalog]: ...
    def create(self, name: str, title: str) -> Catalog: ...
    def get_item(self, name: str, item_index: int) -> CatalogItem | None: ...
    def append_item(self, name: str, key: str, content: str | None = None) -> CatalogItem: ...


class IFocusStore:
    """What a focus session needs from storage, local or remote."""

    def read_focus(self) -> int: ...
    def flush_focus(self, accumulated_seconds: int) -> int: ...


class ICache:
    def get(self, key: str): ...
    def set(self, key: str, value, ttl: int = None) -> bool: ...
    def delete(self, key: str) -> bool: ...
    def delete_pattern(self, pattern: str) -> int: ...
    def clear(self) -> int: ...

from dataclasses import dataclass, field
from datetime import date


@dataclass(frozen=True)
class Streak:
    last_active_date: date | None = None
    run_length: int = 0


@dataclass(frozen=True)
class UserProgress:
    user_id: str
    streak: Streak = Streak()
    total_score: int = 0
    focus_seconds_today: int = 0
    catalog_counters: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class Catalog:
    name: str
    title: str
    size: int = 0


@dataclass(frozen=True)
class CatalogItem:
    catalog_name: str
    item_index: int
    key: str
    content: str | None = None


@dataclass(frozen=True)
class AdvanceResult:
    item_index: int
    item_key: str
    advanced: bool


@dataclass(frozen=True)
class LeaderboardEntry:
    user_id: str
    total_score: int
    rank: int

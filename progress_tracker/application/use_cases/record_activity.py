from dataclasses import dataclass
from datetime import date

import structlog

from ..ports import ICache, IProgressStore
from .leaderboard import invalidate_leaderboard
from ...domain import streak as streak_rules
from ...domain.entities import Streak
from ...domain.errors import ConflictAbandoned
from ...infrastructure.metrics import streak_transitions_total

logger = structlog.get_logger()


@dataclass(frozen=True)
class ActivityRecorded:
    run_length: int
    last_active_date: date
    action: streak_rules.StreakAction
    secured: bool = True


class RecordActivity:
    def __init__(self, store: IProgressStore, cache: ICache):
        self.store = store
        self.cache = cache

    def _current(self, user_id: str) -> Streak:
        return self.store.get(user_id).streak

    def execute(self, user_id: str, today: date) -> ActivityRecorded:
        if self.store.ensure_user(user_id):
            invalidate_leaderboard(self.cache)

        current = self._current(user_id)
        updated, action = streak_rules.advance(current, today)
        if action is not streak_rules.StreakAction.NO_CHANGE:
            try:
                self.store.compare_and_set_streak(
                    user_id, current.last_active_date, updated.last_active_date, updated.run_length
                )
            except ConflictAbandoned:
                # параллельный запрос уже записал активность: перечитываем один раз
                current = self._current(user_id)
                updated, action = streak_rules.advance(current, today)
                if action is not streak_rules.StreakAction.NO_CHANGE:
                    raise
        streak_transitions_total.labels(action=action.value).inc()
        logger.info("activity_recorded", user_id=user_id, today=today.isoformat(),
                    action=action.value, run_length=updated.run_length)
        return ActivityRecorded(
            run_length=updated.run_length,
            last_active_date=updated.last_active_date,
            action=action,
        )


class CurrentStreak:
    """Read-only view; never rewrites a stale row."""

    def __init__(self, store: IProgressStore):
        self.store = store

    def execute(self, user_id: str, today: date) -> tuple[streak_rules.StreakDisplay, Streak]:
        progress = self.store.get(user_id)
        current = progress.streak if progress else Streak()
        return streak_rules.display(current, today), current

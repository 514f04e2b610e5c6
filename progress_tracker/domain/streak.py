"""Daily streak rules.

A streak is stored as ``(last_active_date, run_length)`` and is never swept in
the background. Stale rows are corrected the next time the user records an
activity; until then readers hide them. Both paths go through ``classify`` so
what is displayed and what is persisted cannot disagree.
"""
from dataclasses import dataclass
from datetime import date
from enum import Enum

from .entities import Streak


class StreakState(str, Enum):
    COLD = "cold"
    ACTIVE_TODAY = "active_today"
    AT_RISK = "at_risk"  # active yesterday, nothing yet today
    LAPSED = "lapsed"


class StreakAction(str, Enum):
    STARTED = "started"
    INCREMENTED = "incremented"
    RESET = "reset"
    NO_CHANGE = "no_change"


@dataclass(frozen=True)
class StreakDisplay:
    display_value: int
    at_risk: bool


def classify(last_active_date: date | None, today: date) -> StreakState:
    if last_active_date is None:
        return StreakState.COLD
    # a date ahead of `today` counts as already recorded
    days = (today - last_active_date).days
    if days <= 0:
        return StreakState.ACTIVE_TODAY
    if days == 1:
        return StreakState.AT_RISK
    return StreakState.LAPSED


def advance(streak: Streak, today: date) -> tuple[Streak, StreakAction]:
    """Return the streak to persist after an activity on ``today``."""
    state = classify(streak.last_active_date, today)
    if state is StreakState.ACTIVE_TODAY:
        return streak, StreakAction.NO_CHANGE
    if state is StreakState.AT_RISK:
        return Streak(today, streak.run_length + 1), StreakAction.INCREMENTED
    if state is StreakState.COLD:
        return Streak(today, 1), StreakAction.STARTED
    return Streak(today, 1), StreakAction.RESET


def display(streak: Streak, today: date) -> StreakDisplay:
    state = classify(streak.last_active_date, today)
    if state is StreakState.ACTIVE_TODAY:
        return StreakDisplay(streak.run_length, at_risk=False)
    if state is StreakState.AT_RISK:
        return StreakDisplay(streak.run_length, at_risk=True)
    return StreakDisplay(0, at_risk=False)

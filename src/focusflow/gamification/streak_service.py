"""Daily streak continuity at local-midnight granularity."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from focusflow.clock import days_between

logger = logging.getLogger(__name__)

FREEZE_GAP_DAYS = 2


@dataclass(frozen=True)
class StreakUpdate:
    """Outcome of recording a completed session against the streak."""

    new_streak: int
    streak_delta: int
    should_freeze: bool
    freeze_used: bool


def update_streak(
    last_session_date: datetime | None,
    now: datetime,
    streak: int = 0,
    freeze_used: bool = False,
) -> StreakUpdate:
    """Apply one completed session on ``now`` to a streak last extended on ``last_session_date``.

    - no previous session: the streak starts at 1
    - same day: unchanged
    - next day: +1
    - one missed day with the freeze unused: the freeze is consumed and the
      streak continues (+1, today counts)
    - anything longer, or a second missed day after the freeze: reset to 1
      and the freeze becomes available again
    """
    if last_session_date is None:
        return StreakUpdate(new_streak=1, streak_delta=1 - streak, should_freeze=False, freeze_used=freeze_used)

    days_diff = days_between(last_session_date, now)

    if days_diff <= 0:
        return StreakUpdate(new_streak=streak, streak_delta=0, should_freeze=False, freeze_used=freeze_used)

    if days_diff == 1:
        return StreakUpdate(new_streak=streak + 1, streak_delta=1, should_freeze=False, freeze_used=freeze_used)

    if days_diff == FREEZE_GAP_DAYS and not freeze_used:
        logger.info("Streak freeze consumed after a %d-day gap (streak %d)", days_diff, streak)
        return StreakUpdate(new_streak=streak + 1, streak_delta=1, should_freeze=True, freeze_used=True)

    logger.info("Streak broken after a %d-day gap (was %d)", days_diff, streak)
    return StreakUpdate(new_streak=1, streak_delta=1 - streak, should_freeze=False, freeze_used=False)


def is_streak_alive(
    last_session_date: datetime | None,
    now: datetime,
    freeze_used: bool = False,
) -> bool:
    """Whether completing a session on ``now`` would extend rather than reset the streak."""
    if last_session_date is None:
        return False
    days_diff = days_between(last_session_date, now)
    if days_diff <= 1:
        return True
    return days_diff == FREEZE_GAP_DAYS and not freeze_used

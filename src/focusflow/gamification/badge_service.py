"""Badge unlock evaluation with duplicate prevention."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from datetime import datetime, tzinfo

from focusflow.config import Settings
from focusflow.gamification.badge_definitions import BADGES_BY_TYPE, get_badge_definition
from focusflow.gamification.schemas import (
    Badge,
    BadgeProgress,
    BadgeProgressPercentage,
    ChallengeResult,
    HeartState,
    ProgressRecord,
    SkillProgress,
)
from focusflow.gamification.trigger_engine import BadgeStats, evaluate_rule, rule_target

logger = logging.getLogger(__name__)


def initialize_badge_progress(user_id: str) -> BadgeProgress:
    return BadgeProgress(user_id=user_id)


def _build_badge(badge_type: str, now: datetime) -> Badge | None:
    definition = get_badge_definition(badge_type)
    if definition is None:
        logger.warning("Badge not found: %s", badge_type)
        return None
    return Badge(
        type=badge_type,
        unlocked_at=now,
        name=definition.name,
        description=definition.description,
        icon=definition.icon,
    )


def check_badge_unlock(
    badge_type: str,
    badge_progress: BadgeProgress,
    progress: ProgressRecord,
    skills: SkillProgress,
    results: Sequence[ChallengeResult],
    heart_state: HeartState | None = None,
    *,
    now: datetime,
    stats: BadgeStats | None = None,
    settings: Settings | None = None,
) -> Badge | None:
    """Return a new Badge if ``badge_type`` now qualifies, None otherwise.

    Already-unlocked types always return None, so calling this repeatedly
    never produces a duplicate. Pass precomputed ``stats`` when checking many
    types against the same history.
    """
    if badge_progress.has(badge_type):
        return None

    if stats is None:
        stats = BadgeStats.compute(progress, skills, results, heart_state, tz=now.tzinfo, settings=settings)

    if not evaluate_rule(badge_type, stats):
        return None
    return _build_badge(badge_type, now)


def check_all_badges(
    badge_progress: BadgeProgress,
    progress: ProgressRecord,
    skills: SkillProgress,
    results: Sequence[ChallengeResult],
    heart_state: HeartState | None = None,
    *,
    now: datetime,
    settings: Settings | None = None,
) -> list[Badge]:
    """Every badge that qualifies now and is not yet unlocked, in catalog order.

    Aggregates are computed once and shared by all rules. The caller appends
    the result to ``badge_progress`` (see ``unlock_badges``).
    """
    stats = BadgeStats.compute(progress, skills, results, heart_state, tz=now.tzinfo, settings=settings)
    unlocked: list[Badge] = []

    for badge_type in BADGES_BY_TYPE:
        badge = check_badge_unlock(
            badge_type, badge_progress, progress, skills, results, heart_state,
            now=now, stats=stats,
        )
        if badge is not None:
            unlocked.append(badge)

    if unlocked:
        logger.info(
            "User %s unlocked %d badges: %s",
            badge_progress.user_id, len(unlocked), ", ".join(b.type for b in unlocked),
        )
    return unlocked


def unlock_badges(badge_progress: BadgeProgress, badges: Sequence[Badge]) -> BadgeProgress:
    """Append newly unlocked badges, skipping any type already present."""
    seen = {b.type for b in badge_progress.unlocked_badges}
    merged = list(badge_progress.unlocked_badges)
    for badge in badges:
        if badge.type in seen:
            continue
        seen.add(badge.type)
        merged.append(badge)
    return badge_progress.model_copy(update={"unlocked_badges": merged})


def get_badge_progress_percentage(
    badge_type: str,
    badge_progress: BadgeProgress,
    progress: ProgressRecord,
    skills: SkillProgress,
    results: Sequence[ChallengeResult],
    heart_state: HeartState | None = None,
    *,
    tz: tzinfo | None = None,
    stats: BadgeStats | None = None,
    settings: Settings | None = None,
) -> BadgeProgressPercentage:
    """(current, target, percentage) for a progress bar.

    Unlocked badges read 1/1 at 100%. Composite badges without a single
    counter read 0/1 at 0% until unlocked.
    """
    if badge_progress.has(badge_type):
        return BadgeProgressPercentage(current=1, target=1, percentage=100)

    if stats is None:
        stats = BadgeStats.compute(progress, skills, results, heart_state, tz=tz, settings=settings)

    target = rule_target(badge_type, stats)
    if target is None:
        return BadgeProgressPercentage(current=0, target=1, percentage=0)

    current, goal = target
    percentage = min(100, math.floor(current / goal * 100 + 0.5))
    return BadgeProgressPercentage(current=current, target=goal, percentage=percentage)

"""XP arithmetic: streak multiplier, challenge XP, level-up and skill growth."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from focusflow.config import Settings, get_settings

logger = logging.getLogger(__name__)

SKILL_CAP = 100.0
SKILL_POINTS_PER_PERFECT = 5.0


@dataclass(frozen=True)
class LevelUpResult:
    new_level: int
    remaining_xp: int

    def leveled_up_from(self, old_level: int) -> bool:
        return self.new_level > old_level


def get_streak_multiplier(streak: int, settings: Settings | None = None) -> float:
    """1.0 below the threshold, then +step for every streak day from the threshold on."""
    settings = settings or get_settings()
    threshold = settings.streak_multiplier_threshold
    if streak < threshold:
        return 1.0
    return 1 + (streak - threshold + 1) * settings.streak_multiplier_step


def calculate_xp(base_xp: int, is_perfect: bool, streak: int, settings: Settings | None = None) -> int:
    """XP for one award: base plus perfect bonus, scaled by the streak multiplier, truncated."""
    settings = settings or get_settings()
    xp = base_xp
    if is_perfect:
        xp += settings.perfect_focus_bonus
    # strip float noise before truncating
    return math.floor(round(xp * get_streak_multiplier(streak, settings), 9))


def check_level_up(current_xp: int, current_level: int, settings: Settings | None = None) -> LevelUpResult:
    """Convert banked XP into levels.

    Stops at the level cap; XP beyond the cap stays in ``remaining_xp`` and is
    never converted.
    """
    settings = settings or get_settings()
    level = current_level
    xp = current_xp

    while xp >= settings.xp_per_level and level < settings.max_level:
        xp -= settings.xp_per_level
        level += 1

    if level > current_level:
        logger.debug("Level up %d -> %d (%d xp left)", current_level, level, xp)
    return LevelUpResult(new_level=level, remaining_xp=xp)


def calculate_skill_progress(score: float, current_progress: float) -> float:
    """Skill after one result: up to 5 points for a perfect score, capped at 100."""
    increment = score / 100 * SKILL_POINTS_PER_PERFECT
    return min(SKILL_CAP, current_progress + increment)

"""Level milestones, level info and the per-level difficulty curve.

Milestone names and rewards are shown on the level-up screen; keep them in
step with the app's copy.
"""

from __future__ import annotations

from focusflow.config import Settings, get_settings
from focusflow.gamification.schemas import ProgressRecord

LEVEL_MILESTONES: list[dict] = [
    {"level": 1, "name": "First Steps", "description": "You completed your first focus training!", "emoji": "\U0001f331", "reward": "Basic avatar unlocked"},
    {"level": 2, "name": "Getting Started", "description": "You're building good habits!", "emoji": "\U0001f680", "reward": "New theme unlocked"},
    {"level": 3, "name": "Foundation Complete", "description": "You've mastered the basics!", "emoji": "\U0001f3d7️", "reward": "Focus badge earned"},
    {"level": 4, "name": "Rising Star", "description": "Your attention is getting sharper!", "emoji": "⭐", "reward": "Star avatar frame"},
    {"level": 5, "name": "Halfway Hero", "description": "You're halfway to mastery!", "emoji": "\U0001f3af", "reward": "Precision badge earned"},
    {"level": 6, "name": "Advanced Training", "description": "You're entering advanced territory!", "emoji": "\U0001f4aa", "reward": "Strength avatar pose"},
    {"level": 7, "name": "Focus Warrior", "description": "Your focus is battle-tested!", "emoji": "⚔️", "reward": "Warrior badge earned"},
    {"level": 8, "name": "Elite Focus", "description": "Only the dedicated reach this level!", "emoji": "\U0001f3c6", "reward": "Elite avatar effects"},
    {"level": 9, "name": "Near Mastery", "description": "One step away from ultimate focus!", "emoji": "\U0001f525", "reward": "Fire badge earned"},
    {"level": 10, "name": "Focus Master", "description": "You've achieved complete mastery!", "emoji": "\U0001f451", "reward": "Crown avatar & all themes"},
]

_MILESTONES_BY_LEVEL: dict[int, dict] = {m["level"]: m for m in LEVEL_MILESTONES}

# (max level, difficulty label, stage label)
DIFFICULTY_BANDS: list[tuple[int, str, str]] = [
    (2, "Very Easy", "Foundation"),
    (4, "Easy", "Foundation"),
    (6, "Medium", "Building"),
    (8, "Hard", "Advancing"),
]
TOP_BAND = ("Expert", "Mastery")


def get_level_milestone(level: int) -> dict | None:
    return _MILESTONES_BY_LEVEL.get(level)


def compute_level_info(progress: ProgressRecord, settings: Settings | None = None) -> dict:
    """Level summary for display: progress into the current level and what comes next.

    At the level cap ``xp_for_level`` is 1 to keep progress bars from dividing
    by zero, and ``next_level`` equals ``level``.
    """
    settings = settings or get_settings()
    level = progress.level
    at_cap = level >= settings.max_level
    milestone = get_level_milestone(level)
    next_level = level if at_cap else level + 1
    next_milestone = get_level_milestone(next_level)

    return {
        "level": level,
        "title": milestone["name"] if milestone else f"Level {level}",
        "xp_into_level": progress.xp,
        "xp_for_level": 1 if at_cap else settings.xp_per_level,
        "next_level": next_level,
        "next_title": next_milestone["name"] if next_milestone else f"Level {next_level}",
        "is_max_level": at_cap,
    }


def get_level_difficulty(level: int, settings: Settings | None = None) -> dict:
    """Difficulty curve parameters for a level.

    Curves run from level 1 to the level cap: duration and distractions grow
    with an ease-in curve, tolerance tightens with an ease-out curve, and item
    count and XP multiplier grow linearly.
    """
    settings = settings or get_settings()
    max_level = settings.max_level
    safe_level = max(1, min(max_level, level))
    t = (safe_level - 1) / (max_level - 1) if max_level > 1 else 1.0

    ease_in = t * t
    ease_out = 1 - (1 - t) * (1 - t)

    for band_max, difficulty_label, stage_label in DIFFICULTY_BANDS:
        if safe_level <= band_max:
            break
    else:
        difficulty_label, stage_label = TOP_BAND

    return {
        "duration": round(5 + ease_in * 40),
        "tolerance_multiplier": 2.0 - ease_out * 1.2,
        "speed_multiplier": 0.3 + ease_in * 1.2,
        "item_count": round(1 + t * 9),
        "distraction_count": round(ease_in * 20),
        "rule_count": min(4, 1 + int(t * 3)),
        "xp_multiplier": 1.0 + t * 2.0,
        "difficulty_label": difficulty_label,
        "stage_label": stage_label,
    }

"""Challenge catalog: types, skill mapping and per-level progressions.

Rules that used to be branching code are plain tables here, so adding a
challenge type or retuning a level is a data change.
"""

from __future__ import annotations

from enum import Enum


class ChallengeType(str, Enum):
    """Every challenge the app can present."""

    FOCUS_HOLD = "focus_hold"
    FINGER_HOLD = "finger_hold"
    SLOW_TRACKING = "slow_tracking"
    TAP_ONLY_CORRECT = "tap_only_correct"
    BREATH_PACING = "breath_pacing"
    FAKE_NOTIFICATIONS = "fake_notifications"
    LOOK_AWAY = "look_away"
    DELAY_UNLOCK = "delay_unlock"
    ANTI_SCROLL_SWIPE = "anti_scroll_swipe"
    MEMORY_FLASH = "memory_flash"
    REACTION_INHIBITION = "reaction_inhibition"
    MULTI_OBJECT_TRACKING = "multi_object_tracking"
    RHYTHM_TAP = "rhythm_tap"
    STILLNESS_TEST = "stillness_test"
    IMPULSE_SPIKE_TEST = "impulse_spike_test"
    FINGER_TRACING = "finger_tracing"
    MULTI_TASK_TAP = "multi_task_tap"
    POPUP_IGNORE = "popup_ignore"
    CONTROLLED_BREATHING = "controlled_breathing"
    RESET = "reset"
    # Legacy exercises, still accepted in the result log
    GAZE_HOLD = "gaze_hold"
    MOVING_TARGET = "moving_target"
    DISTRACTION_RESISTANCE = "distraction_resistance"
    TAP_PATTERN = "tap_pattern"
    AUDIO_FOCUS = "audio_focus"
    IMPULSE_DELAY = "impulse_delay"
    STABILITY_HOLD = "stability_hold"


class SkillPath(str, Enum):
    FOCUS = "focus"
    IMPULSE_CONTROL = "impulse_control"
    DISTRACTION_RESISTANCE = "distraction_resistance"


CT = ChallengeType

CHALLENGE_SKILL_PATHS: dict[ChallengeType, SkillPath] = {
    CT.FOCUS_HOLD: SkillPath.FOCUS,
    CT.FINGER_HOLD: SkillPath.FOCUS,
    CT.SLOW_TRACKING: SkillPath.FOCUS,
    CT.TAP_ONLY_CORRECT: SkillPath.IMPULSE_CONTROL,
    CT.BREATH_PACING: SkillPath.FOCUS,
    CT.FAKE_NOTIFICATIONS: SkillPath.DISTRACTION_RESISTANCE,
    CT.LOOK_AWAY: SkillPath.IMPULSE_CONTROL,
    CT.DELAY_UNLOCK: SkillPath.IMPULSE_CONTROL,
    CT.ANTI_SCROLL_SWIPE: SkillPath.IMPULSE_CONTROL,
    CT.MEMORY_FLASH: SkillPath.FOCUS,
    CT.REACTION_INHIBITION: SkillPath.IMPULSE_CONTROL,
    CT.MULTI_OBJECT_TRACKING: SkillPath.FOCUS,
    CT.RHYTHM_TAP: SkillPath.FOCUS,
    CT.STILLNESS_TEST: SkillPath.IMPULSE_CONTROL,
    CT.IMPULSE_SPIKE_TEST: SkillPath.DISTRACTION_RESISTANCE,
    CT.FINGER_TRACING: SkillPath.FOCUS,
    CT.MULTI_TASK_TAP: SkillPath.IMPULSE_CONTROL,
    CT.POPUP_IGNORE: SkillPath.DISTRACTION_RESISTANCE,
    CT.CONTROLLED_BREATHING: SkillPath.FOCUS,
    CT.RESET: SkillPath.FOCUS,
    CT.GAZE_HOLD: SkillPath.FOCUS,
    CT.MOVING_TARGET: SkillPath.FOCUS,
    CT.IMPULSE_DELAY: SkillPath.IMPULSE_CONTROL,
    CT.TAP_PATTERN: SkillPath.IMPULSE_CONTROL,
    CT.DISTRACTION_RESISTANCE: SkillPath.DISTRACTION_RESISTANCE,
    CT.AUDIO_FOCUS: SkillPath.DISTRACTION_RESISTANCE,
    CT.STABILITY_HOLD: SkillPath.FOCUS,
}

# The 20 exercise slots of a level, in tree order. Difficulty rises across
# levels through the per-level parameters, not through a different order.
EXERCISE_ORDER: list[ChallengeType] = [
    CT.FOCUS_HOLD,
    CT.FINGER_HOLD,
    CT.SLOW_TRACKING,
    CT.TAP_ONLY_CORRECT,
    CT.BREATH_PACING,
    CT.FAKE_NOTIFICATIONS,
    CT.LOOK_AWAY,
    CT.DELAY_UNLOCK,
    CT.ANTI_SCROLL_SWIPE,
    CT.MEMORY_FLASH,
    CT.REACTION_INHIBITION,
    CT.MULTI_OBJECT_TRACKING,
    CT.RHYTHM_TAP,
    CT.STILLNESS_TEST,
    CT.IMPULSE_SPIKE_TEST,
    CT.FINGER_TRACING,
    CT.MULTI_TASK_TAP,
    CT.POPUP_IGNORE,
    CT.CONTROLLED_BREATHING,
    CT.RESET,
]

LEVEL_PROGRESSIONS: dict[int, list[ChallengeType]] = {
    level: list(EXERCISE_ORDER) for level in range(1, 11)
}

LEVEL_TEST_SEQUENCES: dict[int, list[ChallengeType]] = {
    1: [CT.FOCUS_HOLD, CT.TAP_ONLY_CORRECT, CT.ANTI_SCROLL_SWIPE, CT.FINGER_HOLD],
    2: [CT.FINGER_HOLD, CT.MEMORY_FLASH, CT.TAP_ONLY_CORRECT, CT.ANTI_SCROLL_SWIPE],
    3: [CT.SLOW_TRACKING, CT.MEMORY_FLASH, CT.REACTION_INHIBITION, CT.STILLNESS_TEST],
    4: [CT.TAP_ONLY_CORRECT, CT.FINGER_HOLD, CT.MEMORY_FLASH, CT.ANTI_SCROLL_SWIPE],
    5: [CT.TAP_ONLY_CORRECT, CT.SLOW_TRACKING, CT.MEMORY_FLASH, CT.IMPULSE_SPIKE_TEST],
    6: [CT.SLOW_TRACKING, CT.REACTION_INHIBITION, CT.MEMORY_FLASH, CT.ANTI_SCROLL_SWIPE],
    7: [CT.SLOW_TRACKING, CT.MEMORY_FLASH, CT.STILLNESS_TEST, CT.DELAY_UNLOCK],
    8: [CT.TAP_ONLY_CORRECT, CT.ANTI_SCROLL_SWIPE, CT.MEMORY_FLASH, CT.POPUP_IGNORE],
    9: [
        CT.SLOW_TRACKING,
        CT.REACTION_INHIBITION,
        CT.MEMORY_FLASH,
        CT.STILLNESS_TEST,
        CT.DELAY_UNLOCK,
    ],
    10: [
        CT.FOCUS_HOLD,
        CT.FINGER_HOLD,
        CT.SLOW_TRACKING,
        CT.TAP_ONLY_CORRECT,
        CT.MEMORY_FLASH,
        CT.ANTI_SCROLL_SWIPE,
        CT.REACTION_INHIBITION,
        CT.STILLNESS_TEST,
        CT.BREATH_PACING,
        CT.DELAY_UNLOCK,
    ],
}

# Category sets used by the specialist badges
BREATHING_CHALLENGES = frozenset({CT.BREATH_PACING, CT.CONTROLLED_BREATHING})
TRACKING_CHALLENGES = frozenset({CT.SLOW_TRACKING, CT.MULTI_OBJECT_TRACKING, CT.FINGER_TRACING})
TAP_CHALLENGES = frozenset({CT.TAP_ONLY_CORRECT, CT.RHYTHM_TAP, CT.MULTI_TASK_TAP})
STILLNESS_CHALLENGES = frozenset({CT.STILLNESS_TEST, CT.FINGER_HOLD, CT.FOCUS_HOLD})
NOTIFICATION_CHALLENGES = frozenset({CT.FAKE_NOTIFICATIONS, CT.POPUP_IGNORE})


def get_challenge_skill_path(challenge_type: ChallengeType) -> SkillPath:
    """Skill a challenge trains. Unknown types train focus."""
    return CHALLENGE_SKILL_PATHS.get(challenge_type, SkillPath.FOCUS)


def get_level_progression(level: int) -> list[ChallengeType]:
    """Exercise types for the 20 slots of ``level``.

    Levels without a hand-tuned progression cycle through the standard order.
    """
    progression = LEVEL_PROGRESSIONS.get(level)
    if progression is not None:
        return list(progression)
    return [EXERCISE_ORDER[i % len(EXERCISE_ORDER)] for i in range(len(EXERCISE_ORDER))]


def get_test_sequence(level: int) -> list[ChallengeType]:
    """Ordered challenges of the level test. Untuned levels repeat the first exercise three times."""
    sequence = LEVEL_TEST_SEQUENCES.get(level)
    if sequence is not None:
        return list(sequence)
    first = get_level_progression(level)[0]
    return [first, first, first]

"""Unit tests for level milestones, level info and the difficulty curve."""

from __future__ import annotations

from focusflow.gamification.level_thresholds import (
    LEVEL_MILESTONES,
    compute_level_info,
    get_level_difficulty,
    get_level_milestone,
)
from focusflow.gamification.schemas import ProgressRecord


class TestMilestones:
    """Milestone table shape."""

    def test_one_milestone_per_level(self):
        assert [m["level"] for m in LEVEL_MILESTONES] == list(range(1, 11))

    def test_lookup(self):
        assert get_level_milestone(10)["name"] == "Focus Master"
        assert get_level_milestone(11) is None


class TestComputeLevelInfo:
    """Level summary for display."""

    def test_mid_journey(self, settings):
        info = compute_level_info(ProgressRecord(user_id="u", level=3, xp=120, total_xp=520), settings)
        assert info["level"] == 3
        assert info["title"] == "Foundation Complete"
        assert info["xp_into_level"] == 120
        assert info["xp_for_level"] == 200
        assert info["next_level"] == 4
        assert info["next_title"] == "Rising Star"
        assert not info["is_max_level"]

    def test_at_cap(self, settings):
        info = compute_level_info(ProgressRecord(user_id="u", level=10, xp=900, total_xp=2700), settings)
        assert info["is_max_level"]
        assert info["next_level"] == 10
        assert info["xp_for_level"] == 1


class TestLevelDifficulty:
    """Difficulty curve endpoints and monotonicity."""

    def test_first_level(self, settings):
        d = get_level_difficulty(1, settings)
        assert d["duration"] == 5
        assert d["item_count"] == 1
        assert d["distraction_count"] == 0
        assert d["tolerance_multiplier"] == 2.0
        assert d["difficulty_label"] == "Very Easy"
        assert d["stage_label"] == "Foundation"

    def test_last_level(self, settings):
        d = get_level_difficulty(10, settings)
        assert d["duration"] == 45
        assert d["item_count"] == 10
        assert d["distraction_count"] == 20
        assert d["rule_count"] == 4
        assert d["xp_multiplier"] == 3.0
        assert d["difficulty_label"] == "Expert"
        assert d["stage_label"] == "Mastery"

    def test_out_of_range_is_clamped(self, settings):
        assert get_level_difficulty(0, settings) == get_level_difficulty(1, settings)
        assert get_level_difficulty(99, settings) == get_level_difficulty(10, settings)

    def test_duration_never_decreases(self, settings):
        durations = [get_level_difficulty(level, settings)["duration"] for level in range(1, 11)]
        assert durations == sorted(durations)

    def test_band_labels(self, settings):
        labels = [get_level_difficulty(level, settings)["difficulty_label"] for level in range(1, 11)]
        assert labels == [
            "Very Easy", "Very Easy", "Easy", "Easy", "Medium",
            "Medium", "Hard", "Hard", "Expert", "Expert",
        ]

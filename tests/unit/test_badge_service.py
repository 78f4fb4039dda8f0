"""Badge service unit tests: unlock evaluation and progress bars."""

from __future__ import annotations

from datetime import datetime, timezone

from focusflow.gamification.badge_service import (
    check_all_badges,
    check_badge_unlock,
    get_badge_progress_percentage,
    initialize_badge_progress,
    unlock_badges,
)
from focusflow.gamification.challenges import ChallengeType
from focusflow.gamification.schemas import ChallengeResult, ProgressRecord, SkillProgress

NOW = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)


def _results(*scores):
    return [
        ChallengeResult(
            user_id="u",
            challenge_type=ChallengeType.FOCUS_HOLD,
            timestamp=NOW,
            score=s,
            duration_ms=20_000,
            is_perfect=s >= 95,
        )
        for s in scores
    ]


class TestCheckBadgeUnlock:
    def test_qualifying_badge_is_built(self, settings):
        progress = ProgressRecord(user_id="u", total_challenges_completed=1)
        badge = check_badge_unlock(
            "first_focus", initialize_badge_progress("u"), progress, SkillProgress(user_id="u"),
            _results(50), now=NOW, settings=settings,
        )
        assert badge.type == "first_focus"
        assert badge.name == "First Steps"
        assert badge.unlocked_at == NOW

    def test_already_unlocked_returns_none(self, settings):
        progress = ProgressRecord(user_id="u")
        skills = SkillProgress(user_id="u")
        results = _results(50)
        bp = initialize_badge_progress("u")
        badge = check_badge_unlock("first_focus", bp, progress, skills, results, now=NOW, settings=settings)
        bp = unlock_badges(bp, [badge])
        assert check_badge_unlock("first_focus", bp, progress, skills, results, now=NOW, settings=settings) is None

    def test_unknown_type_returns_none(self, settings):
        badge = check_badge_unlock(
            "nope", initialize_badge_progress("u"), ProgressRecord(user_id="u"), SkillProgress(user_id="u"),
            _results(50), now=NOW, settings=settings,
        )
        assert badge is None


class TestCheckAllBadges:
    def test_first_perfect_challenge(self, settings):
        progress = ProgressRecord(user_id="u", total_challenges_completed=1, total_xp=20)
        badges = check_all_badges(
            initialize_badge_progress("u"), progress, SkillProgress(user_id="u"), _results(100),
            now=NOW, settings=settings,
        )
        types = [b.type for b in badges]
        assert types == ["first_focus", "first_perfect", "onboarding_complete", "high_scorer"]

    def test_repeat_evaluation_adds_nothing(self, settings):
        progress = ProgressRecord(user_id="u", total_challenges_completed=1)
        skills = SkillProgress(user_id="u")
        results = _results(100)
        bp = initialize_badge_progress("u")
        bp = unlock_badges(bp, check_all_badges(bp, progress, skills, results, now=NOW, settings=settings))
        assert check_all_badges(bp, progress, skills, results, now=NOW, settings=settings) == []

    def test_unlock_badges_never_duplicates(self, settings):
        progress = ProgressRecord(user_id="u")
        bp = initialize_badge_progress("u")
        badges = check_all_badges(bp, progress, SkillProgress(user_id="u"), _results(40), now=NOW, settings=settings)
        bp = unlock_badges(bp, badges)
        bp = unlock_badges(bp, badges)
        assert len(bp.unlocked_badges) == len({b.type for b in bp.unlocked_badges})


class TestProgressPercentage:
    def test_counter_badge(self, settings):
        pct = get_badge_progress_percentage(
            "perfect_5", initialize_badge_progress("u"), ProgressRecord(user_id="u"),
            SkillProgress(user_id="u"), _results(100, 100), settings=settings,
        )
        assert (pct.current, pct.target, pct.percentage) == (2, 5, 40)

    def test_small_fraction_rounds_down(self, settings):
        progress = ProgressRecord(user_id="u", total_challenges_completed=1)
        pct = get_badge_progress_percentage(
            "challenges_1000", initialize_badge_progress("u"), progress,
            SkillProgress(user_id="u"), [], settings=settings,
        )
        # 0.1% rounds to 0
        assert pct.percentage == 0

    def test_capped_at_100(self, settings):
        progress = ProgressRecord(user_id="u", total_xp=900)
        pct = get_badge_progress_percentage(
            "xp_500", initialize_badge_progress("u"), progress, SkillProgress(user_id="u"), [], settings=settings,
        )
        assert pct.percentage == 100

    def test_unlocked_reads_full(self, settings):
        progress = ProgressRecord(user_id="u")
        skills = SkillProgress(user_id="u")
        results = _results(10)
        bp = initialize_badge_progress("u")
        bp = unlock_badges(bp, check_all_badges(bp, progress, skills, results, now=NOW, settings=settings))
        pct = get_badge_progress_percentage("first_focus", bp, progress, skills, results, settings=settings)
        assert (pct.current, pct.target, pct.percentage) == (1, 1, 100)

    def test_composite_badge_reads_zero(self, settings):
        pct = get_badge_progress_percentage(
            "weekend_warrior", initialize_badge_progress("u"), ProgressRecord(user_id="u"),
            SkillProgress(user_id="u"), [], settings=settings,
        )
        assert (pct.current, pct.target, pct.percentage) == (0, 1, 0)

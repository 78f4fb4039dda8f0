"""Badge trigger engine: aggregates over a user's history and the unlock rule table.

``BadgeStats.compute`` walks the result log once; every rule then reads the
precomputed aggregates. Most badges are a single counter reaching a target
(``THRESHOLD_RULES``), which also drives the progress bars; the rest are
composite predicates (``PREDICATE_RULES``).
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date, timedelta, tzinfo

from focusflow.config import Settings, get_settings
from focusflow.gamification.challenges import (
    BREATHING_CHALLENGES,
    NOTIFICATION_CHALLENGES,
    STILLNESS_CHALLENGES,
    TAP_CHALLENGES,
    TRACKING_CHALLENGES,
)
from focusflow.gamification.schemas import ChallengeResult, HeartState, ProgressRecord, SkillProgress

logger = logging.getLogger(__name__)

FAST_DURATION_MS = 10_000
FAST_PERFECT_DURATION_MS = 15_000
HIGH_SCORE = 90
SOLID_SCORE = 80
SATURDAY, SUNDAY = 5, 6


@dataclass(frozen=True)
class BadgeStats:
    """Everything the badge rules look at, computed once per evaluation."""

    # Progress
    level: int = 1
    total_xp: int = 0
    best_streak: int = 0
    total_sessions: int = 0
    total_challenges: int = 0
    # Skills
    focus: float = 0.0
    impulse_control: float = 0.0
    distraction_resistance: float = 0.0
    # Result log
    results_count: int = 0
    perfect_count: int = 0
    consecutive_perfect: int = 0
    total_score: float = 0.0
    high_90_count: int = 0
    trailing_80_run: int = 0
    fast_high_count: int = 0
    fast_perfect_count: int = 0
    breathing_count: int = 0
    tracking_count: int = 0
    tap_count: int = 0
    stillness_count: int = 0
    notification_count: int = 0
    unique_types: int = 0
    max_same_type: int = 0
    max_types_in_a_day: int = 0
    max_sessions_in_a_day: int = 0
    early_count: int = 0
    morning_count: int = 0
    late_count: int = 0
    after_midnight_count: int = 0
    practiced_saturday: bool = False
    practiced_sunday: bool = False
    consistent_hour_days: int = 0
    perfect_day_run: int = 0
    personal_best_beaten: bool = False
    # Hearts
    has_heart_state: bool = False
    hearts_full: bool = False
    total_hearts_gained: int = 0
    total_hearts_lost: int = 0

    @classmethod
    def compute(
        cls,
        progress: ProgressRecord,
        skills: SkillProgress,
        results: Sequence[ChallengeResult],
        heart_state: HeartState | None = None,
        *,
        tz: tzinfo | None = None,
        settings: Settings | None = None,
    ) -> BadgeStats:
        settings = settings or get_settings()

        perfect_count = 0
        total_score = 0.0
        high_90 = 0
        fast_high = 0
        fast_perfect = 0
        early = morning = late = after_midnight = 0
        weekdays: set[int] = set()
        type_counts: Counter = Counter()
        types_by_day: dict[date, set] = defaultdict(set)
        hours_by_day: dict[date, set[int]] = defaultdict(set)
        count_by_day: Counter = Counter()
        day_all_perfect: dict[date, bool] = {}
        best_by_type: dict = {}
        beaten = False

        for r in results:
            ts = r.timestamp.astimezone(tz) if tz is not None else r.timestamp
            day = ts.date()

            total_score += r.score
            type_counts[r.challenge_type] += 1
            types_by_day[day].add(r.challenge_type)
            hours_by_day[day].add(ts.hour)
            count_by_day[day] += 1
            weekdays.add(ts.weekday())
            day_all_perfect[day] = day_all_perfect.get(day, True) and r.is_perfect

            if r.is_perfect:
                perfect_count += 1
            if r.score >= HIGH_SCORE:
                high_90 += 1
                if r.duration_ms < FAST_DURATION_MS:
                    fast_high += 1
            if r.is_perfect and r.duration_ms < FAST_PERFECT_DURATION_MS:
                fast_perfect += 1

            if ts.hour < 7:
                early += 1
            if ts.hour < 9:
                morning += 1
            if ts.hour >= 22:
                late += 1
            if ts.hour < 4:
                after_midnight += 1

            previous_best = best_by_type.get(r.challenge_type)
            if previous_best is not None and r.score > previous_best:
                beaten = True
            if previous_best is None or r.score > previous_best:
                best_by_type[r.challenge_type] = r.score

        per_session = max(1, settings.min_challenges_per_session)

        return cls(
            level=progress.level,
            total_xp=progress.total_xp,
            best_streak=max(progress.streak, progress.longest_streak),
            total_sessions=progress.total_sessions_completed,
            total_challenges=progress.total_challenges_completed,
            focus=skills.focus,
            impulse_control=skills.impulse_control,
            distraction_resistance=skills.distraction_resistance,
            results_count=len(results),
            perfect_count=perfect_count,
            consecutive_perfect=_trailing_run(results, lambda r: r.is_perfect),
            total_score=total_score,
            high_90_count=high_90,
            trailing_80_run=_trailing_run(results, lambda r: r.score >= SOLID_SCORE),
            fast_high_count=fast_high,
            fast_perfect_count=fast_perfect,
            breathing_count=_count_in(type_counts, BREATHING_CHALLENGES),
            tracking_count=_count_in(type_counts, TRACKING_CHALLENGES),
            tap_count=_count_in(type_counts, TAP_CHALLENGES),
            stillness_count=_count_in(type_counts, STILLNESS_CHALLENGES),
            notification_count=_count_in(type_counts, NOTIFICATION_CHALLENGES),
            unique_types=len(type_counts),
            max_same_type=max(type_counts.values(), default=0),
            max_types_in_a_day=max((len(t) for t in types_by_day.values()), default=0),
            max_sessions_in_a_day=max(count_by_day.values(), default=0) // per_session,
            early_count=early,
            morning_count=morning,
            late_count=late,
            after_midnight_count=after_midnight,
            practiced_saturday=SATURDAY in weekdays,
            practiced_sunday=SUNDAY in weekdays,
            consistent_hour_days=_longest_same_hour_run(hours_by_day),
            perfect_day_run=_longest_day_run(d for d, ok in day_all_perfect.items() if ok),
            personal_best_beaten=beaten,
            has_heart_state=heart_state is not None,
            hearts_full=heart_state is not None and heart_state.current_hearts >= heart_state.max_hearts,
            total_hearts_gained=heart_state.total_hearts_gained if heart_state else 0,
            total_hearts_lost=heart_state.total_hearts_lost if heart_state else 0,
        )


def _trailing_run(results: Sequence[ChallengeResult], pred: Callable[[ChallengeResult], bool]) -> int:
    count = 0
    for r in reversed(results):
        if not pred(r):
            break
        count += 1
    return count


def _count_in(type_counts: Counter, members: frozenset) -> int:
    return sum(n for t, n in type_counts.items() if t in members)


def _longest_day_run(days) -> int:
    """Longest run of consecutive calendar dates."""
    ordered = sorted(set(days))
    best = run = 0
    previous: date | None = None
    for d in ordered:
        run = run + 1 if previous is not None and d - previous == timedelta(days=1) else 1
        best = max(best, run)
        previous = d
    return best


def _longest_same_hour_run(hours_by_day: dict[date, set[int]]) -> int:
    days_by_hour: dict[int, list[date]] = defaultdict(list)
    for day, hours in hours_by_day.items():
        for hour in hours:
            days_by_hour[hour].append(day)
    return max((_longest_day_run(days) for days in days_by_hour.values()), default=0)


# ---------------------------------------------------------------------------
# Rule tables
# ---------------------------------------------------------------------------

# badge type -> (BadgeStats attribute, target)
THRESHOLD_RULES: dict[str, tuple[str, float]] = {
    "first_focus": ("results_count", 1),
    "first_perfect": ("perfect_count", 1),
    "first_session": ("total_sessions", 1),
    "first_streak": ("best_streak", 2),
    "onboarding_complete": ("total_challenges", 1),
    **{f"challenges_{n}": ("total_challenges", n) for n in (10, 25, 50, 100, 250, 500, 1000)},
    **{f"perfect_{n}": ("perfect_count", n) for n in (5, 10, 25, 50, 100, 250, 500)},
    **{f"streak_{n}": ("best_streak", n) for n in (3, 7, 14, 30, 60, 90, 180, 365)},
    **{f"hot_streak_{n}": ("consecutive_perfect", n) for n in (3, 5, 10, 20, 50)},
    **{f"level_{n}": ("level", n) for n in (2, 5, 10, 15, 20, 25, 30)},
    **{f"xp_{n}": ("total_xp", n) for n in (100, 500, 1000, 5000, 10000, 25000, 50000)},
    **{
        f"{prefix}_{rank}": (attr, target)
        for prefix, attr in (
            ("focus", "focus"),
            ("impulse", "impulse_control"),
            ("distraction", "distraction_resistance"),
        )
        for rank, target in (("apprentice", 25), ("journeyman", 50), ("expert", 75), ("master", 100))
    },
    "breath_beginner": ("breathing_count", 5),
    "breath_master": ("breathing_count", 25),
    "tracking_beginner": ("tracking_count", 5),
    "tracking_master": ("tracking_count", 25),
    "tap_beginner": ("tap_count", 5),
    "tap_master": ("tap_count", 25),
    "stillness_beginner": ("stillness_count", 5),
    "stillness_master": ("stillness_count", 25),
    "notification_blocker": ("notification_count", 10),
    "notification_immune": ("notification_count", 50),
    "early_bird": ("early_count", 1),
    "morning_person": ("morning_count", 10),
    "night_owl": ("late_count", 1),
    "midnight_warrior": ("after_midnight_count", 1),
    "consistent_time": ("consistent_hour_days", 7),
    **{f"daily_{n}": ("total_sessions", n) for n in (3, 7, 30, 100)},
    "quick_reflexes": ("fast_high_count", 1),
    "speed_demon": ("fast_high_count", 5),
    "lightning_fast": ("fast_perfect_count", 10),
    "high_scorer": ("high_90_count", 1),
    "consistent_90": ("high_90_count", 10),
    "never_below_80": ("trailing_80_run", 20),
    "score_collector": ("total_score", 10000),
    "heart_collector": ("total_hearts_gained", 10),
    "explorer": ("unique_types", 15),
    "variety_seeker": ("max_types_in_a_day", 5),
    "specialist": ("max_same_type", 50),
    "no_skip": ("total_sessions", 10),
    "double_up": ("max_sessions_in_a_day", 2),
    "triple_threat": ("max_sessions_in_a_day", 3),
    "flawless_week": ("perfect_day_run", 7),
    "flawless_month": ("perfect_day_run", 30),
    "centurion": ("consecutive_perfect", 100),
}

Predicate = Callable[[BadgeStats], bool]


def _all_skills_maxed(s: BadgeStats) -> bool:
    return s.focus >= 100 and s.impulse_control >= 100 and s.distraction_resistance >= 100


PREDICATE_RULES: dict[str, Predicate] = {
    "triple_master": _all_skills_maxed,
    "weekend_warrior": lambda s: s.practiced_saturday and s.practiced_sunday,
    "improvement": lambda s: s.personal_best_beaten,
    "heart_saver": lambda s: s.hearts_full and s.total_sessions >= 1,
    "heart_guardian": lambda s: s.hearts_full and s.best_streak >= 3,
    "comeback_king": lambda s: s.hearts_full and s.total_hearts_gained >= 4,
    "true_master": lambda s: s.level >= 30 and _all_skills_maxed(s) and s.best_streak >= 365,
    "unscroll_legend": lambda s: s.total_challenges >= 1000 and s.perfect_count >= 500 and s.level >= 30,
}


def _threshold(attr: str, target: float) -> Predicate:
    return lambda s: getattr(s, attr) >= target


BADGE_RULES: dict[str, Predicate] = {
    **{badge_type: _threshold(attr, target) for badge_type, (attr, target) in THRESHOLD_RULES.items()},
    **PREDICATE_RULES,
}


def evaluate_rule(badge_type: str, stats: BadgeStats) -> bool:
    """Whether ``stats`` satisfies the unlock rule for ``badge_type``. Unknown types never unlock."""
    rule = BADGE_RULES.get(badge_type)
    if rule is None:
        logger.warning("No unlock rule for badge type: %s", badge_type)
        return False
    return bool(rule(stats))


def rule_target(badge_type: str, stats: BadgeStats) -> tuple[float, float] | None:
    """(current, target) for counter badges, None for composite ones."""
    entry = THRESHOLD_RULES.get(badge_type)
    if entry is None:
        return None
    attr, target = entry
    return getattr(stats, attr), target

"""Progression orchestration: load, apply an event, persist.

Each public operation loads the user's snapshot, applies lazy resets
(midnight refill, due refill slots, tree regeneration), runs the engine
rules in order (ledger, hearts, tree, then badges last) and writes
everything back through one ``store.save_state`` call. Missing state is
reported through ``applied=False`` and a ``SkipReason`` rather than raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

import structlog
from pydantic import BaseModel, Field, ValidationError

from focusflow.clock import Clock
from focusflow.config import Settings, get_settings
from focusflow.gamification.badge_definitions import BADGES_BY_TYPE
from focusflow.gamification.badge_service import (
    check_all_badges,
    get_badge_progress_percentage,
    initialize_badge_progress,
    unlock_badges,
)
from focusflow.gamification.challenges import ChallengeType, get_challenge_skill_path
from focusflow.gamification.heart_service import (
    REFILL_ACTIONS,
    StartCheck,
    can_start_challenge,
    gain_heart,
    increment_perfect_streak,
    initialize_heart_state,
    lose_heart,
    process_midnight_reset,
    process_scheduled_refills,
)
from focusflow.gamification.level_thresholds import compute_level_info
from focusflow.gamification.progress_tree import (
    complete_current_node,
    generate_progress_tree,
    needs_regeneration,
    set_current_node,
)
from focusflow.gamification.schemas import (
    Badge,
    BadgeProgress,
    BadgeProgressPercentage,
    ChallengeResult,
    DailySession,
    HeartGainReason,
    HeartLossReason,
    HeartState,
    HeartTransaction,
    ProgressRecord,
    ProgressTreeState,
    SkillProgress,
)
from focusflow.gamification.streak_service import update_streak
from focusflow.gamification.trigger_engine import BadgeStats
from focusflow.gamification.xp_service import calculate_skill_progress, calculate_xp, check_level_up
from focusflow.store import ProgressStore, dump_blobs
from focusflow.sync import RemoteSync, push_safely

logger = structlog.get_logger()

NOT_INITIALIZED_MESSAGE = "Progress not initialized"


@dataclass(frozen=True)
class Identity:
    """The acting user. ``is_premium`` grants unlimited hearts."""

    user_id: str
    is_premium: bool = False


class SkipReason(str, Enum):
    NOT_INITIALIZED = "not_initialized"
    NO_HEARTS = "no_hearts"
    HEARTS_FULL = "hearts_full"
    UNLIMITED_HEARTS = "unlimited_hearts"
    PRACTICE_MODE = "practice_mode"
    NOT_ENOUGH_CHALLENGES = "not_enough_challenges"
    SESSION_ALREADY_COMPLETED = "session_already_completed"


class GameState(BaseModel):
    """Everything the engine keeps per user, as loaded from the store."""

    progress: ProgressRecord
    skills: SkillProgress
    tree: ProgressTreeState | None = None
    hearts: HeartState
    badges: BadgeProgress
    new_badges: list[Badge] = Field(default_factory=list)


class LoadResult(BaseModel):
    applied: bool
    skipped_reason: SkipReason | None = None
    state: GameState | None = None
    tree_regenerated: str | None = None
    transactions: list[HeartTransaction] = Field(default_factory=list)
    level_info: dict | None = None


class ChallengeOutcome(BaseModel):
    applied: bool
    skipped_reason: SkipReason | None = None
    result: ChallengeResult | None = None
    xp_earned: int = 0
    leveled_up: bool = False
    level_info: dict | None = None
    stars: int = 0
    completed_node_id: str | None = None
    current_node_id: str | None = None
    unlocked_node_ids: list[str] = Field(default_factory=list)
    passed_test: bool | None = None
    heart_awarded: bool = False
    new_badges: list[Badge] = Field(default_factory=list)
    state: GameState | None = None


class SessionOutcome(BaseModel):
    applied: bool
    skipped_reason: SkipReason | None = None
    session_xp: int = 0
    leveled_up: bool = False
    level_info: dict | None = None
    streak: int = 0
    streak_delta: int = 0
    freeze_consumed: bool = False
    heart_awarded: bool = False
    new_badges: list[Badge] = Field(default_factory=list)
    state: GameState | None = None


class HeartOutcome(BaseModel):
    applied: bool
    skipped_reason: SkipReason | None = None
    can_continue: bool = True
    current_hearts: int = 0
    transaction: HeartTransaction | None = None


class ProgressionService:
    """Applies gameplay events to a user's persisted progression state."""

    def __init__(
        self,
        store: ProgressStore,
        clock: Clock,
        settings: Settings | None = None,
        sync: RemoteSync | None = None,
    ) -> None:
        self.store = store
        self.clock = clock
        self.settings = settings or get_settings()
        self.sync = sync

    # --- lifecycle ---

    def initialize_progress(self, identity: Identity, baseline_level: int = 1) -> GameState:
        """Create fresh state for a user starting at ``baseline_level``.

        Raises:
            ValueError: If the level is outside 1..max_level.
        """
        if not 1 <= baseline_level <= self.settings.max_level:
            msg = f"Baseline level must be within [1, {self.settings.max_level}], got {baseline_level}"
            raise ValueError(msg)

        user_id = identity.user_id
        now = self.clock.now()
        state = GameState(
            progress=ProgressRecord(user_id=user_id, level=baseline_level),
            skills=SkillProgress(user_id=user_id),
            tree=generate_progress_tree(user_id, baseline_level, self.settings),
            hearts=initialize_heart_state(user_id, now, self.settings),
            badges=initialize_badge_progress(user_id),
        )
        self._save(state, push=("progress", "skills", "hearts"))
        logger.info("progress_initialized", user_id=user_id, baseline_level=baseline_level)
        return state

    def reset_progress(self, identity: Identity) -> GameState:
        """Drop every record for the user and start over at level 1."""
        self.store.clear_user(identity.user_id)
        logger.info("progress_reset", user_id=identity.user_id)
        return self.initialize_progress(identity, 1)

    def load(self, identity: Identity) -> LoadResult:
        """Load state and apply any midnight reset, due refills and tree rebuild."""
        state = self._read(identity.user_id)
        if state is None:
            return LoadResult(applied=False, skipped_reason=SkipReason.NOT_INITIALIZED)

        state, transactions, regenerated = self._refresh(identity, state)
        self._save(state, transactions=transactions)
        return LoadResult(
            applied=True,
            state=state,
            tree_regenerated=regenerated,
            transactions=transactions,
            level_info=compute_level_info(state.progress, self.settings),
        )

    # --- gameplay ---

    def complete_challenge(
        self,
        identity: Identity,
        challenge_type: ChallengeType | str,
        score: float,
        duration_ms: int = 0,
    ) -> ChallengeOutcome:
        """Record one challenge result.

        Order: XP and level, perfect-streak heart, skill, tree, daily session,
        badges. Challenge XP is credited immediately; the session bonus comes
        from ``complete_session``.

        Raises:
            ValueError: If the score is outside [0, 100] or the type is unknown.
        """
        if not 0 <= score <= 100:
            msg = f"Score must be within [0, 100], got {score}"
            raise ValueError(msg)
        challenge_type = ChallengeType(challenge_type)

        state = self._read(identity.user_id)
        if state is None:
            return ChallengeOutcome(applied=False, skipped_reason=SkipReason.NOT_INITIALIZED)

        state, transactions, _ = self._refresh(identity, state)
        now = self.clock.now()
        settings = self.settings
        user_id = identity.user_id
        progress = state.progress

        old_level = progress.level
        is_perfect = score >= settings.perfect_score
        xp = calculate_xp(settings.xp_per_challenge, is_perfect, progress.streak, settings)

        hearts = state.hearts
        heart_awarded = False
        if is_perfect:
            streak_result = increment_perfect_streak(hearts, identity.is_premium, settings)
            hearts = streak_result.state
            if streak_result.should_award_heart:
                gain = gain_heart(hearts, HeartGainReason.PERFECT_STREAK_3, identity.is_premium, now=now)
                hearts = gain.state
                heart_awarded = gain.applied
                if gain.transaction is not None:
                    transactions.append(gain.transaction)

        result = ChallengeResult(
            user_id=user_id,
            challenge_type=challenge_type,
            timestamp=now,
            score=score,
            duration_ms=duration_ms,
            xp_earned=xp,
            is_perfect=is_perfect,
        )

        path = get_challenge_skill_path(challenge_type).value
        skills = state.skills.model_copy(
            update={path: calculate_skill_progress(score, getattr(state.skills, path))}
        )

        transition = complete_current_node(state.tree, score, now, settings)

        daily = self.store.get_daily_session(user_id, now.date()) or DailySession(
            user_id=user_id, session_date=now.date()
        )
        daily = daily.model_copy(update={
            "challenge_ids": [*daily.challenge_ids, result.id],
            "total_xp": daily.total_xp + xp,
        })

        level_up = check_level_up(progress.xp + xp, progress.level, settings)
        progress = progress.model_copy(update={
            "level": level_up.new_level,
            "xp": level_up.remaining_xp,
            "total_xp": progress.total_xp + xp,
            "total_challenges_completed": progress.total_challenges_completed + 1,
        })

        state = state.model_copy(update={
            "progress": progress,
            "skills": skills,
            "hearts": hearts,
            "tree": transition.state,
        })
        state, new_badges = self._award_badges(state, [*self.store.list_challenge_results(user_id), result], now)

        self._save(
            state,
            results=[result],
            transactions=transactions,
            sessions=[daily],
            push=("progress", "skills", "tree"),
        )

        logger.info(
            "challenge_completed",
            user_id=user_id,
            challenge_type=challenge_type.value,
            score=score,
            xp=xp,
            level=progress.level,
            node=transition.completed_node_id,
            badges=[b.type for b in new_badges],
        )
        return ChallengeOutcome(
            applied=True,
            result=result,
            xp_earned=xp,
            leveled_up=level_up.leveled_up_from(old_level),
            level_info=compute_level_info(state.progress, self.settings),
            stars=transition.stars,
            completed_node_id=transition.completed_node_id,
            current_node_id=transition.state.current_node_id,
            unlocked_node_ids=list(transition.unlocked_node_ids),
            passed_test=transition.passed_test,
            heart_awarded=heart_awarded,
            new_badges=new_badges,
            state=state,
        )

    def complete_session(self, identity: Identity) -> SessionOutcome:
        """Close today's session once enough challenges were played.

        Awards the session heart and the session XP bonus and extends the
        streak. Challenge XP was already credited per challenge and is not
        added again. A day's session completes at most once.
        """
        state = self._read(identity.user_id)
        if state is None:
            return SessionOutcome(applied=False, skipped_reason=SkipReason.NOT_INITIALIZED)

        state, transactions, _ = self._refresh(identity, state)
        now = self.clock.now()
        settings = self.settings
        user_id = identity.user_id

        daily = self.store.get_daily_session(user_id, now.date())
        if daily is None or len(daily.challenge_ids) < settings.min_challenges_per_session:
            logger.info(
                "session_incomplete",
                user_id=user_id,
                challenges=0 if daily is None else len(daily.challenge_ids),
                required=settings.min_challenges_per_session,
            )
            return SessionOutcome(applied=False, skipped_reason=SkipReason.NOT_ENOUGH_CHALLENGES, state=state)
        if daily.completed:
            return SessionOutcome(applied=False, skipped_reason=SkipReason.SESSION_ALREADY_COMPLETED, state=state)

        gain = gain_heart(state.hearts, HeartGainReason.DAILY_SESSION_COMPLETE, identity.is_premium, now=now)
        if gain.transaction is not None:
            transactions.append(gain.transaction)

        progress = state.progress
        session_xp = calculate_xp(settings.xp_per_session, False, progress.streak, settings)
        level_up = check_level_up(progress.xp + session_xp, progress.level, settings)
        streak = update_streak(progress.last_session_date, now, progress.streak, progress.streak_freeze_used)

        new_progress = progress.model_copy(update={
            "level": level_up.new_level,
            "xp": level_up.remaining_xp,
            "total_xp": progress.total_xp + session_xp,
            "streak": streak.new_streak,
            "longest_streak": max(progress.longest_streak, streak.new_streak),
            "last_session_date": now,
            "streak_freeze_used": streak.freeze_used,
            "total_sessions_completed": progress.total_sessions_completed + 1,
        })
        daily = daily.model_copy(update={"completed": True})

        state = state.model_copy(update={"progress": new_progress, "hearts": gain.state})
        state, new_badges = self._award_badges(state, self.store.list_challenge_results(user_id), now)

        self._save(state, transactions=transactions, sessions=[daily], push=("progress",))
        logger.info(
            "session_completed",
            user_id=user_id,
            session_xp=session_xp,
            streak=streak.new_streak,
            freeze_consumed=streak.should_freeze,
            heart_awarded=gain.applied,
        )
        return SessionOutcome(
            applied=True,
            session_xp=session_xp,
            leveled_up=level_up.leveled_up_from(progress.level),
            level_info=compute_level_info(state.progress, self.settings),
            streak=streak.new_streak,
            streak_delta=streak.streak_delta,
            freeze_consumed=streak.should_freeze,
            heart_awarded=gain.applied,
            new_badges=new_badges,
            state=state,
        )

    # --- hearts ---

    def lose_heart_for_reason(
        self,
        identity: Identity,
        reason: HeartLossReason | str,
        challenge_id: str | None = None,
        practice_mode: bool = False,
    ) -> HeartOutcome:
        """Spend a heart. ``can_continue`` tells the caller whether play may go on."""
        state = self._read(identity.user_id)
        if state is None:
            return HeartOutcome(applied=False, skipped_reason=SkipReason.NOT_INITIALIZED, can_continue=False)

        state, transactions, _ = self._refresh(identity, state)
        loss = lose_heart(
            state.hearts,
            reason,
            identity.is_premium,
            challenge_id,
            now=self.clock.now(),
            practice_mode=practice_mode,
            settings=self.settings,
        )
        if loss.transaction is not None:
            transactions.append(loss.transaction)
        state = state.model_copy(update={"hearts": loss.state})
        self._save(state, transactions=transactions, push=("hearts",))

        skipped = None
        if loss.transaction is None:
            if practice_mode:
                skipped = SkipReason.PRACTICE_MODE
            elif identity.is_premium:
                skipped = SkipReason.UNLIMITED_HEARTS
            else:
                skipped = SkipReason.NO_HEARTS
        return HeartOutcome(
            applied=loss.transaction is not None,
            skipped_reason=skipped,
            can_continue=loss.can_continue,
            current_hearts=loss.state.current_hearts,
            transaction=loss.transaction,
        )

    def gain_heart_for_reason(
        self,
        identity: Identity,
        reason: HeartGainReason | str,
        challenge_id: str | None = None,
    ) -> HeartOutcome:
        state = self._read(identity.user_id)
        if state is None:
            return HeartOutcome(applied=False, skipped_reason=SkipReason.NOT_INITIALIZED, can_continue=False)

        state, transactions, _ = self._refresh(identity, state)
        gain = gain_heart(state.hearts, reason, identity.is_premium, challenge_id, now=self.clock.now())
        if gain.transaction is not None:
            transactions.append(gain.transaction)
        state = state.model_copy(update={"hearts": gain.state})
        self._save(state, transactions=transactions, push=("hearts",))

        return HeartOutcome(
            applied=gain.applied,
            skipped_reason=None if gain.applied else SkipReason.HEARTS_FULL,
            current_hearts=gain.state.current_hearts,
            transaction=gain.transaction,
        )

    def complete_refill_action(self, identity: Identity, action: str) -> HeartOutcome:
        """Grant the heart earned by a refill task.

        Raises:
            ValueError: If the action is not a known refill task.
        """
        reason = REFILL_ACTIONS.get(action)
        if reason is None:
            msg = f"Unknown refill action: {action}"
            raise ValueError(msg)
        return self.gain_heart_for_reason(identity, reason)

    def can_start_challenge(self, identity: Identity, is_difficult: bool = False) -> StartCheck:
        loaded = self.load(identity)
        if loaded.state is None:
            return StartCheck(can_start=False, reason=NOT_INITIALIZED_MESSAGE)
        return can_start_challenge(loaded.state.hearts, identity.is_premium, is_difficult)

    # --- tree and badges ---

    def set_current_node(self, identity: Identity, node_id: str) -> ProgressTreeState | None:
        """Point the tree at a user-selected node. None when the user has no state.

        Raises:
            UnknownNodeError: If the node does not exist.
            InvalidTransitionError: If the node is still locked.
        """
        state = self._read(identity.user_id)
        if state is None:
            return None

        state, transactions, _ = self._refresh(identity, state)
        tree = set_current_node(state.tree, node_id, self.settings)
        state = state.model_copy(update={"tree": tree})
        self._save(state, transactions=transactions)
        return tree

    def clear_new_badges(self, identity: Identity) -> list[Badge]:
        """Acknowledge the pending badge notifications and return them."""
        blobs = self.store.load_state(identity.user_id)
        pending = _parse_new_badges(blobs.get("new_badges"))
        if pending:
            self.store.save_state(identity.user_id, {"new_badges": {"badges": []}})
        return pending

    def badge_progress_overview(self, identity: Identity) -> dict[str, BadgeProgressPercentage]:
        """Progress bar values for every badge, in catalog order."""
        state = self._read(identity.user_id)
        if state is None:
            return {}

        now = self.clock.now()
        results = self.store.list_challenge_results(identity.user_id)
        stats = BadgeStats.compute(
            state.progress, state.skills, results, state.hearts, tz=now.tzinfo, settings=self.settings
        )
        return {
            badge_type: get_badge_progress_percentage(
                badge_type, state.badges, state.progress, state.skills, results, state.hearts, stats=stats,
            )
            for badge_type in BADGES_BY_TYPE
        }

    # --- internals ---

    def _read(self, user_id: str) -> GameState | None:
        """Parse stored blobs; unusable secondary blobs are rebuilt, a missing progress record is not."""
        blobs = self.store.load_state(user_id)
        raw_progress = blobs.get("progress")
        if raw_progress is None:
            return None
        try:
            progress = ProgressRecord.model_validate(raw_progress)
        except ValidationError:
            logger.warning("progress_record_unreadable", user_id=user_id, exc_info=True)
            return None

        now = self.clock.now()
        skills = _parse_or_none(SkillProgress, blobs.get("skills"), user_id, "skills")
        tree = _parse_or_none(ProgressTreeState, blobs.get("tree"), user_id, "tree")
        hearts = _parse_or_none(HeartState, blobs.get("hearts"), user_id, "hearts")
        badges = _parse_or_none(BadgeProgress, blobs.get("badges"), user_id, "badges")

        return GameState(
            progress=progress,
            skills=skills or SkillProgress(user_id=user_id),
            tree=tree,
            hearts=hearts or initialize_heart_state(user_id, now, self.settings),
            badges=badges or initialize_badge_progress(user_id),
            new_badges=_parse_new_badges(blobs.get("new_badges")),
        )

    def _refresh(
        self,
        identity: Identity,
        state: GameState,
    ) -> tuple[GameState, list[HeartTransaction], str | None]:
        now = self.clock.now()
        transactions: list[HeartTransaction] = []

        reset = process_midnight_reset(state.hearts, identity.is_premium, now=now)
        if reset.transaction is not None:
            transactions.append(reset.transaction)
        refills = process_scheduled_refills(reset.state, identity.is_premium, now=now)
        transactions.extend(refills.transactions)

        tree = state.tree
        reason = needs_regeneration(tree, identity.user_id, self.settings)
        if reason is not None:
            logger.info(
                "progress_tree_regenerated",
                user_id=identity.user_id,
                reason=reason,
                level=state.progress.level,
            )
            tree = generate_progress_tree(identity.user_id, state.progress.level, self.settings)

        return state.model_copy(update={"hearts": refills.state, "tree": tree}), transactions, reason

    def _award_badges(
        self,
        state: GameState,
        results: list[ChallengeResult],
        now: datetime,
    ) -> tuple[GameState, list[Badge]]:
        new_badges = check_all_badges(
            state.badges, state.progress, state.skills, results, state.hearts, now=now, settings=self.settings,
        )
        if not new_badges:
            return state, []
        return state.model_copy(update={
            "badges": unlock_badges(state.badges, new_badges),
            "new_badges": [*state.new_badges, *new_badges],
        }), new_badges

    def _save(
        self,
        state: GameState,
        *,
        results: list[ChallengeResult] | None = None,
        transactions: list[HeartTransaction] | None = None,
        sessions: list[DailySession] | None = None,
        push: tuple[str, ...] = (),
    ) -> None:
        user_id = state.progress.user_id
        blobs = dump_blobs(
            progress=state.progress,
            skills=state.skills,
            tree=state.tree,
            hearts=state.hearts,
            badges=state.badges,
            new_badges={"badges": [b.model_dump(mode="json") for b in state.new_badges]},
        )
        self.store.save_state(
            user_id,
            blobs,
            results=results or (),
            transactions=transactions or (),
            sessions=sessions or (),
        )
        for kind in push:
            push_safely(self.sync, user_id, kind, blobs[kind])


def _parse_or_none(model: type[BaseModel], raw: Any, user_id: str, kind: str) -> Any:
    if raw is None:
        return None
    try:
        parsed = model.model_validate(raw)
    except ValidationError:
        logger.warning("state_blob_unreadable", user_id=user_id, kind=kind, exc_info=True)
        return None
    if getattr(parsed, "user_id", user_id) != user_id and kind != "tree":
        logger.warning("state_blob_foreign", user_id=user_id, kind=kind)
        return None
    return parsed


def _parse_new_badges(raw: Any) -> list[Badge]:
    if not raw:
        return []
    try:
        return [Badge.model_validate(b) for b in raw.get("badges", [])]
    except (ValidationError, AttributeError):
        logger.warning("pending_badges_unreadable", exc_info=True)
        return []

"""Heart economy: capacity-bounded attempts with loss, gain and scheduled refills.

Every function takes a ``HeartState`` and returns a new one; inputs are
never mutated. Refill slots are a scheduling artifact: each loss schedules
one, natural gains consume them, and reward hearts may leave them out of
step with ``current_hearts``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from focusflow.clock import local_midnight
from focusflow.config import Settings, get_settings
from focusflow.gamification.schemas import (
    HeartGainReason,
    HeartLossReason,
    HeartState,
    HeartTransaction,
    HeartTransactionType,
    RefillSlot,
)

logger = logging.getLogger(__name__)

NO_HEARTS_MESSAGE = "You lost focus today. Come back when your mind resets."

# Refill tasks the user can complete to earn a heart back
REFILL_ACTIONS: dict[str, HeartGainReason] = {
    "breathing_exercise": HeartGainReason.BREATHING_EXERCISE,
    "micro_focus": HeartGainReason.MICRO_FOCUS,
    "invite_friend": HeartGainReason.INVITE_FRIEND,
    "watch_tip": HeartGainReason.WATCH_TIP,
}


@dataclass(frozen=True)
class HeartLossResult:
    state: HeartState
    transaction: HeartTransaction | None
    can_continue: bool


@dataclass(frozen=True)
class HeartGainResult:
    state: HeartState
    transaction: HeartTransaction | None

    @property
    def applied(self) -> bool:
        return self.transaction is not None


@dataclass(frozen=True)
class PerfectStreakResult:
    state: HeartState
    should_award_heart: bool


@dataclass(frozen=True)
class RefillResult:
    state: HeartState
    transactions: list[HeartTransaction] = field(default_factory=list)


@dataclass(frozen=True)
class StartCheck:
    can_start: bool
    reason: str | None = None


def initialize_heart_state(user_id: str, now: datetime, settings: Settings | None = None) -> HeartState:
    """Full hearts, with today's midnight already counted as reset."""
    settings = settings or get_settings()
    return HeartState(
        user_id=user_id,
        current_hearts=settings.max_hearts,
        max_hearts=settings.max_hearts,
        last_midnight_reset=local_midnight(now),
    )


def is_new_day(last_midnight_reset: datetime | None, now: datetime) -> bool:
    """True once local midnight has passed since the last recorded reset."""
    if last_midnight_reset is None:
        return True
    return local_midnight(now) > last_midnight_reset


def lose_heart(
    state: HeartState,
    reason: HeartLossReason | str,
    is_unlimited: bool,
    challenge_id: str | None = None,
    *,
    now: datetime,
    practice_mode: bool = False,
    settings: Settings | None = None,
) -> HeartLossResult:
    """Spend one heart and schedule its refill.

    Practice mode and the unlimited entitlement never cost a heart. At zero
    hearts nothing changes and ``can_continue`` is False.
    """
    if practice_mode or is_unlimited:
        return HeartLossResult(state=state, transaction=None, can_continue=True)

    if state.current_hearts <= 0:
        return HeartLossResult(state=state, transaction=None, can_continue=False)

    settings = settings or get_settings()
    remaining = state.current_hearts - 1
    slot = RefillSlot(scheduled_refill_time=now + timedelta(hours=settings.heart_refill_interval_hours))

    transaction = HeartTransaction(
        user_id=state.user_id,
        timestamp=now,
        type=HeartTransactionType.LOSS,
        amount=1,
        reason=_reason_value(reason),
        challenge_id=challenge_id,
    )
    new_state = state.model_copy(update={
        "current_hearts": remaining,
        "last_heart_lost": now,
        "refill_slots": [*state.refill_slots, slot],
        "perfect_streak_count": 0,
        "total_hearts_lost": state.total_hearts_lost + 1,
    })
    logger.info("Heart lost for %s (%s): %d left", state.user_id, transaction.reason, remaining)
    return HeartLossResult(state=new_state, transaction=transaction, can_continue=remaining > 0)


def gain_heart(
    state: HeartState,
    reason: HeartGainReason | str,
    is_unlimited: bool = False,
    challenge_id: str | None = None,
    *,
    now: datetime,
) -> HeartGainResult:
    """Add one heart and drop the oldest pending refill slot.

    No-op at capacity. The entitlement flag does not change gains.
    """
    if state.current_hearts >= state.max_hearts:
        return HeartGainResult(state=state, transaction=None)

    transaction = HeartTransaction(
        user_id=state.user_id,
        timestamp=now,
        type=HeartTransactionType.GAIN,
        amount=1,
        reason=_reason_value(reason),
        challenge_id=challenge_id,
    )
    new_state = state.model_copy(update={
        "current_hearts": state.current_hearts + 1,
        "refill_slots": list(state.refill_slots[1:]),
        "total_hearts_gained": state.total_hearts_gained + 1,
    })
    logger.info("Heart gained for %s (%s): %d now", state.user_id, transaction.reason, new_state.current_hearts)
    return HeartGainResult(state=new_state, transaction=transaction)


def increment_perfect_streak(
    state: HeartState,
    is_unlimited: bool,
    settings: Settings | None = None,
) -> PerfectStreakResult:
    """Count a perfect result; every Nth in a row earns a heart when there is room for it.

    The counter only resets here when a heart is awarded; losses reset it in
    ``lose_heart``.
    """
    settings = settings or get_settings()
    count = state.perfect_streak_count + 1
    should_award = (
        count >= settings.perfect_streak_requirement
        and state.current_hearts < state.max_hearts
        and not is_unlimited
    )
    new_state = state.model_copy(update={"perfect_streak_count": 0 if should_award else count})
    return PerfectStreakResult(state=new_state, should_award_heart=should_award)


def process_midnight_reset(
    state: HeartState,
    is_unlimited: bool = False,
    *,
    now: datetime,
) -> HeartGainResult:
    """Refill to capacity once per local day.

    Safe to call on every load: before the next midnight it returns the state
    untouched. On a new day all pending slots are cleared and a ``refill``
    transaction records how many hearts were restored, zero included.
    """
    if not is_new_day(state.last_midnight_reset, now):
        return HeartGainResult(state=state, transaction=None)

    restored = max(0, state.max_hearts - state.current_hearts)
    transaction = HeartTransaction(
        user_id=state.user_id,
        timestamp=now,
        type=HeartTransactionType.REFILL,
        amount=restored,
        reason=HeartGainReason.MIDNIGHT_RESET.value,
    )
    new_state = state.model_copy(update={
        "current_hearts": state.max_hearts,
        "last_midnight_reset": local_midnight(now),
        "refill_slots": [],
        "total_hearts_gained": state.total_hearts_gained + restored,
    })
    if restored:
        logger.info("Midnight reset restored %d hearts for %s", restored, state.user_id)
    return HeartGainResult(state=new_state, transaction=transaction)


def process_scheduled_refills(
    state: HeartState,
    is_unlimited: bool = False,
    *,
    now: datetime,
) -> RefillResult:
    """Turn every due refill slot into a heart while below capacity.

    Refilled slots are dropped; due slots that found no room stay pending.
    Running this twice on the same unpersisted snapshot credits slots twice,
    so callers load, apply and save as one unit.
    """
    if state.current_hearts >= state.max_hearts:
        return RefillResult(state=state)

    hearts = state.current_hearts
    transactions: list[HeartTransaction] = []
    pending: list[RefillSlot] = []

    for slot in state.refill_slots:
        if not slot.is_refilled and slot.scheduled_refill_time <= now and hearts < state.max_hearts:
            hearts += 1
            transactions.append(HeartTransaction(
                user_id=state.user_id,
                timestamp=now,
                type=HeartTransactionType.REFILL,
                amount=1,
                reason=HeartGainReason.HOURLY_REFILL.value,
            ))
        elif not slot.is_refilled:
            pending.append(slot)

    if not transactions:
        return RefillResult(state=state)

    new_state = state.model_copy(update={
        "current_hearts": hearts,
        "refill_slots": pending,
        "total_hearts_gained": state.total_hearts_gained + len(transactions),
    })
    logger.info("Scheduled refills restored %d hearts for %s", len(transactions), state.user_id)
    return RefillResult(state=new_state, transactions=transactions)


def can_start_challenge(state: HeartState, is_unlimited: bool, is_difficult: bool = False) -> StartCheck:
    """Any heart lets the user start; zero hearts blocks everyone.

    The entitlement does not bypass the gate: unlimited users never spend
    hearts, but a state loaded at zero still has to refill first. Difficulty
    is not a gate yet.
    """
    if state.current_hearts <= 0:
        return StartCheck(can_start=False, reason=NO_HEARTS_MESSAGE)
    return StartCheck(can_start=True)


def get_time_until_next_refill(state: HeartState, now: datetime) -> timedelta | None:
    """Time until the earliest pending slot refills, or None when full or nothing is pending."""
    if state.current_hearts >= state.max_hearts:
        return None

    pending = [s.scheduled_refill_time for s in state.refill_slots if not s.is_refilled]
    if not pending:
        return None
    return max(timedelta(0), min(pending) - now)


def format_time_remaining(remaining: timedelta) -> str:
    """'3h 12m', '12m 5s' or '5s'."""
    total_seconds = int(remaining.total_seconds())
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)

    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"


def _reason_value(reason: HeartLossReason | HeartGainReason | str) -> str:
    return reason.value if isinstance(reason, (HeartLossReason, HeartGainReason)) else str(reason)

"""Pydantic models for progression and economy state."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from focusflow.gamification.challenges import ChallengeType


def new_id() -> str:
    return str(uuid.uuid4())


# --- Progress ---


class ProgressRecord(BaseModel):
    user_id: str
    level: int = Field(1, ge=1)
    xp: int = Field(0, ge=0)
    total_xp: int = Field(0, ge=0)
    streak: int = Field(0, ge=0)
    longest_streak: int = Field(0, ge=0)
    last_session_date: datetime | None = None
    streak_freeze_used: bool = False
    total_sessions_completed: int = 0
    total_challenges_completed: int = 0


class SkillProgress(BaseModel):
    user_id: str
    focus: float = Field(0.0, ge=0, le=100)
    impulse_control: float = Field(0.0, ge=0, le=100)
    distraction_resistance: float = Field(0.0, ge=0, le=100)


class ChallengeResult(BaseModel):
    """One completed challenge. Immutable once written."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    user_id: str
    challenge_type: ChallengeType
    timestamp: datetime
    score: float = Field(ge=0, le=100)
    duration_ms: int = Field(0, ge=0)
    xp_earned: int = 0
    is_perfect: bool = False


class DailySession(BaseModel):
    """Challenges recorded on one local calendar day."""

    id: str = Field(default_factory=new_id)
    user_id: str
    session_date: date
    challenge_ids: list[str] = Field(default_factory=list)
    total_xp: int = 0
    completed: bool = False


# --- Hearts ---


class HeartTransactionType(str, Enum):
    LOSS = "loss"
    GAIN = "gain"
    REFILL = "refill"


class HeartLossReason(str, Enum):
    FOCUS_BREAK = "focus_break"
    WRONG_TAP = "wrong_tap"
    DISTRACTION_FAIL = "distraction_fail"
    EARLY_QUIT = "early_quit"
    TEST_FAIL = "test_fail"


class HeartGainReason(str, Enum):
    DAILY_SESSION_COMPLETE = "daily_session_complete"
    PERFECT_STREAK_3 = "perfect_streak_3"
    FOCUS_RESET_ANIMATION = "focus_reset_animation"
    BREATHING_EXERCISE = "breathing_exercise"
    MICRO_FOCUS = "micro_focus"
    INVITE_FRIEND = "invite_friend"
    WATCH_TIP = "watch_tip"
    MIDNIGHT_RESET = "midnight_reset"
    HOURLY_REFILL = "hourly_refill"


class RefillSlot(BaseModel):
    id: str = Field(default_factory=new_id)
    scheduled_refill_time: datetime
    is_refilled: bool = False


class HeartState(BaseModel):
    user_id: str
    current_hearts: int = Field(5, ge=0)
    max_hearts: int = Field(5, ge=1)
    last_heart_lost: datetime | None = None
    last_midnight_reset: datetime | None = None
    refill_slots: list[RefillSlot] = Field(default_factory=list)
    perfect_streak_count: int = 0
    total_hearts_lost: int = 0
    total_hearts_gained: int = 0

    @model_validator(mode="after")
    def _hearts_within_capacity(self) -> HeartState:
        if self.current_hearts > self.max_hearts:
            raise ValueError(
                f"current_hearts {self.current_hearts} exceeds max_hearts {self.max_hearts}"
            )
        return self


class HeartTransaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    user_id: str
    timestamp: datetime
    type: HeartTransactionType
    amount: int
    reason: str
    challenge_id: str | None = None


# --- Progress tree ---


class NodeType(str, Enum):
    EXERCISE = "exercise"
    TEST = "test"


class NodeStatus(str, Enum):
    LOCKED = "locked"
    AVAILABLE = "available"
    COMPLETED = "completed"
    PERFECT = "perfect"


class ProgressTreeNode(BaseModel):
    id: str
    level: int = Field(ge=1)
    position: int = Field(ge=0, le=20)
    node_type: NodeType
    challenge_type: ChallengeType
    test_sequence: list[ChallengeType] | None = None
    status: NodeStatus = NodeStatus.LOCKED
    xp_reward: int = 0
    stars_earned: int = Field(0, ge=0, le=3)
    completed_at: datetime | None = None

    @property
    def is_done(self) -> bool:
        return self.status in (NodeStatus.COMPLETED, NodeStatus.PERFECT)


class ProgressTreeState(BaseModel):
    user_id: str
    nodes: list[ProgressTreeNode] = Field(default_factory=list)
    current_node_id: str | None = None
    last_completed_node_id: str | None = None
    version: int = 0


# --- Badges ---


class BadgeRarity(str, Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class BadgeDefinition(BaseModel):
    type: str
    name: str
    description: str
    icon: str
    rarity: BadgeRarity
    category: str


class Badge(BaseModel):
    id: str = Field(default_factory=new_id)
    type: str
    unlocked_at: datetime
    name: str
    description: str
    icon: str


class BadgeProgress(BaseModel):
    user_id: str
    unlocked_badges: list[Badge] = Field(default_factory=list)

    def has(self, badge_type: str) -> bool:
        return any(b.type == badge_type for b in self.unlocked_badges)


class BadgeProgressPercentage(BaseModel):
    current: float
    target: float
    percentage: int

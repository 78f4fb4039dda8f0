"""Progress tree state machine.

Each level is a chain of 20 exercise nodes (positions 0-19) followed by a
test node (position 20) that gates the next level.

Node states: locked -> available -> completed | perfect
A failed test stays available; a finished node may be reopened for replay.
Transitions are validated, and the current-node pointer must always resolve
to an available node.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from focusflow.config import Settings, get_settings
from focusflow.errors import CurrentNodeInvariantError, InvalidTransitionError, UnknownNodeError
from focusflow.gamification.challenges import get_level_progression, get_test_sequence
from focusflow.gamification.schemas import (
    NodeStatus,
    NodeType,
    ProgressTreeNode,
    ProgressTreeState,
)

logger = logging.getLogger(__name__)

TEST_POSITION = 20
TEST_XP_MULTIPLIER = 5

VALID_TRANSITIONS: dict[NodeStatus, list[NodeStatus]] = {
    NodeStatus.LOCKED: [NodeStatus.AVAILABLE],
    NodeStatus.AVAILABLE: [NodeStatus.COMPLETED, NodeStatus.PERFECT],
    NodeStatus.COMPLETED: [NodeStatus.AVAILABLE],  # replay
    NodeStatus.PERFECT: [NodeStatus.AVAILABLE],  # replay
}

OPEN_STATUSES = (NodeStatus.AVAILABLE, NodeStatus.LOCKED)


def validate_transition(node_id: str, current: NodeStatus, target: NodeStatus) -> None:
    """Validate a node state transition. Raises InvalidTransitionError if invalid."""
    valid = VALID_TRANSITIONS.get(current, [])
    if target not in valid:
        raise InvalidTransitionError(node_id, current.value, target.value, [s.value for s in valid])


def exercise_node_id(level: int, position: int) -> str:
    return f"{level}-{position}"


def test_node_id(level: int) -> str:
    return f"{level}-test"


def stars_for_score(score: float, settings: Settings | None = None) -> int:
    settings = settings or get_settings()
    if score >= settings.perfect_score:
        return 3
    if score >= settings.test_pass_score:
        return 2
    return 1


@dataclass(frozen=True)
class TreeTransition:
    """Result of completing the current node."""

    state: ProgressTreeState
    completed_node_id: str | None
    unlocked_node_ids: list[str] = field(default_factory=list)
    passed_test: bool | None = None
    stars: int = 0

    @property
    def exhausted(self) -> bool:
        return self.state.current_node_id is None


class ProgressTree:
    """Working copy of a tree state with O(1) node lookup by id.

    The ordered node list stays the persisted representation; the index maps
    ids to positions in it so nodes can be replaced in place.
    """

    def __init__(self, state: ProgressTreeState, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.state = state.model_copy(deep=True)
        self._index: dict[str, int] = {node.id: i for i, node in enumerate(self.state.nodes)}

    def get(self, node_id: str | None) -> ProgressTreeNode | None:
        if node_id is None:
            return None
        idx = self._index.get(node_id)
        return None if idx is None else self.state.nodes[idx]

    def require(self, node_id: str) -> ProgressTreeNode:
        node = self.get(node_id)
        if node is None:
            raise UnknownNodeError(node_id)
        return node

    def exercise(self, level: int, position: int) -> ProgressTreeNode | None:
        return self.get(exercise_node_id(level, position))

    def test(self, level: int) -> ProgressTreeNode | None:
        return self.get(test_node_id(level))

    @property
    def current(self) -> ProgressTreeNode | None:
        return self.get(self.state.current_node_id)

    def replace(self, node_id: str, **changes) -> ProgressTreeNode:
        idx = self._index.get(node_id)
        if idx is None:
            raise UnknownNodeError(node_id)
        node = self.state.nodes[idx].model_copy(update=changes)
        self.state.nodes[idx] = node
        return node

    def transition(self, node_id: str, target: NodeStatus, **changes) -> ProgressTreeNode:
        node = self.require(node_id)
        validate_transition(node_id, node.status, target)
        return self.replace(node_id, status=target, **changes)

    def unlock(self, node_id: str) -> bool:
        """Make a locked node available. Returns False when it was not locked."""
        node = self.require(node_id)
        if node.status != NodeStatus.LOCKED:
            return False
        self.transition(node_id, NodeStatus.AVAILABLE)
        return True

    def set_current(self, node_id: str | None) -> None:
        self.state.current_node_id = node_id
        self.validate_current_pointer()

    def validate_current_pointer(self) -> None:
        validate_current_pointer(self.state, self)

    def first_open(self) -> ProgressTreeNode | None:
        return next((n for n in self.state.nodes if n.status in OPEN_STATUSES), None)

    def next_open_after(self, node: ProgressTreeNode) -> ProgressTreeNode | None:
        """First available or locked node later in the journey than ``node``."""
        return next(
            (
                n for n in self.state.nodes
                if (n.level > node.level or (n.level == node.level and n.position > node.position))
                and n.status in OPEN_STATUSES
            ),
            None,
        )


def validate_current_pointer(state: ProgressTreeState, tree: ProgressTree | None = None) -> None:
    """A non-null current pointer must resolve to an available node."""
    if state.current_node_id is None:
        return
    node = tree.get(state.current_node_id) if tree is not None else next(
        (n for n in state.nodes if n.id == state.current_node_id), None
    )
    if node is None:
        raise CurrentNodeInvariantError(f"Current node {state.current_node_id} does not exist")
    if node.status != NodeStatus.AVAILABLE:
        raise CurrentNodeInvariantError(
            f"Current node {state.current_node_id} is {node.status.value}, expected available"
        )


def generate_progress_tree(
    user_id: str,
    current_level: int,
    settings: Settings | None = None,
) -> ProgressTreeState:
    """Build a fresh tree for every level up to the cap.

    Only position 0 of the user's current level starts available; it is also
    the current node.
    """
    settings = settings or get_settings()
    baseline = max(1, min(settings.max_level, current_level))
    nodes: list[ProgressTreeNode] = []

    for level in range(1, settings.max_level + 1):
        progression = get_level_progression(level)

        for position in range(settings.exercises_per_level):
            nodes.append(ProgressTreeNode(
                id=exercise_node_id(level, position),
                level=level,
                position=position,
                node_type=NodeType.EXERCISE,
                challenge_type=progression[position % len(progression)],
                status=NodeStatus.AVAILABLE if (level == baseline and position == 0) else NodeStatus.LOCKED,
                xp_reward=settings.xp_per_challenge + level * 2,
            ))

        nodes.append(ProgressTreeNode(
            id=test_node_id(level),
            level=level,
            position=TEST_POSITION,
            node_type=NodeType.TEST,
            challenge_type=progression[0],
            test_sequence=get_test_sequence(level),
            status=NodeStatus.LOCKED,
            xp_reward=settings.xp_per_challenge * TEST_XP_MULTIPLIER,
        ))

    return ProgressTreeState(
        user_id=user_id,
        nodes=nodes,
        current_node_id=exercise_node_id(baseline, 0),
        last_completed_node_id=None,
        version=settings.tree_version,
    )


def needs_regeneration(
    state: ProgressTreeState | None,
    user_id: str,
    settings: Settings | None = None,
) -> str | None:
    """Why a loaded tree must be rebuilt, or None when it is usable.

    Returns one of: missing, foreign_user, stale_version, empty, malformed.
    """
    settings = settings or get_settings()
    if state is None:
        return "missing"
    if state.user_id != user_id:
        return "foreign_user"
    if not state.version or state.version < settings.tree_version:
        return "stale_version"
    if not state.nodes:
        return "empty"
    if not _is_well_formed(state, settings):
        return "malformed"
    return None


def _is_well_formed(state: ProgressTreeState, settings: Settings) -> bool:
    per_level: dict[int, tuple[set[int], int]] = {}
    seen_ids: set[str] = set()

    for node in state.nodes:
        if node.id in seen_ids:
            return False
        seen_ids.add(node.id)
        positions, tests = per_level.get(node.level, (set(), 0))
        if node.node_type == NodeType.TEST:
            if node.id != test_node_id(node.level) or node.position != TEST_POSITION:
                return False
            tests += 1
        else:
            if node.id != exercise_node_id(node.level, node.position) or node.position in positions:
                return False
            positions.add(node.position)
        per_level[node.level] = (positions, tests)

    expected = set(range(settings.exercises_per_level))
    for positions, tests in per_level.values():
        if positions != expected or tests != 1:
            return False

    try:
        validate_current_pointer(state)
    except CurrentNodeInvariantError:
        return False
    return True


def complete_current_node(
    state: ProgressTreeState,
    score: float,
    now: datetime,
    settings: Settings | None = None,
) -> TreeTransition:
    """Record a result on the current node and advance the pointer.

    Without a current node the first available or locked node is adopted
    first. Exercises open their successor (the level test after the last
    exercise); tests open the next level when passed and stay available for a
    retry when failed. When the expected successor is missing or already
    finished, the next open node further along is used instead.
    """
    if not 0 <= score <= 100:
        raise ValueError(f"Score must be within [0, 100], got {score}")

    settings = settings or get_settings()
    tree = ProgressTree(state, settings)
    unlocked: list[str] = []

    node = tree.current
    if node is None:
        node = tree.first_open()
        if node is None:
            tree.state.current_node_id = None
            return TreeTransition(state=tree.state, completed_node_id=None)
        if tree.unlock(node.id):
            unlocked.append(node.id)
        tree.set_current(node.id)
        node = tree.require(node.id)

    stars = stars_for_score(score, settings)
    tree.state.last_completed_node_id = node.id

    if node.node_type == NodeType.TEST:
        return _complete_test(tree, node, score, stars, now, unlocked)

    best = max(stars, node.stars_earned)
    tree.transition(
        node.id,
        NodeStatus.PERFECT if best == 3 else NodeStatus.COMPLETED,
        stars_earned=best,
        completed_at=now,
    )

    if node.position >= settings.exercises_per_level - 1:
        successor = tree.test(node.level)
    else:
        successor = tree.exercise(node.level, node.position + 1)

    _advance(tree, node, successor, unlocked)
    return TreeTransition(
        state=tree.state,
        completed_node_id=node.id,
        unlocked_node_ids=unlocked,
        stars=best,
    )


def _complete_test(
    tree: ProgressTree,
    node: ProgressTreeNode,
    score: float,
    stars: int,
    now: datetime,
    unlocked: list[str],
) -> TreeTransition:
    if score < tree.settings.test_pass_score:
        tree.replace(node.id, stars_earned=0, completed_at=None)
        tree.validate_current_pointer()
        logger.info("Level %d test failed with %.1f", node.level, score)
        return TreeTransition(
            state=tree.state,
            completed_node_id=node.id,
            unlocked_node_ids=unlocked,
            passed_test=False,
            stars=0,
        )

    best = max(stars, node.stars_earned)
    tree.transition(
        node.id,
        NodeStatus.PERFECT if best == 3 else NodeStatus.COMPLETED,
        stars_earned=best,
        completed_at=now,
    )
    next_first = tree.exercise(node.level + 1, 0)
    if next_first is None:
        tree.set_current(None)
        logger.info("Level %d test passed; journey complete", node.level)
    else:
        _advance(tree, node, next_first, unlocked)
        logger.info("Level %d test passed with %.1f", node.level, score)

    return TreeTransition(
        state=tree.state,
        completed_node_id=node.id,
        unlocked_node_ids=unlocked,
        passed_test=True,
        stars=best,
    )


def _advance(
    tree: ProgressTree,
    completed: ProgressTreeNode,
    successor: ProgressTreeNode | None,
    unlocked: list[str],
) -> None:
    if successor is None or successor.is_done:
        if successor is None:
            logger.warning("Tree for %s has no successor after %s", tree.state.user_id, completed.id)
        successor = tree.next_open_after(completed)
        if successor is None:
            tree.set_current(None)
            return

    if tree.unlock(successor.id):
        unlocked.append(successor.id)
    tree.set_current(successor.id)


def set_current_node(
    state: ProgressTreeState,
    node_id: str,
    settings: Settings | None = None,
) -> ProgressTreeState:
    """Point the tree at a node the user picked.

    Locked nodes cannot be picked. Finished nodes are reopened for a replay;
    their stars are kept and can only go up.
    """
    tree = ProgressTree(state, settings)
    node = tree.require(node_id)

    if node.status == NodeStatus.LOCKED:
        raise InvalidTransitionError(
            node_id, node.status.value, "current", [s.value for s in (NodeStatus.AVAILABLE,)]
        )
    if node.is_done:
        tree.transition(node_id, NodeStatus.AVAILABLE)

    tree.set_current(node_id)
    return tree.state

"""Unit tests for the progress tree state machine."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from focusflow.errors import CurrentNodeInvariantError, InvalidTransitionError, UnknownNodeError
from focusflow.gamification.challenges import get_level_progression, get_test_sequence
from focusflow.gamification.progress_tree import (
    VALID_TRANSITIONS,
    ProgressTree,
    complete_current_node,
    generate_progress_tree,
    needs_regeneration,
    set_current_node,
    stars_for_score,
    validate_current_pointer,
    validate_transition,
)
from focusflow.gamification.schemas import NodeStatus, NodeType

NOW = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)


def _node(state, node_id):
    return next(n for n in state.nodes if n.id == node_id)


def _play_through(state, count, score, settings):
    for _ in range(count):
        state = complete_current_node(state, score, NOW, settings).state
    return state


class TestNodeStateMachine:
    """Node status transitions."""

    def test_valid_transitions_structure(self):
        """All statuses have defined transitions."""
        assert set(VALID_TRANSITIONS.keys()) == set(NodeStatus)

    def test_locked_to_available(self):
        validate_transition("1-0", NodeStatus.LOCKED, NodeStatus.AVAILABLE)

    def test_available_to_done(self):
        validate_transition("1-0", NodeStatus.AVAILABLE, NodeStatus.COMPLETED)
        validate_transition("1-0", NodeStatus.AVAILABLE, NodeStatus.PERFECT)

    def test_replay_reopens(self):
        validate_transition("1-0", NodeStatus.COMPLETED, NodeStatus.AVAILABLE)
        validate_transition("1-0", NodeStatus.PERFECT, NodeStatus.AVAILABLE)

    def test_cannot_skip_available(self):
        with pytest.raises(InvalidTransitionError, match="Invalid transition"):
            validate_transition("1-0", NodeStatus.LOCKED, NodeStatus.COMPLETED)

    def test_cannot_relock(self):
        with pytest.raises(ValueError, match="Invalid transition"):
            validate_transition("1-0", NodeStatus.AVAILABLE, NodeStatus.LOCKED)

    def test_self_transition_rejected(self):
        with pytest.raises(InvalidTransitionError):
            validate_transition("1-0", NodeStatus.AVAILABLE, NodeStatus.AVAILABLE)


class TestStars:
    @pytest.mark.parametrize("score,stars", [(0, 1), (79.9, 1), (80, 2), (94.9, 2), (95, 3), (100, 3)])
    def test_thresholds(self, score, stars, settings):
        assert stars_for_score(score, settings) == stars


class TestGenerateProgressTree:
    """Fresh tree layout."""

    def test_node_count(self, settings):
        state = generate_progress_tree("u", 1, settings)
        assert len(state.nodes) == settings.max_level * 21
        assert state.version == settings.tree_version

    def test_only_baseline_start_is_open(self, settings):
        state = generate_progress_tree("u", 4, settings)
        available = [n.id for n in state.nodes if n.status == NodeStatus.AVAILABLE]
        assert available == ["4-0"]
        assert state.current_node_id == "4-0"
        assert state.last_completed_node_id is None

    def test_level_layout(self, settings):
        state = generate_progress_tree("u", 1, settings)
        level_two = [n for n in state.nodes if n.level == 2]
        assert [n.position for n in level_two] == list(range(21))
        test = level_two[-1]
        assert test.node_type == NodeType.TEST
        assert test.id == "2-test"
        assert test.test_sequence == get_test_sequence(2)
        assert test.xp_reward == 50
        assert level_two[0].challenge_type == get_level_progression(2)[0]
        assert level_two[0].xp_reward == 14

    def test_baseline_is_clamped(self, settings):
        assert generate_progress_tree("u", 42, settings).current_node_id == "10-0"

    def test_fresh_tree_is_usable(self, settings):
        assert needs_regeneration(generate_progress_tree("u", 2, settings), "u", settings) is None


class TestNeedsRegeneration:
    """Structural checks on a loaded tree."""

    def test_missing(self, settings):
        assert needs_regeneration(None, "u", settings) == "missing"

    def test_foreign_user(self, settings):
        assert needs_regeneration(generate_progress_tree("other", 1, settings), "u", settings) == "foreign_user"

    def test_stale_version(self, settings):
        state = generate_progress_tree("u", 1, settings).model_copy(update={"version": 2})
        assert needs_regeneration(state, "u", settings) == "stale_version"

    def test_empty(self, settings):
        state = generate_progress_tree("u", 1, settings).model_copy(update={"nodes": []})
        assert needs_regeneration(state, "u", settings) == "empty"

    def test_missing_node_is_malformed(self, settings):
        state = generate_progress_tree("u", 1, settings)
        state = state.model_copy(update={"nodes": [n for n in state.nodes if n.id != "3-7"]})
        assert needs_regeneration(state, "u", settings) == "malformed"

    def test_dangling_pointer_is_malformed(self, settings):
        state = generate_progress_tree("u", 1, settings).model_copy(update={"current_node_id": "99-0"})
        assert needs_regeneration(state, "u", settings) == "malformed"

    def test_misplaced_test_node_is_malformed(self, settings):
        state = generate_progress_tree("u", 1, settings)
        nodes = [n.model_copy(update={"position": 5}) if n.id == "1-test" else n for n in state.nodes]
        state = state.model_copy(update={"nodes": nodes})
        assert needs_regeneration(state, "u", settings) == "malformed"


class TestCompleteCurrentNode:
    """Completion and pointer advance."""

    def test_exercise_unlocks_next_position(self, settings):
        state = generate_progress_tree("u", 1, settings)
        transition = complete_current_node(state, 85, NOW, settings)
        assert transition.completed_node_id == "1-0"
        assert transition.unlocked_node_ids == ["1-1"]
        assert transition.stars == 2
        done = _node(transition.state, "1-0")
        assert done.status == NodeStatus.COMPLETED
        assert done.completed_at == NOW
        assert transition.state.current_node_id == "1-1"
        assert transition.state.last_completed_node_id == "1-0"
        assert _node(transition.state, "1-2").status == NodeStatus.LOCKED

    def test_input_not_mutated(self, settings):
        state = generate_progress_tree("u", 1, settings)
        complete_current_node(state, 100, NOW, settings)
        assert _node(state, "1-0").status == NodeStatus.AVAILABLE
        assert state.current_node_id == "1-0"

    def test_perfect_score_marks_perfect(self, settings):
        state = generate_progress_tree("u", 1, settings)
        transition = complete_current_node(state, 97, NOW, settings)
        assert _node(transition.state, "1-0").status == NodeStatus.PERFECT
        assert transition.stars == 3

    def test_last_exercise_unlocks_only_the_test(self, settings):
        state = _play_through(generate_progress_tree("u", 1, settings), 19, 90, settings)
        assert state.current_node_id == "1-19"
        transition = complete_current_node(state, 90, NOW, settings)
        assert transition.unlocked_node_ids == ["1-test"]
        assert transition.state.current_node_id == "1-test"
        assert _node(transition.state, "2-0").status == NodeStatus.LOCKED

    def test_passing_test_unlocks_next_level_start(self, settings):
        state = _play_through(generate_progress_tree("u", 1, settings), 20, 90, settings)
        transition = complete_current_node(state, 80, NOW, settings)
        assert transition.passed_test is True
        assert transition.unlocked_node_ids == ["2-0"]
        assert transition.state.current_node_id == "2-0"
        assert _node(transition.state, "1-test").status == NodeStatus.COMPLETED
        assert _node(transition.state, "2-1").status == NodeStatus.LOCKED

    def test_failing_test_keeps_it_open(self, settings):
        state = _play_through(generate_progress_tree("u", 1, settings), 20, 90, settings)
        transition = complete_current_node(state, 79, NOW, settings)
        test = _node(transition.state, "1-test")
        assert transition.passed_test is False
        assert test.status == NodeStatus.AVAILABLE
        assert test.stars_earned == 0
        assert test.completed_at is None
        assert transition.state.current_node_id == "1-test"
        assert transition.state.last_completed_node_id == "1-test"
        assert transition.unlocked_node_ids == []

    def test_final_test_ends_the_journey(self, settings):
        state = _play_through(generate_progress_tree("u", 10, settings), 20, 90, settings)
        transition = complete_current_node(state, 95, NOW, settings)
        assert transition.passed_test
        assert transition.state.current_node_id is None
        assert transition.exhausted

    def test_no_current_node_adopts_first_open(self, settings):
        state = generate_progress_tree("u", 1, settings).model_copy(update={"current_node_id": None})
        transition = complete_current_node(state, 85, NOW, settings)
        assert transition.completed_node_id == "1-0"
        assert transition.state.current_node_id == "1-1"

    def test_after_journey_end_earliest_open_node_is_adopted(self, settings):
        state = _play_through(generate_progress_tree("u", 10, settings), 21, 95, settings)
        assert state.current_node_id is None
        transition = complete_current_node(state, 95, NOW, settings)
        assert transition.completed_node_id == "1-0"
        assert "1-0" in transition.unlocked_node_ids
        assert transition.state.current_node_id == "1-1"

    def test_replay_keeps_best_stars(self, settings):
        state = complete_current_node(generate_progress_tree("u", 1, settings), 100, NOW, settings).state
        state = set_current_node(state, "1-0", settings)
        transition = complete_current_node(state, 50, NOW, settings)
        replayed = _node(transition.state, "1-0")
        assert replayed.stars_earned == 3
        assert replayed.status == NodeStatus.PERFECT
        # successor already open, no new unlock
        assert transition.unlocked_node_ids == []
        assert transition.state.current_node_id == "1-1"

    def test_replay_skips_finished_successor(self, settings):
        state = _play_through(generate_progress_tree("u", 1, settings), 3, 90, settings)
        state = set_current_node(state, "1-0", settings)
        transition = complete_current_node(state, 90, NOW, settings)
        assert transition.state.current_node_id == "1-3"

    def test_score_out_of_range(self, settings):
        state = generate_progress_tree("u", 1, settings)
        with pytest.raises(ValueError, match="Score must be within"):
            complete_current_node(state, 101, NOW, settings)


class TestSetCurrentNode:
    """User node selection."""

    def test_locked_node_rejected(self, settings):
        state = generate_progress_tree("u", 1, settings)
        with pytest.raises(InvalidTransitionError):
            set_current_node(state, "1-5", settings)

    def test_unknown_node_rejected(self, settings):
        state = generate_progress_tree("u", 1, settings)
        with pytest.raises(UnknownNodeError, match="not found"):
            set_current_node(state, "nope", settings)

    def test_finished_node_reopened(self, settings):
        state = _play_through(generate_progress_tree("u", 1, settings), 2, 85, settings)
        state = set_current_node(state, "1-0", settings)
        node = _node(state, "1-0")
        assert node.status == NodeStatus.AVAILABLE
        assert node.stars_earned == 2
        assert state.current_node_id == "1-0"


class TestCurrentPointer:
    """The pointer must resolve to an available node."""

    def test_none_is_valid(self, settings):
        state = generate_progress_tree("u", 1, settings).model_copy(update={"current_node_id": None})
        validate_current_pointer(state)

    def test_locked_target_rejected(self, settings):
        tree = ProgressTree(generate_progress_tree("u", 1, settings), settings)
        with pytest.raises(CurrentNodeInvariantError):
            tree.set_current("1-4")

    def test_lookup_by_id(self, settings):
        tree = ProgressTree(generate_progress_tree("u", 1, settings), settings)
        assert tree.exercise(3, 7).id == "3-7"
        assert tree.test(3).node_type == NodeType.TEST
        assert tree.get("missing") is None

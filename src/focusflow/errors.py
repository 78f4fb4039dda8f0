"""Engine exceptions.

Only programmer errors raise. Missing state, exhausted hearts and repeated
unlocks are reported through result objects instead.
"""

from __future__ import annotations


class InvalidTransitionError(ValueError):
    """A progress tree node was asked to move to a state it cannot reach."""

    def __init__(self, node_id: str, current: str, target: str, valid: list[str]) -> None:
        self.node_id = node_id
        self.current = current
        self.target = target
        super().__init__(
            f"Invalid transition for node {node_id}: {current} -> {target}. "
            f"Valid transitions: {valid}"
        )


class UnknownNodeError(ValueError):
    """A node id does not resolve in the progress tree."""

    def __init__(self, node_id: str) -> None:
        self.node_id = node_id
        super().__init__(f"Node {node_id} not found in progress tree")


class CurrentNodeInvariantError(ValueError):
    """The current-node pointer resolved to a node that is not available."""

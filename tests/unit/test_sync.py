"""Remote sync tests."""

from __future__ import annotations

from focusflow.sync import RecordingSync, push_safely


class _BrokenSync:
    def push(self, user_id, kind, payload):
        raise ConnectionError("remote unavailable")


class TestPushSafely:
    def test_push_recorded(self):
        sync = RecordingSync()
        assert push_safely(sync, "u", "progress", {"level": 2})
        assert sync.pushed == [("u", "progress", {"level": 2})]

    def test_failure_is_swallowed(self):
        assert push_safely(_BrokenSync(), "u", "progress", {}) is False

    def test_no_sync_configured(self):
        assert push_safely(None, "u", "progress", {}) is False

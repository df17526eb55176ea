"""Unit tests for the snapshot push stream."""

from __future__ import annotations

import threading

import pytest

from shared.infrastructure.streams import SnapshotStream, StreamEvent

pytestmark = pytest.mark.unit


class TestSnapshotStream:
    def test_delivers_in_push_order(self):
        stream = SnapshotStream()
        stream.push([1])
        stream.fail(RuntimeError("boom"))
        stream.push([2])

        first, second, third = stream.get(0), stream.get(0), stream.get(0)

        assert first.snapshot == [1]
        assert second.is_error and str(second.error) == "boom"
        assert third.snapshot == [2]
        assert stream.get(0) is None

    def test_close_runs_unsubscribe_once(self):
        calls = []
        stream = SnapshotStream()
        stream.bind_unsubscribe(lambda: calls.append("unsub"))

        stream.close()
        stream.close()

        assert calls == ["unsub"]
        assert stream.closed

    def test_binding_after_close_unsubscribes_immediately(self):
        calls = []
        stream = SnapshotStream()
        stream.close()
        stream.bind_unsubscribe(lambda: calls.append("unsub"))
        assert calls == ["unsub"]

    def test_pushes_after_close_are_refused(self):
        stream = SnapshotStream()
        stream.close()
        assert stream.push([1]) is False
        assert stream.fail(RuntimeError("late")) is False
        assert stream.get(0) is None

    def test_pending_events_are_dropped_on_close(self):
        stream = SnapshotStream()
        stream.push([1])
        stream.close()
        assert list(stream) == []

    def test_close_wakes_a_blocked_consumer(self):
        stream = SnapshotStream()
        received = []

        def consume():
            received.extend(stream)

        worker = threading.Thread(target=consume)
        worker.start()
        stream.push(["snap"])
        stream.close()
        worker.join(timeout=2)

        assert not worker.is_alive()
        assert all(isinstance(event, StreamEvent) for event in received)

"""Push stream of full snapshots with explicit unsubscribe.

Producers (storage listeners, often running on a client library's own
thread) call ``push``/``fail``; a single consumer drains events with
``get`` or by iterating.  ``close`` is idempotent, wakes a blocked
consumer and runs the upstream unsubscribe hook exactly once.
"""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass
from typing import Callable, Generic, Iterator, Optional, TypeVar

T = TypeVar("T")

_CLOSED = object()


@dataclass(frozen=True)
class StreamEvent(Generic[T]):
    """One delivery: either a full snapshot or a subscription error."""

    snapshot: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None


class SnapshotStream(Generic[T]):
    """Thread-safe single-consumer stream of ``StreamEvent`` items."""

    def __init__(self, on_close: Optional[Callable[[], None]] = None) -> None:
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._closed = threading.Event()
        self._lock = threading.Lock()
        self._on_close = on_close

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def wait_closed(self, timeout: Optional[float] = None) -> bool:
        """Block until the stream is closed; ``False`` on timeout."""
        return self._closed.wait(timeout)

    def bind_unsubscribe(self, on_close: Callable[[], None]) -> None:
        """Attach the upstream unsubscribe hook once the listener exists.

        If the stream was closed in the meantime the hook runs immediately.
        """
        with self._lock:
            if not self._closed.is_set():
                self._on_close = on_close
                return
        on_close()

    def push(self, snapshot: T) -> bool:
        if self._closed.is_set():
            return False
        self._queue.put(StreamEvent(snapshot=snapshot))
        return True

    def fail(self, error: BaseException) -> bool:
        if self._closed.is_set():
            return False
        self._queue.put(StreamEvent(error=error))
        return True

    def get(self, timeout: Optional[float] = None) -> Optional[StreamEvent[T]]:
        """Return the next event, or ``None`` on timeout or once closed.

        Events still queued when the stream is closed are dropped.
        """
        if self._closed.is_set():
            return None
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        if item is _CLOSED or self._closed.is_set():
            return None
        return item  # type: ignore[return-value]

    def close(self) -> None:
        with self._lock:
            if self._closed.is_set():
                return
            self._closed.set()
            hook, self._on_close = self._on_close, None
        self._queue.put(_CLOSED)
        if hook is not None:
            hook()

    def __iter__(self) -> Iterator[StreamEvent[T]]:
        while True:
            event = self.get()
            if event is None:
                return
            yield event

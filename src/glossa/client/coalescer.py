# client/coalescer.py
"""
Change coalescing (debounce) for live document notifications.

A single structural change usually produces many near-simultaneous
notifications. The coalescer collects them and, one quiescence window after
the first, emits them as a single batch.

States:
    IDLE          -> notify() arms the timer, moves to ACCUMULATING
    ACCUMULATING  -> notify() only accumulates (timer is NOT re-armed)
    timer fires   -> swap out accumulation, back to IDLE, emit batch

The timer is injected so tests can drive virtual time.
"""

import asyncio
import heapq
import itertools
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Iterable


class TimerHandle(ABC):
    @abstractmethod
    def cancel(self) -> None:
        pass


class Timer(ABC):
    """Schedules one-shot callbacks after a delay (seconds)."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        pass


class LoopTimer(Timer):
    """Timer backed by the running asyncio event loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


class _ManualHandle(TimerHandle):
    __slots__ = ("when", "callback", "cancelled")

    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualTimer(Timer):
    """
    Virtual-time timer. Nothing fires until advance() is called.
    """

    def __init__(self):
        self.now = 0.0
        self._queue: list[tuple[float, int, _ManualHandle]] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = _ManualHandle(self.now + delay, callback)
        heapq.heappush(self._queue, (handle.when, next(self._seq), handle))
        return handle

    def advance(self, seconds: float) -> int:
        """
        Move virtual time forward, firing every due callback in order.

        Returns:
            Number of callbacks fired
        """
        target = self.now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            when, _, handle = heapq.heappop(self._queue)
            self.now = when
            if handle.cancelled:
                continue
            handle.callback()
            fired += 1
        self.now = target
        return fired

    @property
    def pending(self) -> int:
        return sum(1 for _, _, h in self._queue if not h.cancelled)


class CoalescerState(Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"


class ChangeCoalescer:
    """
    Accumulate change notifications and emit them as one batch per window.
    """

    def __init__(
        self,
        on_flush: Callable[[list[Any]], None],
        delay: float = 0.1,
        timer: Timer | None = None,
    ):
        """
        Initialize coalescer.

        Args:
            on_flush: Called with each emitted batch (list of nodes)
            delay: Quiescence window in seconds
            timer: Timer implementation (defaults to the asyncio loop)
        """
        self.on_flush = on_flush
        self.delay = delay
        self.timer = timer or LoopTimer()
        # Keyed by id(): nodes are opaque and may compare equal by value
        self._pending: dict[int, Any] = {}
        self._handle: TimerHandle | None = None
        self.batches_emitted = 0

    @property
    def state(self) -> CoalescerState:
        return CoalescerState.ACCUMULATING if self._handle is not None else CoalescerState.IDLE

    def notify(self, node: Any):
        """Record that something changed at node."""
        self._pending.setdefault(id(node), node)
        if self._handle is None:
            self._handle = self.timer.call_later(self.delay, self._fire)

    def notify_many(self, nodes: Iterable[Any]):
        for node in nodes:
            self.notify(node)

    def _fire(self):
        self._handle = None
        batch = list(self._pending.values())
        self._pending = {}
        if batch:
            self.batches_emitted += 1
            self.on_flush(batch)

    def flush(self):
        """Emit whatever is accumulated now, without waiting for the timer."""
        if self._handle is not None:
            self._handle.cancel()
        self._fire()

    def cancel(self):
        """Disarm the timer. Accumulated nodes are kept for the next flush()."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def pending_count(self) -> int:
        return len(self._pending)

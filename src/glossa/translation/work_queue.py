# translation/work_queue.py
"""
Bounded-concurrency work queue for provider calls.

One queue is shared by every connection in the process. An admission
counter caps how many jobs run at once:
- incremented when a job starts
- decremented when it finishes (success or failure)
- waiting jobs are admitted FIFO whenever the counter drops below the limit
"""

import asyncio
from collections import deque
from typing import Awaitable, Callable

Job = Callable[[], Awaitable[None]]


class BoundedWorkQueue:
    """
    Runs at most `concurrency` jobs at a time; the rest wait in FIFO order.
    """

    def __init__(self, concurrency: int = 5):
        """
        Initialize queue.

        Args:
            concurrency: Maximum number of jobs in flight
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be positive, got {concurrency}")
        self.concurrency = concurrency
        self.active = 0
        self.peak = 0
        self.completed = 0
        self.failed = 0
        self._waiting: deque[Job] = deque()
        self._tasks: set[asyncio.Task] = set()
        self._idle = asyncio.Event()
        self._idle.set()

    def submit(self, job: Job):
        """Start job now if below the limit, otherwise queue it."""
        self._idle.clear()
        if self.active < self.concurrency:
            self._start(job)
        else:
            self._waiting.append(job)

    def _start(self, job: Job):
        self.active += 1
        self.peak = max(self.peak, self.active)
        task = asyncio.get_running_loop().create_task(self._run(job))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, job: Job):
        try:
            await job()
            self.completed += 1
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.failed += 1
            print(f"❌ Work queue job failed: {type(e).__name__}: {e}")
        finally:
            self.active -= 1
            self._admit_next()

    def _admit_next(self):
        while self._waiting and self.active < self.concurrency:
            self._start(self._waiting.popleft())
        if self.active == 0 and not self._waiting:
            self._idle.set()

    async def join(self):
        """Wait until no job is running or waiting."""
        await self._idle.wait()

    async def close(self):
        """Drop waiting jobs and cancel running ones."""
        self._waiting.clear()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._idle.set()

    @property
    def waiting(self) -> int:
        return len(self._waiting)

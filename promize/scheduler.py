"""Deferred execution queues that Promises dispatch their settlements through."""

import asyncio
from abc import ABC, abstractmethod
from collections import deque
from typing import Any, Callable, Optional

Callback = Callable[[], Any]


class Scheduler(ABC):
    """Run callbacks later.

    Implementations must run callbacks in the order they were submitted, one at
    a time, and never from inside the `submit` call itself.
    """

    @abstractmethod
    def submit(self, callback: Callback) -> None:
        ...


class QueueScheduler(Scheduler):
    """A FIFO queue that runs nothing until it is stepped.

    Used as the process-wide default and in tests, where the caller decides
    when deferred work happens.
    """

    def __init__(self) -> None:
        self._queue: deque = deque()
        self._running = False

    def __len__(self) -> int:
        return len(self._queue)

    def __repr__(self):
        return '<%s at %s (%d queued)>' % (self.__class__.__name__, hex(id(self)), len(self._queue))

    def submit(self, callback: Callback) -> None:
        self._queue.append(callback)

    def step(self) -> bool:
        """Run the oldest queued callback. Return False if the queue was empty."""
        if not self._queue:
            return False
        self._queue.popleft()()
        return True

    def run(self) -> int:
        """Run callbacks until the queue is empty, including ones submitted meanwhile.

        Return the number of callbacks that ran.
        """
        return self.run_until(lambda: False)

    def run_until(self, predicate: Callable[[], bool]) -> int:
        """Run callbacks until `predicate()` is true or the queue is empty."""
        if self._running:
            raise RuntimeError('%s is already running.' % self.__class__.__name__)
        self._running = True
        count = 0
        try:
            while not predicate() and self.step():
                count += 1
        finally:
            self._running = False
        return count


class AsyncioScheduler(Scheduler):
    """Submit callbacks to an asyncio event loop with `call_soon`.

    Without an explicit loop, the loop running at submit time is used.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def submit(self, callback: Callback) -> None:
        loop = self._loop or asyncio.get_running_loop()
        loop.call_soon(callback)


_default_scheduler: Scheduler = QueueScheduler()


def get_default_scheduler() -> Scheduler:
    return _default_scheduler


def set_default_scheduler(scheduler: Scheduler) -> Scheduler:
    """Replace the process-wide default Scheduler and return the previous one."""
    global _default_scheduler
    if not isinstance(scheduler, Scheduler):
        raise TypeError('%s is not an instance of %s' % (repr(scheduler), repr(Scheduler)))
    previous, _default_scheduler = _default_scheduler, scheduler
    return previous

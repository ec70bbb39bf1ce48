"""Promise with asyncio."""

import asyncio
import warnings
from typing import Any, Optional, Type

from .exceptions import AsyncPromiseWarning, PromiseRejection
from .promise import Promise as BasePromise
from .promise import PromiseType
from .scheduler import AsyncioScheduler, Scheduler
from .utils import callable_name, one_line_warning_format


class Promise(BasePromise):
    """A Promise that runs on the asyncio event loop and can be awaited.

    Without an explicit Scheduler it must be created while a loop is running,
    and settles on that loop.
    """

    @classmethod
    def _default_scheduler(cls) -> Scheduler:
        return AsyncioScheduler(asyncio.get_running_loop())

    @classmethod
    def _ensure_future(cls, item):
        try:
            return asyncio.ensure_future(item)
        except TypeError:
            future = asyncio.get_running_loop().create_future()
            future.set_result(item)
            return future

    @classmethod
    def from_awaitable(cls: Type[PromiseType], awaitable: Any, *,
                       scheduler: Optional[Scheduler] = None) -> PromiseType:
        """Return a Promise that settles with the outcome of a coroutine, Task or Future.

        A value that is not awaitable resolves the Promise as is.
        """
        future = cls._ensure_future(awaitable)

        def executor(resolve, reject):
            def done(fut):
                if fut.cancelled():
                    with one_line_warning_format():
                        warnings.warn(AsyncPromiseWarning(
                            'Future was cancelled before the Promise settled:\n%s'
                            % promise.__str__(),
                        ))
                    reject(asyncio.CancelledError())
                    return
                exc = fut.exception()
                if exc is not None:
                    reject(exc)
                else:
                    resolve(fut.result())
            future.add_done_callback(done)

        promise = cls(executor, named='%s.from_awaitable(%s)' % (cls.__name__, callable_name(awaitable)),
                      scheduler=scheduler)
        return promise

    async def awaitable(self):
        """Wait for the Promise to settle.

        Return its value if it resolved, raise the reason if it rejected.
        """
        future = asyncio.get_running_loop().create_future()

        def resolver(settled):
            if not future.done():
                future.set_result(None)

        self._add_resolver(resolver)
        await future

        if self.is_resolved:
            return self._value
        reason = self._value
        if isinstance(reason, BaseException):
            raise reason
        raise PromiseRejection(reason)

    def __await__(self):
        return self.awaitable().__await__()

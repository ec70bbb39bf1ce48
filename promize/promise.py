"""The Promise class."""

import warnings
from collections import deque
from functools import partial
from inspect import getattr_static
from typing import (Any, Callable, Dict, Iterable, List, NamedTuple, Optional,
                    Type, TypeVar)

from .base import PENDING, REJECTED, RESOLVED, PromiseState
from .exceptions import (ChainingCycleError, HandlerNotCallableError,
                         PromiseAggregateError, PromisePending,
                         PromiseRejection,
                         UnhandledPromiseRejectionWarning)
from .scheduler import QueueScheduler, Scheduler, get_default_scheduler
from .utils import callable_name, one_line_warning_format

PromiseType = TypeVar('PromiseType', bound='Promise')
SettleFunc = Callable[..., None]
ExecutorFunc = Callable[[SettleFunc, SettleFunc], None]

warnings.simplefilter('always', UnhandledPromiseRejectionWarning)

# Raised from user code, these escape to whoever drives the scheduler
# instead of becoming rejections.
_PASSTHROUGH = (KeyboardInterrupt, SystemExit)

_MISSING = object()


def _passthrough(value):
    """Return the value unmodified.

    This is the default on-resolve handler.
    """
    return value


def _reraise(exc):
    """Re-raise the exception.

    This is the default on-reject handler.
    """
    if isinstance(exc, BaseException):
        raise exc
    raise PromiseRejection(exc)


def _noop(*args):
    pass


def _reason_of(exc):
    if isinstance(exc, PromiseRejection):
        return exc.value
    return exc


class Deferred(NamedTuple):
    """A Promise together with the functions that settle it from the outside."""

    promise: 'Promise'
    resolve: SettleFunc
    reject: SettleFunc


class _Continuation:
    """A `then` registration: the handler for each outcome and the Promise it settles."""

    __slots__ = ('promise', 'handlers')

    def __init__(self, promise: 'Promise', handlers: Dict[PromiseState, Callable[[Any], Any]]):
        self.promise = promise
        self.handlers = handlers

    def __call__(self, settled: 'Promise'):
        try:
            returned = self.handlers[settled._state](settled._value)
        except _PASSTHROUGH:
            raise
        except BaseException as e:
            self.promise._reject(_reason_of(e))
            return
        self.promise._resolve_promise(self.promise, returned)


class _Adoption:
    """Make a Promise follow the settlement of the Promise it is subscribed to."""

    __slots__ = ('promise',)

    def __init__(self, promise: 'Promise'):
        self.promise = promise

    def __call__(self, settled: 'Promise'):
        if settled._state is RESOLVED:
            # Re-enter the procedure so that chains of any depth unwrap.
            self.promise._resolve_promise(self.promise, settled._value)
        else:
            self.promise._reject(settled._value)


class Promise:
    """A one-shot container for the eventual result of an operation.

    The executor is called synchronously with a `resolve` and a `reject`
    function. Only the first call to either of them has any effect; resolving
    with a thenable makes this Promise adopt its outcome.

    Settlement and every handler registered with `then` run on the Promise's
    Scheduler, never inside the call that triggered them. Promises created by
    chaining share the Scheduler of the Promise they were chained from.
    """

    def __init__(self, executor: ExecutorFunc, *, named: Optional[str] = None,
                 scheduler: Optional[Scheduler] = None):
        if not callable(executor):
            raise HandlerNotCallableError('%s is not callable.' % repr(executor))

        self._state: PromiseState = PENDING
        self._value: Any = None
        self._resolvers: deque = deque()
        self._scheduler: Scheduler = scheduler if scheduler is not None else self._default_scheduler()
        self._name: str = named or callable_name(executor)

        resolve, reject = self._make_capabilities()
        try:
            executor(resolve, reject)
        except _PASSTHROUGH:
            raise
        except BaseException as e:
            reject(_reason_of(e))

    @classmethod
    def _default_scheduler(cls) -> Scheduler:
        return get_default_scheduler()

    def _make_capabilities(self):
        """Create the `resolve` and `reject` functions handed to the executor."""
        called = False

        def resolve(value=None):
            nonlocal called
            if called:
                return
            called = True
            self._resolve_promise(self, value)

        def reject(reason=None):
            nonlocal called
            if called:
                return
            called = True
            self._reject(reason)

        return resolve, reject

    @property
    def state(self) -> PromiseState:
        """Return the state of the Promise."""
        return self._state

    @property
    def value(self) -> Any:
        """Return the value or the reason for rejection of the Promise.

        Raise PromisePending if the Promise has not settled yet.
        """
        if self._state is PENDING:
            raise PromisePending()
        return self._value

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def is_pending(self) -> bool:
        """Return True if the Promise's state is PENDING, and False otherwise."""
        return self._state is PENDING

    @property
    def is_settled(self) -> bool:
        """Return True if the Promise's state is either RESOLVED or REJECTED (settled)."""
        return self._state is not PENDING

    @property
    def is_resolved(self) -> bool:
        """Return True if the Promise's state is RESOLVED, and False otherwise."""
        return self._state is RESOLVED

    @property
    def is_rejected(self) -> bool:
        """Return True if the Promise's state is REJECTED, and False otherwise."""
        return self._state is REJECTED

    def get(self, default=None) -> Any:
        """Return the value or reason of the Promise, or `default` if there is none yet."""
        return self._value if self._value is not None else default

    def resolved(self, default=None) -> Any:
        """Return the value of the Promise if it is RESOLVED, otherwise return `default`."""
        if self._state is RESOLVED and self._value is not None:
            return self._value
        return default

    def rejected(self, default=None) -> Any:
        """Return the reason for rejection of the Promise if it is REJECTED, otherwise return `default`."""
        if self._state is REJECTED and self._value is not None:
            return self._value
        return default

    def is_rejected_due_to(self, exc_class) -> bool:
        """Check whether the Promise was rejected due to a specific type of exception.

        Return True if the Promise is REJECTED and its value is an instance of `exc_class`, and False in
        all other cases.
        """
        return self._state is REJECTED and isinstance(self._value, exc_class)

    def _add_resolver(self, resolver: Callable[['Promise'], None]):
        """Call `resolver(self)` once the Promise settles.

        If it has already settled, the call still happens on a later turn of the Scheduler.
        """
        if self._state is PENDING:
            self._resolvers.append(resolver)
        else:
            self._scheduler.submit(partial(resolver, self))

    def _resolve(self, value):
        """Schedule fulfilling the Promise with `value`, unwrapped."""
        self._settle(RESOLVED, value)

    def _reject(self, reason):
        """Schedule rejecting the Promise with `reason`."""
        self._settle(REJECTED, reason)

    def _settle(self, state: PromiseState, value):
        if self._state is PENDING:
            self._scheduler.submit(partial(self._transition, state, value))

    def _transition(self, state: PromiseState, value):
        """Actually settle the Promise, and begin processing resolvers."""
        if self._state is not PENDING:
            return
        self._state = state
        self._value = value
        self._run_resolvers()

    def _run_resolvers(self):
        """Process resolvers."""
        if not self._resolvers and self._state is REJECTED:
            with one_line_warning_format():
                warnings.warn(UnhandledPromiseRejectionWarning(self))
            return
        while self._resolvers:
            resolver = self._resolvers.popleft()
            try:
                resolver(self)
            except BaseException:
                # The rest still run, on a later turn.
                if self._resolvers:
                    self._scheduler.submit(self._run_resolvers)
                raise

    @classmethod
    def _resolve_promise(cls, this: 'Promise', returned: Any):
        """Follow the Promise Resolution Procedure in the Promise/A+ specification."""
        if this is returned:
            return this._reject(ChainingCycleError(this))

        if isinstance(returned, Promise):
            return returned._add_resolver(_Adoption(this))

        if returned is None:
            return this._resolve(returned)

        try:
            then = returned.then
        except _PASSTHROUGH:
            raise
        except AttributeError as e:
            if getattr_static(returned, 'then', _MISSING) is _MISSING:
                return this._resolve(returned)
            return this._reject(_reason_of(e))
        except BaseException as e:
            return this._reject(_reason_of(e))

        if callable(then):
            return cls._resolve_promise_like(this, then)
        return this._resolve(returned)

    @classmethod
    def _resolve_promise_like(cls, this: 'Promise', then: Callable[[SettleFunc, SettleFunc], Any]):
        """Adopt the outcome of a foreign thenable.

        Only the first call to either callback counts. Exceptions raised by
        `then` after that are ignored.
        """
        called = False

        def resolve_with(value=None):
            nonlocal called
            if called:
                return
            called = True
            cls._resolve_promise(this, value)

        def reject_with(reason=None):
            nonlocal called
            if called:
                return
            called = True
            this._reject(reason)

        try:
            then(resolve_with, reject_with)
        except _PASSTHROUGH:
            raise
        except BaseException as e:
            if not called:
                called = True
                this._reject(_reason_of(e))

    def _successor(self: PromiseType, named: str) -> PromiseType:
        return self.__class__(_noop, named=named, scheduler=self._scheduler)

    def then(self: PromiseType, on_resolve=None, on_reject=None) -> PromiseType:
        """Chain handlers to the outcome of this Promise.

        Return a new Promise that settles with whatever the called handler
        returns, or rejects with what it raises. Missing handlers pass the value
        or the rejection through.
        """
        if not callable(on_resolve):
            on_resolve = _passthrough
        if not callable(on_reject):
            on_reject = _reraise

        promise = self._successor(
            '%s|%s,%s' % (self._name, callable_name(on_resolve), callable_name(on_reject)),
        )
        self._add_resolver(_Continuation(promise, {
            RESOLVED: on_resolve,
            REJECTED: on_reject,
        }))
        return promise

    def catch(self: PromiseType, on_reject=None) -> PromiseType:
        """Chain a handler to the rejection of this Promise. Same as `then(None, on_reject)`."""
        return self.then(None, on_reject)

    def finally_(self: PromiseType, on_settle=None) -> PromiseType:
        """Call `on_settle()` once this Promise settles, either way.

        The returned Promise settles like this one did. If `on_settle` raises or
        returns a Promise that rejects, it rejects with that reason instead. A
        Promise returned by `on_settle` is waited for.
        """
        cls: Type[PromiseType] = self.__class__
        scheduler = self._scheduler
        if not callable(on_settle):
            on_settle = _noop

        def after_resolve(value):
            return cls.resolve(on_settle(), scheduler=scheduler).then(lambda _: value)

        def after_reject(reason):
            return cls.resolve(on_settle(), scheduler=scheduler).then(lambda _: _reraise(reason))

        return self.then(after_resolve, after_reject)

    @classmethod
    def resolve(cls: Type[PromiseType], value=None, *, scheduler: Optional[Scheduler] = None) -> PromiseType:
        """Return a Promise that is resolved with `value`.

        If the `value` is another Promise or a thenable, this Promise will adopt its state and value.
        """
        return cls(lambda resolve, _: resolve(value), named='%s.resolve' % cls.__name__, scheduler=scheduler)

    @classmethod
    def reject(cls: Type[PromiseType], reason=None, *, scheduler: Optional[Scheduler] = None) -> PromiseType:
        """Return a Promise that is rejected with `reason`. The reason is never unwrapped."""
        return cls(lambda _, reject: reject(reason), named='%s.reject' % cls.__name__, scheduler=scheduler)

    @classmethod
    def deferred(cls: Type[PromiseType], *, scheduler: Optional[Scheduler] = None) -> Deferred:
        """Return a pending Promise along with its `resolve` and `reject` functions."""
        capabilities: List[SettleFunc] = []

        def executor(resolve, reject):
            capabilities.extend((resolve, reject))

        promise = cls(executor, named='%s.deferred' % cls.__name__, scheduler=scheduler)
        return Deferred(promise, *capabilities)

    defer = deferred

    @classmethod
    def settle(cls, promise: PromiseType) -> PromiseType:
        """Run the Scheduler of a Promise until the Promise is settled.

        Only Promises bound to a QueueScheduler can be driven this way. If the
        queue runs dry first, the Promise is returned still PENDING.
        """
        if not isinstance(promise, Promise):
            raise TypeError(type(promise))
        scheduler = promise._scheduler
        if not isinstance(scheduler, QueueScheduler):
            raise TypeError('%s is bound to %s, which cannot be driven.' % (promise, repr(scheduler)))
        scheduler.run_until(lambda: promise.is_settled)
        return promise

    @classmethod
    def _ensure_promises(cls, promises: Iterable[Any], scheduler: Optional[Scheduler]) -> List['Promise']:
        return [p if isinstance(p, Promise) else cls.resolve(p, scheduler=scheduler) for p in promises]

    @classmethod
    def all(cls: Type[PromiseType], promises: Iterable[Any], *,
            scheduler: Optional[Scheduler] = None) -> PromiseType:
        """Return a Promise that resolves with the values of all the Promises, in order.

        It rejects as soon as any of them rejects, with that reason. Items that
        are not Promises are passed through `resolve` first.
        """
        promises = cls._ensure_promises(promises, scheduler)

        def executor(resolve, reject):
            remaining = len(promises)
            results = [None] * remaining

            def resolver(index, settled):
                nonlocal remaining
                if settled._state is REJECTED:
                    return reject(settled._value)
                results[index] = settled._value
                remaining -= 1
                if not remaining:
                    resolve(results)

            if not promises:
                resolve(results)
            for index, p in enumerate(promises):
                p._add_resolver(partial(resolver, index))

        return cls(executor, named='%s.all' % cls.__name__, scheduler=scheduler)

    @classmethod
    def race(cls: Type[PromiseType], promises: Iterable[Any], *,
             scheduler: Optional[Scheduler] = None) -> PromiseType:
        """Return a Promise that settles like the first of the Promises to settle.

        Later settlements are ignored. With no Promises it stays PENDING.
        """
        promises = cls._ensure_promises(promises, scheduler)

        def executor(resolve, reject):
            settlers = {RESOLVED: resolve, REJECTED: reject}

            def resolver(settled):
                settlers[settled._state](settled._value)

            for p in promises:
                p._add_resolver(resolver)

        return cls(executor, named='%s.race' % cls.__name__, scheduler=scheduler)

    @classmethod
    def all_settled(cls: Type[PromiseType], promises: Iterable[Any], *,
                    scheduler: Optional[Scheduler] = None) -> PromiseType:
        """Return a new Promise that resolves when all the Promises have settled i.e. either RESOLVED or REJECTED.

        This Promise always resolves with the list of Promises provided.
        """
        promises = cls._ensure_promises(promises, scheduler)

        def executor(resolve, reject):
            remaining = len(promises)

            def resolver(settled):
                nonlocal remaining
                remaining -= 1
                if not remaining:
                    resolve(promises)

            if not promises:
                resolve(promises)
            for p in promises:
                p._add_resolver(resolver)

        return cls(executor, named='%s.all_settled' % cls.__name__, scheduler=scheduler)

    @classmethod
    def any(cls: Type[PromiseType], promises: Iterable[Any], *,
            scheduler: Optional[Scheduler] = None) -> PromiseType:
        """Return a new Promise that ignores rejections among the provided Promises and resolves upon the first resolution.

        If all Promises reject, it will reject with a PromiseAggregateError
        holding every reason, in order.
        """
        promises = cls._ensure_promises(promises, scheduler)

        def executor(resolve, reject):
            remaining = len(promises)
            errors = [None] * remaining

            def resolver(index, settled):
                nonlocal remaining
                if settled._state is RESOLVED:
                    return resolve(settled._value)
                errors[index] = settled._value
                remaining -= 1
                if not remaining:
                    reject(PromiseAggregateError(errors))

            if not promises:
                reject(PromiseAggregateError())
            for index, p in enumerate(promises):
                p._add_resolver(partial(resolver, index))

        return cls(executor, named='%s.any' % cls.__name__, scheduler=scheduler)

    def __str__(self):
        s1 = "<Promise '%s' at %s (%s)" % (self._name, hex(id(self)), self._state.value)
        if self._state is PENDING:
            return s1 + '>'
        elif self._state is RESOLVED:
            return s1 + ' => ' + str(self._value) + '>'
        else:
            return s1 + ' => ' + repr(self._value) + '>'

    def __repr__(self):
        return '<%s %s at %s (%s): %s>' % (
            self.__class__.__name__, repr(self._name), hex(id(self)),
            self._state.value, repr(self._value),
        )

    def _not_async(self, *args, **kwargs):
        raise NotImplementedError(
            '%s is not async-compatible.\n'
            'To enable async functionality, use promize.async_.Promise'
            % (repr(self.__class__)),
        )

    __await__ = _not_async

    def __getattr__(self, name):
        if name == 'awaitable':
            return self._not_async
        return object.__getattribute__(self, name)

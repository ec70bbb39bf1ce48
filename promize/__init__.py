"""Promises/A+ for Python."""

from .base import PENDING, REJECTED, RESOLVED, PromiseState
from .exceptions import (AsyncPromiseWarning, ChainingCycleError,
                         HandlerNotCallableError, PromiseAggregateError,
                         PromiseException, PromisePending, PromiseRejection,
                         PromiseWarning, UnhandledPromiseRejectionWarning)
from .promise import Deferred, Promise
from .scheduler import (AsyncioScheduler, QueueScheduler, Scheduler,
                        get_default_scheduler, set_default_scheduler)

__all__ = [
    'PENDING', 'RESOLVED', 'REJECTED', 'PromiseState',
    'Promise', 'Deferred',
    'Scheduler', 'QueueScheduler', 'AsyncioScheduler',
    'get_default_scheduler', 'set_default_scheduler',
    'PromiseRejection', 'ChainingCycleError', 'PromiseAggregateError',
    'PromiseException', 'PromisePending', 'HandlerNotCallableError',
    'PromiseWarning', 'AsyncPromiseWarning', 'UnhandledPromiseRejectionWarning',
]

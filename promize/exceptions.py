"""Exceptions."""

from traceback import format_tb


class PromiseRejection(RuntimeError):
    """Wrapper around a non-Exception rejection so that it can be raised."""

    def __init__(self, non_exc):
        """Create an Exception that allows a non-Exception rejection to be raised."""
        super().__init__(non_exc)
        self.value = non_exc

    def __str__(self):
        """Print reason of rejection."""
        return self.__class__.__name__ + ': ' + str(self.value)


class ChainingCycleError(TypeError):
    """A Promise was resolved with itself."""

    def __init__(self, promise):
        super().__init__('Chaining cycle detected for %s' % promise)
        self.promise = promise


class PromiseAggregateError(RuntimeError):
    """PromiseAggregateError.

    Raised when the result of a Promise aggregation does not meet the requirements
    of the aggregation strategy, currently only used in `Promise.any`. The reasons
    of the rejected Promises are kept in `errors`, in input order.
    """

    def __init__(self, errors=()):
        super().__init__(*errors)
        self.errors = list(errors)

    def __str__(self):
        """Print PromiseAggregateError."""
        return self.__class__.__name__ + ': No Promise in Promise.any was resolved.'


class PromiseException(Exception):
    """Base class for Exceptions indicating unexpected Promise behaviors."""

    pass


class PromisePending(PromiseException):
    """Attempted to access the value of a Promise when it is still PENDING."""

    def __init__(self, *args, **kwargs):
        super().__init__('Promise has not been settled.', *args, **kwargs)


class HandlerNotCallableError(PromiseException, TypeError):
    """Attempted to create a Promise with a non-callable executor."""

    pass


class PromiseWarning(RuntimeWarning):
    """Base class for potentially unintended Promise effects that do not warrant an exception but are worth warned."""

    def _print_warning(self):
        return '%s: %s\n' % (self.__class__.__name__, self.__str__())


class AsyncPromiseWarning(PromiseWarning):
    """PromiseWarning related to asyncio."""

    pass


class UnhandledPromiseRejectionWarning(PromiseWarning):
    """Promise was rejected but there were no handlers reacting to the rejection when it settled."""

    def __init__(self, promise, *args, **kwargs):
        """Initialize warning with the Promise that was left rejected."""
        super().__init__(*args, **kwargs)
        self.promise = promise

    def _print_warning(self):
        reason = self.promise._value
        warn = self.__class__.__name__ + ': Unhandled Promise rejection: '
        if isinstance(reason, BaseException):
            tb = format_tb(reason.__traceback__)
            return (
                'Traceback (most recent call last):\n%s%s%s: %s\n  in %s\n'
                % (''.join(tb), warn, reason.__class__.__name__, str(reason), str(self.promise))
            )
        else:
            return '%s%s\n  in %s' % (warn, str(reason), str(self.promise))

    def __str__(self):
        return self.__class__.__name__ + ': ' + str(self.promise._value) + '\n'

"""Helpers shared by the Promise classes."""

import warnings
from contextlib import contextmanager

from .exceptions import PromiseWarning


@contextmanager
def one_line_warning_format():
    """Render PromiseWarnings with their own formatter while the block runs.

    Other warning categories keep the standard format.
    """
    formatwarning = warnings.formatwarning

    def _format_warning(message, category, filename, lineno, line=None):
        if isinstance(message, PromiseWarning):
            return message._print_warning()
        return formatwarning(message, category, filename, lineno, line)

    warnings.formatwarning = _format_warning
    try:
        yield
    finally:
        warnings.formatwarning = formatwarning


def callable_name(func) -> str:
    return getattr(func, '__name__', None) or func.__class__.__name__

"""Common definitions."""

from enum import Enum


class PromiseState(Enum):

    PENDING = 'pending'
    RESOLVED = 'resolved'
    REJECTED = 'rejected'

    def __str__(self):
        """Print PromiseState."""
        return self.value


PENDING = PromiseState.PENDING
RESOLVED = PromiseState.RESOLVED
REJECTED = PromiseState.REJECTED

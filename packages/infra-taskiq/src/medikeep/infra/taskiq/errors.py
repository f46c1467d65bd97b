"""TaskIQ infrastructure errors."""

from __future__ import annotations


class TaskIQError(Exception):
    """Base exception for TaskIQ infrastructure errors."""

    #: Whether this error type is considered transient (retryable).
    transient: bool = False


class TaskIQBrokerError(TaskIQError):
    """Raised when broker startup or shutdown fails.

    Typically transient: Redis may come back.
    """

    transient: bool = True

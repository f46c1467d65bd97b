"""Domain exception hierarchy for classified error handling.

Every error a membership operation can surface to its caller is one of the
classified kinds in :class:`ErrorKind`. Exceptions carry the kind, a
machine-readable error code and structured context so the API layer can
translate them consistently and logs stay greppable.

Example:
    >>> from medikeep.foundation.domain.exceptions import NotFoundError
    >>> raise NotFoundError("Space", "space-123")
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

__all__ = [
    "AlreadyExistsError",
    "AuthenticationError",
    "DomainError",
    "ErrorKind",
    "FailedPreconditionError",
    "InternalError",
    "InvalidArgumentError",
    "NotFoundError",
    "PermissionDeniedError",
]


class ErrorKind(StrEnum):
    """Classified error kinds returned to synchronous callers."""

    INVALID_ARGUMENT = "invalid-argument"
    NOT_FOUND = "not-found"
    PERMISSION_DENIED = "permission-denied"
    ALREADY_EXISTS = "already-exists"
    FAILED_PRECONDITION = "failed-precondition"
    UNAUTHENTICATED = "unauthenticated"
    INTERNAL = "internal"


class DomainError(Exception):
    """Base class for all domain errors.

    Provides error kind, error code and structured context for debugging.

    Attributes:
        kind: Classified error kind (see :class:`ErrorKind`).
        error_code: Machine-readable error code for client handling.
        message: Human-readable error description.
        context: Structured debugging information (space IDs, user IDs).

    Example:
        >>> raise DomainError("Operation failed", context={"space_id": "s1"})
        DomainError: Operation failed (space_id=s1)
    """

    kind: ErrorKind = ErrorKind.INTERNAL
    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        """Initialize domain error with message and optional context.

        Args:
            message: Human-readable error description.
            context: Structured debugging information. Keys should be snake_case.
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """String representation including context for logging."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message

    def __repr__(self) -> str:
        """Detailed representation for debugging."""
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class InvalidArgumentError(DomainError):
    """Raised when a required input is missing or malformed.

    Caller fault, not retriable. Maps to HTTP 400.

    Attributes:
        field: Name of the offending input.
        reason: Why the input was rejected.

    Example:
        >>> raise InvalidArgumentError("space_id", "is required")
        InvalidArgumentError: Invalid argument 'space_id': is required
    """

    kind = ErrorKind.INVALID_ARGUMENT
    error_code: str = "INVALID_ARGUMENT"

    def __init__(self, field: str, reason: str, **extra_context: Any) -> None:
        self.field = field
        self.reason = reason
        message = f"Invalid argument '{field}': {reason}"
        super().__init__(message, {"field": field, "reason": reason, **extra_context})


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist.

    Maps to HTTP 404 Not Found.

    Attributes:
        resource_type: Type of missing resource.
        resource_id: Identifier (or lookup key) of missing resource.

    Example:
        >>> raise NotFoundError("User", "u2@example.com")
        NotFoundError: User not found: u2@example.com
    """

    kind = ErrorKind.NOT_FOUND
    error_code: str = "NOT_FOUND"

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        **extra_context: Any,
    ) -> None:
        """Initialize not found error.

        Args:
            resource_type: Type of resource (e.g., "Space", "User").
            resource_id: Identifier or lookup key of the missing resource.
            **extra_context: Additional debugging context.
        """
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type} not found: {resource_id}"
        context = {
            "resource_type": resource_type,
            "resource_id": str(resource_id),
            **extra_context,
        }
        super().__init__(message, context)


class PermissionDeniedError(DomainError):
    """Raised when an identified caller lacks the role an operation requires.

    Maps to HTTP 403 Forbidden.

    Example:
        >>> raise PermissionDeniedError(
        ...     "Only an owner can invite members", context={"space_id": "s1"}
        ... )
    """

    kind = ErrorKind.PERMISSION_DENIED
    error_code: str = "PERMISSION_DENIED"


class AlreadyExistsError(DomainError):
    """Raised when an operation would create state that already exists.

    Maps to HTTP 409 Conflict.

    Example:
        >>> raise AlreadyExistsError("User is already a member", user_id="u2")
        AlreadyExistsError: Already exists: User is already a member (user_id=u2)
    """

    kind = ErrorKind.ALREADY_EXISTS
    error_code: str = "ALREADY_EXISTS"

    def __init__(self, reason: str, **context: Any) -> None:
        self.reason = reason
        super().__init__(f"Already exists: {reason}", context)


class FailedPreconditionError(DomainError):
    """Raised when an operation would violate a domain invariant.

    The canonical case is removing the last owner of a space. Maps to
    HTTP 412 Precondition Failed.

    Example:
        >>> raise FailedPreconditionError(
        ...     "A space must keep at least one owner", space_id="s1"
        ... )
    """

    kind = ErrorKind.FAILED_PRECONDITION
    error_code: str = "FAILED_PRECONDITION"

    def __init__(self, reason: str, **context: Any) -> None:
        self.reason = reason
        super().__init__(reason, context)


class InternalError(DomainError):
    """Raised when an unexpected store failure interrupts an operation.

    Wraps the underlying cause (available as ``__cause__`` and ``cause``).
    Maps to HTTP 500.

    Example:
        >>> try:
        ...     ...
        ... except StoreError as exc:
        ...     raise InternalError("Database error", cause=exc) from exc
    """

    kind = ErrorKind.INTERNAL
    error_code: str = "INTERNAL"

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        **context: Any,
    ) -> None:
        self.cause = cause
        if cause is not None:
            message = f"{message}: {cause}"
            context.setdefault("cause_type", type(cause).__name__)
        super().__init__(message, context)


class AuthenticationError(DomainError):
    """Raised when a presented credential cannot be verified.

    Maps to HTTP 401 Unauthorized. A request that presents no credential at
    all is not an authentication error; it simply has no caller identity.

    Attributes:
        auth_error: RFC 6750 error code for the WWW-Authenticate header.
    """

    kind = ErrorKind.UNAUTHENTICATED
    error_code: str = "AUTHENTICATION_ERROR"

    def __init__(
        self,
        message: str,
        auth_error: str = "invalid_token",
        error_code: str = "AUTHENTICATION_ERROR",
        context: dict[str, Any] | None = None,
    ) -> None:
        self.auth_error = auth_error
        self.error_code = error_code
        super().__init__(message, context)

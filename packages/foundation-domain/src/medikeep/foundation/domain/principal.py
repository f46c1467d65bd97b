"""Principal value object representing a verified caller identity.

Pure domain object with no external dependencies. Immutable (frozen dataclass).
Built from verified Firebase ID token claims by the auth middleware.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated user performing a request.

    Attributes:
        uid: Firebase user id. Same value as the UserProfile document id
            and the keys of a space's member map.
        email: Email claim. None if absent.
        email_verified: Whether the identity provider verified the email.
    """

    uid: str
    email: str | None = None
    email_verified: bool = False

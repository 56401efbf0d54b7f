"""
Error taxonomy for the credential service.

Routes translate these into HTTP responses; messages never carry
plaintext passwords or driver-specific details.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for every failure raised by the auth layer."""

    message = "Authentication error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class UserAlreadyExists(AuthError):
    message = "User already exists"

    def __init__(self, username: str) -> None:
        super().__init__(f"User '{username}' already exists")
        self.username = username


class InvalidCredentials(AuthError):
    # Unknown user and wrong password share this message on purpose.
    message = "Invalid username or password"


class StoreUnavailable(AuthError):
    message = "Credential store unavailable"


class DuplicateKey(AuthError):
    """Raised by a store when an insert collides with an existing username."""

    message = "Duplicate username"

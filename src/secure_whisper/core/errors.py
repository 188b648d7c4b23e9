"""Domain error taxonomy shared by services and the HTTP layer.

Services raise these exceptions; ``secure_whisper.main`` translates them into
HTTP responses. Errors with a 5xx status are reported to clients with a
generic message only, the real detail stays in the server log.
"""

from __future__ import annotations

from fastapi import status

GENERIC_FAILURE_MESSAGE = "Internal server error"


class ServiceError(Exception):
    """Base class for errors raised by the chat services."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = GENERIC_FAILURE_MESSAGE) -> None:
        super().__init__(message)
        self.message = message

    @property
    def public_message(self) -> str:
        """Return the message that may be shown to a client."""
        if self.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            return GENERIC_FAILURE_MESSAGE
        return self.message


class ValidationError(ServiceError):
    """Raised for missing or malformed input."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(ServiceError):
    """Raised for a missing or invalid token, or rejected credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidCredentialsError(AuthError):
    """Login failure; reported as 400 like the rest of the login validation."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self) -> None:
        super().__init__("Invalid credentials")


class ConflictError(ServiceError):
    """Raised when a username or email is already registered."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(ServiceError):
    """Raised when a referenced user or chat does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class DecryptionError(ServiceError):
    """Raised when a stored ciphertext fails authentication or is malformed."""


class InternalError(ServiceError):
    """Raised for storage or codec failures not otherwise classified."""

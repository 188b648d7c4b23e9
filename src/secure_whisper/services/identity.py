# src/secure_whisper/services/identity.py
"""Registration, login and session token verification."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from secure_whisper.core import security
from secure_whisper.core.errors import AuthError, InvalidCredentialsError, ValidationError
from secure_whisper.repositories.storage import Storage, UserRecord
from secure_whisper.services.revocation import TokenRevocationList

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """Authenticated caller as asserted by a session token."""

    id: int
    username: str
    email: str | None
    jti: str
    expires_at: float

    def public(self) -> dict[str, Any]:
        """Return the profile fields safe to show to clients."""
        return {"id": self.id, "username": self.username, "email": self.email}


def public_user(user: UserRecord) -> dict[str, Any]:
    """Return the client-facing view of a stored user."""
    return {"id": user.id, "username": user.username, "email": user.email}


@lru_cache(maxsize=4)
def _dummy_hash(rounds: int) -> str:
    return security.hash_password("not-a-real-password", rounds)


class SessionTokens:
    """Issues, verifies and revokes signed session tokens.

    The signing secret is passed in explicitly so tests can run isolated
    instances with distinct keys.
    """

    def __init__(
        self,
        secret_key: str,
        *,
        algorithm: str = "HS256",
        ttl_minutes: int = 60 * 24 * 30,
        revocations: TokenRevocationList | None = None,
    ) -> None:
        if not secret_key:
            raise ValueError("A token signing secret is required")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._ttl_minutes = ttl_minutes
        self._revocations = revocations if revocations is not None else TokenRevocationList()

    def issue(self, user: UserRecord) -> str:
        """Return a token binding the user's id, username and email."""
        claims = {"sub": str(user.id), **public_user(user)}
        return security.create_access_token(
            claims,
            self._secret_key,
            algorithm=self._algorithm,
            expires_minutes=self._ttl_minutes,
        )

    def verify(self, token: str | None) -> Identity:
        """Verify ``token`` and return the identity it asserts.

        Raises:
            AuthError: If the token is missing, malformed, expired, revoked or
                carries an unusable subject.
        """
        payload = security.decode_access_token(
            token or "", self._secret_key, algorithm=self._algorithm
        )
        try:
            identity = Identity(
                id=int(payload["id"]),
                username=str(payload["username"]),
                email=payload.get("email"),
                jti=str(payload["jti"]),
                expires_at=float(payload["exp"]),
            )
        except (TypeError, ValueError) as err:
            raise AuthError("Invalid token") from err

        if str(identity.id) != str(payload["sub"]):
            raise AuthError("Invalid token")
        if self._revocations.is_revoked(identity.jti):
            raise AuthError("Token has been revoked")
        return identity

    def revoke(self, identity: Identity) -> None:
        """Reject the token behind ``identity`` for the rest of its lifetime."""
        self._revocations.revoke(identity.jti, identity.expires_at)
        logger.info("Revoked session token for user %s", identity.id)


class IdentityService:
    """Registers accounts and logs users in with a bcrypt-hashed password."""

    def __init__(self, storage: Storage, tokens: SessionTokens, *, bcrypt_rounds: int = 10) -> None:
        self.storage = storage
        self.tokens = tokens
        self._bcrypt_rounds = bcrypt_rounds

    def _burn_password_check(self, password: str) -> None:
        """Spend one bcrypt verification so unknown users cost the same as known ones."""
        security.verify_password(password, _dummy_hash(self._bcrypt_rounds))

    def register(self, username: str, email: str | None, password: str) -> tuple[UserRecord, str]:
        """Create an account and return it with a fresh session token.

        Raises:
            ValidationError: If username or password is empty.
            ConflictError: If the username or email is already registered.
        """
        username = (username or "").strip()
        email = (email or "").strip() or None
        if not username or not password:
            raise ValidationError("username and password required")

        password_hash = security.hash_password(password, self._bcrypt_rounds)
        user = self.storage.create_user(username, email, password_hash)
        logger.info("Registered user %s", user.id)
        return user, self.tokens.issue(user)

    def login(self, identifier: str, password: str) -> tuple[UserRecord, str]:
        """Authenticate by username or email and password.

        Unknown identifiers and wrong passwords raise the same
        ``InvalidCredentialsError`` after the same amount of hashing work.
        """
        identifier = (identifier or "").strip()
        if not identifier or not password:
            raise ValidationError("username/email and password required")

        user = self.storage.find_user_by_identifier(identifier)
        if user is None:
            self._burn_password_check(password)
            raise InvalidCredentialsError()
        if not security.verify_password(password, user.password_hash):
            raise InvalidCredentialsError()
        return user, self.tokens.issue(user)

    def authenticate(self, token: str | None) -> Identity:
        """Verify a session token; see :meth:`SessionTokens.verify`."""
        return self.tokens.verify(token)

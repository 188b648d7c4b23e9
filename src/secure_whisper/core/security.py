"""Password hashing and session token primitives."""
from __future__ import annotations

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
from jose import JWTError, jwt

from secure_whisper.core.errors import AuthError

REQUIRED_CLAIMS = ("sub", "id", "username", "jti", "exp")


def hash_password(password: str, rounds: int) -> str:
    """Return a salted bcrypt hash of ``password`` with cost ``rounds``."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode()


def verify_password(password: str, password_hash: str) -> bool:
    """Return True if ``password`` matches the stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(
    claims: dict[str, Any],
    secret_key: str,
    *,
    algorithm: str,
    expires_minutes: int,
) -> str:
    """Create a signed JWT carrying ``claims`` plus expiry and token id."""
    issued_at = datetime.now(UTC)
    to_encode: dict[str, Any] = dict(claims)
    to_encode.update(
        {
            "iat": issued_at,
            "exp": issued_at + timedelta(minutes=expires_minutes),
            "jti": secrets.token_hex(16),
        }
    )
    encoded_jwt: str = jwt.encode(to_encode, secret_key, algorithm=algorithm)
    return encoded_jwt


def decode_access_token(token: str, secret_key: str, *, algorithm: str) -> dict[str, Any]:
    """Verify a token's signature and expiry and return its claims.

    Raises:
        AuthError: If the token is empty, malformed, expired, signed with another
            key or algorithm, or lacks one of the required claims.
    """
    if not token:
        raise AuthError("Missing token")
    try:
        payload: dict[str, Any] = jwt.decode(token, secret_key, algorithms=[algorithm])
    except JWTError as err:
        raise AuthError("Invalid token") from err

    if any(payload.get(claim) is None for claim in REQUIRED_CLAIMS):
        raise AuthError("Invalid token")
    return payload

"""Revocation of issued session tokens."""

from __future__ import annotations

import time
from threading import Lock


class TokenRevocationList:
    """Process-local set of revoked token ids.

    Entries are kept only until the token's own expiry; after that the token
    is rejected by signature validation anyway.
    """

    def __init__(self) -> None:
        self._revoked: dict[str, float] = {}
        self._lock = Lock()

    def _prune(self, now: float) -> None:
        expired = [jti for jti, expires_at in self._revoked.items() if expires_at <= now]
        for jti in expired:
            del self._revoked[jti]

    def revoke(self, jti: str, expires_at: float) -> None:
        """Reject the token ``jti`` until the epoch second ``expires_at``."""
        now = time.time()
        with self._lock:
            self._prune(now)
            if expires_at > now:
                self._revoked[jti] = expires_at

    def is_revoked(self, jti: str) -> bool:
        """Return True if ``jti`` has been revoked and has not yet expired."""
        with self._lock:
            expires_at = self._revoked.get(jti)
        return expires_at is not None and expires_at > time.time()

    def __len__(self) -> int:
        with self._lock:
            self._prune(time.time())
            return len(self._revoked)


_REVOCATION_LIST = TokenRevocationList()


def get_revocation_list() -> TokenRevocationList:
    """Return the process-wide revocation list."""
    return _REVOCATION_LIST

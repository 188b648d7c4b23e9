# src/secure_whisper/services/codec.py
"""Authenticated encryption of chat message bodies.

Messages are sealed with AES-256-GCM under a single server-held key. Each call
to :meth:`MessageCodec.encrypt` draws a fresh random 96-bit IV; the
ciphertext (with its 16-byte tag appended) and the IV are returned as separate
base64 strings so the storage layer can keep them in separate columns.
"""

from __future__ import annotations

import base64
import binascii
import secrets
import threading

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from secure_whisper.core.errors import DecryptionError, InternalError

KEY_LENGTH_BYTES = 32
IV_LENGTH_BYTES = 12
TAG_LENGTH_BYTES = 16
# NIST SP 800-38D bound for randomly generated 96-bit IVs under one key.
MAX_INVOCATIONS = 2**32


def _decode_base64(data: str) -> bytes:
    padding = "=" * (-len(data) % 4)
    try:
        return base64.b64decode(data + padding, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError) as err:
        raise ValueError(f"Invalid base64 encoding: {err}") from err


def _decode_hex(data: str) -> bytes:
    try:
        return bytes.fromhex(data)
    except ValueError as err:
        raise ValueError(f"Invalid hex encoding: {err}") from err


def _decode_raw(data: str) -> bytes:
    return data.encode("utf-8")


def decode_encryption_key(encoded: str) -> bytes:
    """Decode a configured encryption key into exactly 32 bytes.

    Base64 (standard or URL-safe), hex and a raw 32-character string are
    accepted. The key is never padded or truncated: if no decoding yields
    exactly 32 bytes the key is rejected.

    Raises:
        ValueError: If the key does not decode to 32 bytes.
    """
    cleaned = encoded.strip()
    errors: list[str] = []
    for decoder in (_decode_base64, _decode_hex, _decode_raw):
        try:
            result = decoder(cleaned)
        except ValueError as err:
            errors.append(str(err))
            continue
        if len(result) == KEY_LENGTH_BYTES:
            return result
        errors.append(f"{decoder.__name__.lstrip('_')} gave {len(result)} bytes")
    joined = "; ".join(errors)
    raise ValueError(f"Encryption key must be exactly {KEY_LENGTH_BYTES} bytes ({joined})")


class MessageCodec:
    """AES-256-GCM sealing and opening of message payloads."""

    def __init__(self, key: bytes, *, max_invocations: int = MAX_INVOCATIONS) -> None:
        if not isinstance(key, bytes) or len(key) != KEY_LENGTH_BYTES:
            raise ValueError(f"Encryption key must be exactly {KEY_LENGTH_BYTES} bytes")
        self._aesgcm = AESGCM(key)
        self._max_invocations = max_invocations
        self._invocations = 0
        self._lock = threading.Lock()

    def _reserve_invocation(self) -> None:
        with self._lock:
            if self._invocations >= self._max_invocations:
                raise InternalError("Encryption key usage limit reached; rotate the key")
            self._invocations += 1

    def encrypt(self, plaintext: bytes) -> tuple[str, str]:
        """Encrypt ``plaintext`` and return ``(ciphertext_b64, iv_b64)``.

        The ciphertext carries the 16-byte authentication tag at its end.
        """
        self._reserve_invocation()
        iv = secrets.token_bytes(IV_LENGTH_BYTES)
        sealed = self._aesgcm.encrypt(iv, plaintext, None)
        return base64.b64encode(sealed).decode(), base64.b64encode(iv).decode()

    def decrypt(self, ciphertext_b64: str, iv_b64: str) -> bytes:
        """Verify and decrypt a payload produced by :meth:`encrypt`.

        Raises:
            DecryptionError: If either input is not valid base64, the IV is not
                12 bytes, the ciphertext is shorter than a tag, or the tag does
                not verify under this key.
        """
        try:
            sealed = base64.b64decode(ciphertext_b64, validate=True)
            iv = base64.b64decode(iv_b64, validate=True)
        except (binascii.Error, ValueError) as err:
            raise DecryptionError("Ciphertext or IV is not valid base64") from err

        if len(iv) != IV_LENGTH_BYTES:
            raise DecryptionError("IV must be 12 bytes")
        if len(sealed) < TAG_LENGTH_BYTES:
            raise DecryptionError("Ciphertext is truncated")

        try:
            return self._aesgcm.decrypt(iv, sealed, None)
        except InvalidTag as err:
            raise DecryptionError("Authentication tag mismatch") from err

# tests/test_codec.py
"""Tests for AES-256-GCM message sealing and key decoding."""

import base64
import os

import pytest

from secure_whisper.core.errors import DecryptionError, InternalError
from secure_whisper.services.codec import (
    IV_LENGTH_BYTES,
    TAG_LENGTH_BYTES,
    MessageCodec,
    decode_encryption_key,
)


def _flip_bit(b64: str, index: int) -> str:
    raw = bytearray(base64.b64decode(b64))
    raw[index] ^= 0x01
    return base64.b64encode(bytes(raw)).decode()


class TestMessageCodec:
    """Encrypt/decrypt behaviour."""

    def test_round_trip_multibyte(self, codec):
        plaintext = "héllo wörld, 你好 👋".encode("utf-8")
        ciphertext, iv = codec.encrypt(plaintext)
        assert codec.decrypt(ciphertext, iv) == plaintext

    def test_round_trip_empty_plaintext(self, codec):
        ciphertext, iv = codec.encrypt(b"")
        assert len(base64.b64decode(ciphertext)) == TAG_LENGTH_BYTES
        assert codec.decrypt(ciphertext, iv) == b""

    def test_output_shape(self, codec):
        ciphertext, iv = codec.encrypt(b"hello")
        assert len(base64.b64decode(iv)) == IV_LENGTH_BYTES
        assert len(base64.b64decode(ciphertext)) == len(b"hello") + TAG_LENGTH_BYTES

    def test_fresh_iv_per_call(self, codec):
        first = codec.encrypt(b"same")
        second = codec.encrypt(b"same")
        assert first[1] != second[1]
        assert first[0] != second[0]

    @pytest.mark.parametrize("index", [0, 3, -1])
    def test_tampered_ciphertext_or_tag_rejected(self, codec, index):
        ciphertext, iv = codec.encrypt(b"attack at dawn")
        with pytest.raises(DecryptionError):
            codec.decrypt(_flip_bit(ciphertext, index), iv)

    def test_tampered_iv_rejected(self, codec):
        ciphertext, iv = codec.encrypt(b"attack at dawn")
        with pytest.raises(DecryptionError):
            codec.decrypt(ciphertext, _flip_bit(iv, 0))

    def test_wrong_key_rejected(self, codec):
        ciphertext, iv = codec.encrypt(b"secret")
        other = MessageCodec(os.urandom(32))
        with pytest.raises(DecryptionError):
            other.decrypt(ciphertext, iv)

    def test_wrong_iv_length_rejected(self, codec):
        ciphertext, _ = codec.encrypt(b"secret")
        short_iv = base64.b64encode(b"\x00" * 8).decode()
        with pytest.raises(DecryptionError, match="IV"):
            codec.decrypt(ciphertext, short_iv)

    def test_truncated_ciphertext_rejected(self, codec):
        _, iv = codec.encrypt(b"secret")
        with pytest.raises(DecryptionError):
            codec.decrypt(base64.b64encode(b"\x00" * 4).decode(), iv)

    def test_invalid_base64_rejected(self, codec):
        _, iv = codec.encrypt(b"secret")
        with pytest.raises(DecryptionError):
            codec.decrypt("not base64 !!", iv)

    def test_decryption_error_is_not_public(self, codec):
        with pytest.raises(DecryptionError) as excinfo:
            codec.decrypt("AAAA", "AAAA")
        assert excinfo.value.status_code == 500
        assert excinfo.value.public_message == "Internal server error"

    @pytest.mark.parametrize("length", [16, 31, 33])
    def test_bad_key_length_rejected(self, length):
        with pytest.raises(ValueError):
            MessageCodec(os.urandom(length))

    def test_invocation_limit(self):
        codec = MessageCodec(os.urandom(32), max_invocations=2)
        codec.encrypt(b"one")
        codec.encrypt(b"two")
        with pytest.raises(InternalError):
            codec.encrypt(b"three")


class TestDecodeEncryptionKey:
    """Configured key formats."""

    def test_standard_base64(self):
        key = os.urandom(32)
        assert decode_encryption_key(base64.b64encode(key).decode()) == key

    def test_urlsafe_base64_without_padding(self):
        key = b"\xfb\xff" * 16
        encoded = base64.urlsafe_b64encode(key).decode().rstrip("=")
        assert decode_encryption_key(encoded) == key

    def test_hex(self):
        key = os.urandom(32)
        assert decode_encryption_key(key.hex()) == key

    def test_raw_32_characters(self):
        raw = "k" * 31 + "!"
        assert decode_encryption_key(raw) == raw.encode()

    def test_surrounding_whitespace_ignored(self):
        key = os.urandom(32)
        assert decode_encryption_key(f"  {key.hex()}\n") == key

    @pytest.mark.parametrize(
        "encoded",
        [
            "",
            "short",
            base64.b64encode(b"\x00" * 16).decode(),
            (b"\x01" * 33).hex(),
        ],
    )
    def test_rejects_keys_that_are_not_32_bytes(self, encoded):
        with pytest.raises(ValueError, match="32 bytes"):
            decode_encryption_key(encoded)

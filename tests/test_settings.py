# tests/test_settings.py
"""Tests for environment-driven configuration."""

import pydantic
import pytest

from secure_whisper.core.settings import Settings

HEX_KEY = "ab" * 32


def _settings(**overrides) -> Settings:
    values = {"SECRET_KEY": "s3cret", "ENCRYPTION_KEY": HEX_KEY}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_encryption_key_is_decoded() -> None:
    assert _settings().encryption_key_bytes == bytes.fromhex(HEX_KEY)


@pytest.mark.parametrize("key", ["too-short", "ab" * 8, "ab" * 33])
def test_invalid_encryption_key_fails_startup(key) -> None:
    with pytest.raises(pydantic.ValidationError):
        _settings(ENCRYPTION_KEY=key)


def test_bcrypt_rounds_bounds() -> None:
    with pytest.raises(pydantic.ValidationError):
        _settings(BCRYPT_ROUNDS=3)


def test_database_url_default_and_override() -> None:
    assert _settings().database_url == "sqlite:///./secure_whisper.db"
    assert _settings(DATABASE_URL="sqlite:///./prod.db").database_url == "sqlite:///./prod.db"


def test_defaults() -> None:
    s = _settings()
    assert s.jwt_algorithm == "HS256"
    assert s.hub_queue_size == 256
    assert s.enforce_chat_membership is True

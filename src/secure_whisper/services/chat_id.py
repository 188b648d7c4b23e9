"""Canonical identifiers for two-party conversations."""

from __future__ import annotations

CHAT_ID_PREFIX = "chat"


def chat_id(user_a: int | str, user_b: int | str) -> str:
    """Return the chat id shared by ``user_a`` and ``user_b``.

    Both ids are compared as strings and the smaller one is placed first, so
    ``chat_id(a, b) == chat_id(b, a)``. The string order is fixed: ``"10"``
    sorts before ``"9"``. Ids must not contain an underscore.
    """
    first, second = sorted((str(user_a), str(user_b)))
    return f"{CHAT_ID_PREFIX}_{first}_{second}"


def chat_participants(value: str) -> tuple[str, str] | None:
    """Return the two participant ids embedded in a chat id.

    Returns ``None`` when ``value`` is not in canonical form, including ids
    whose participants are out of order.
    """
    parts = value.split("_")
    if len(parts) != 3 or parts[0] != CHAT_ID_PREFIX:
        return None
    first, second = parts[1], parts[2]
    if not first or not second or first > second:
        return None
    return first, second


def is_participant(value: str, user_id: int | str) -> bool:
    """Return True if ``user_id`` is one of the two parties of chat ``value``."""
    participants = chat_participants(value)
    return participants is not None and str(user_id) in participants

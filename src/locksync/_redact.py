"""Masking of push payloads before they reach DEBUG logs.

Lock push payloads are decoded JSON.  Besides the lock serial and event
type they may carry keypad PINs, the owner's account identifiers and
session tokens; those values are masked by key.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

MASK = "***"

_SECRET_KEYS: frozenset[str] = frozenset(
    {
        "pin",
        "pins",
        "pincode",
        "keypadcode",
        "password",
        "email",
        "userid",
        "accountid",
        "authorization",
        "cookie",
    }
)
# Matches accessToken, refreshToken, sessionToken, clientSecret, ...
_SECRET_SUFFIXES = ("token", "secret")

_MAX_STRING = 128


def is_secret_key(key: str) -> bool:
    lowered = key.lower()
    return lowered in _SECRET_KEYS or lowered.endswith(_SECRET_SUFFIXES)


def mask_payload(payload: Any, *, max_string: int = _MAX_STRING) -> Any:
    """Copy of a decoded JSON payload with secret values masked.

    Long strings are clipped to *max_string* characters.  The input is
    never modified.
    """
    if isinstance(payload, Mapping):
        return {
            str(key): MASK if is_secret_key(str(key)) else mask_payload(value, max_string=max_string)
            for key, value in payload.items()
        }
    if isinstance(payload, (list, tuple)):
        return [mask_payload(item, max_string=max_string) for item in payload]
    if isinstance(payload, str) and len(payload) > max_string:
        return f"{payload[:max_string]}...({len(payload)} chars)"
    return payload

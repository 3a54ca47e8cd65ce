"""Key-based secret scrubbing for request context and note payloads.

This is a coarse safety net only. The ledger service runs its own sanitizer;
nothing here assumes it is the last line of defense.
"""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel

REDACTED = "[REDACTED]"

_SENSITIVE_KEY_TERMS = (
    "token",
    "secret",
    "password",
    "api_key",
    "apikey",
    "auth",
    "credential",
)


def is_sensitive_key(key: object) -> bool:
    key_lower = str(key).lower()
    return any(term in key_lower for term in _SENSITIVE_KEY_TERMS)


def redact_obvious_secrets(value: Any) -> Any:
    """Return a copy of ``value`` with sensitive-keyed entries replaced.

    Shape is preserved: mappings keep their keys, sequences keep their length
    and order, and only values stored under a sensitive key change. Cyclic
    input is not supported.
    """
    if isinstance(value, BaseModel):
        return redact_obvious_secrets(value.model_dump())

    if isinstance(value, Mapping):
        return {
            k: REDACTED if is_sensitive_key(k) else redact_obvious_secrets(v)
            for k, v in value.items()
        }

    if isinstance(value, list):
        return [redact_obvious_secrets(v) for v in value]
    if isinstance(value, tuple):
        return tuple(redact_obvious_secrets(v) for v in value)

    return value

"""Masking helpers that keep auth tokens out of logs."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Optional

_SENSITIVE_HEADERS = {"authorization"}


def mask(value: Optional[str], show: int = 4) -> str:
    """Mask a secret string, showing only the last `show` characters.

    Args:
        value: The secret string to mask
        show: Number of characters to show at the end (default: 4)

    Returns:
        Masked string with asterisks, or "***" for short/empty strings

    Examples:
        >>> mask("eyJhbGciOiJIUzI1")
        "************UzI1"
        >>> mask("short")
        "***"
        >>> mask(None)
        "***"
    """
    if not value or len(value) <= show + 2:
        return "***"

    if show == 0:
        return "*" * len(value)

    return "*" * (len(value) - show) + value[-show:]


def safe_for_log(msg: str, *secrets: Optional[str]) -> str:
    """Replace any secrets in a log message with masked versions.

    Only standalone occurrences are replaced; a secret that is part of a
    longer word is left alone.

    Examples:
        >>> safe_for_log("token=ABCD1234EFGH rejected", "ABCD1234EFGH")
        "token=********EFGH rejected"
        >>> safe_for_log("Request failed", "t")
        "Request failed"
    """
    for secret in secrets:
        if secret:
            masked = mask(secret)
            msg = re.sub(rf"(?<!\w){re.escape(secret)}(?!\w)", lambda _m: masked, msg)
    return msg


def masked_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Copy of request headers suitable for logging."""
    safe: dict[str, str] = {}
    for name, value in headers.items():
        if name.lower() in _SENSITIVE_HEADERS:
            scheme, _, credential = value.partition(" ")
            safe[name] = f"{scheme} {mask(credential)}" if credential else mask(value)
        else:
            safe[name] = value
    return safe

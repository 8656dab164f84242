from __future__ import annotations

# SPDX-License-Identifier: Apache-2.0
import abc

_BEARER_PREFIX = "bearer "


def normalize_bearer(token: str) -> str:
    """Return an ``Authorization`` value, adding ``Bearer `` only if missing."""
    t = token.strip()
    if t.lower().startswith(_BEARER_PREFIX):
        return t
    return f"Bearer {t}"


class AuthStrategy(abc.ABC):
    """Base class for authentication strategies."""

    @abc.abstractmethod
    def apply(self, headers: dict[str, str]) -> None:
        """Add auth information to request headers."""
        ...


class BearerTokenAuth(AuthStrategy):
    """``Authorization: Bearer <token>`` header auth."""

    def __init__(self, token: str) -> None:
        self.token = token

    def apply(self, headers: dict[str, str]) -> None:
        headers["Authorization"] = normalize_bearer(self.token)


__all__ = ["AuthStrategy", "BearerTokenAuth", "normalize_bearer"]

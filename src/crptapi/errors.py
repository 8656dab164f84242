# SPDX-License-Identifier: Apache-2.0
"""Exception hierarchy for the CRPT document client."""

from __future__ import annotations


class CrptApiError(Exception):
    """Base exception for all crptapi errors."""

    pass


class ConfigurationError(CrptApiError, ValueError):
    """Raised for invalid construction arguments or missing runtime settings."""

    pass


class ClosedError(CrptApiError):
    """Raised when a component is used after shutdown."""

    pass


class LimiterClosedError(ClosedError):
    """Raised by the rate limiter once it has been shut down."""

    pass


class ClientClosedError(ClosedError):
    """Raised by the client once it has been shut down."""

    pass


class AcquireInterruptedError(CrptApiError):
    """Raised when a caller stops waiting for a permit before one is granted."""

    pass


class EncodingError(CrptApiError):
    """Raised when a document or envelope cannot be serialized."""

    pass


class TransportError(CrptApiError):
    """Raised on network, connection or timeout failures."""

    def __init__(self, message: str, url: str | None = None):
        self.url = url
        super().__init__(message)


class ApiError(CrptApiError):
    """Raised when the API answers with a non-2xx status."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"API returned non-2xx status: {status_code}, body: {body}")


__all__ = [
    "CrptApiError",
    "ConfigurationError",
    "ClosedError",
    "LimiterClosedError",
    "ClientClosedError",
    "AcquireInterruptedError",
    "EncodingError",
    "TransportError",
    "ApiError",
]

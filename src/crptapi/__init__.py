# SPDX-License-Identifier: Apache-2.0
"""crptapi package initialization."""

from .client import CrptApiClient, FixedWindowRateLimiter, ProductDocument, TimeUnit
from .errors import (
    AcquireInterruptedError,
    ApiError,
    ClientClosedError,
    ClosedError,
    ConfigurationError,
    CrptApiError,
    EncodingError,
    LimiterClosedError,
    TransportError,
)

__version__ = "0.1.0"

__all__ = [
    "CrptApiClient",
    "FixedWindowRateLimiter",
    "ProductDocument",
    "TimeUnit",
    "CrptApiError",
    "ConfigurationError",
    "ClosedError",
    "LimiterClosedError",
    "ClientClosedError",
    "AcquireInterruptedError",
    "EncodingError",
    "TransportError",
    "ApiError",
    "__version__",
]

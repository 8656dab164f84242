# SPDX-License-Identifier: Apache-2.0
"""Rate-limited client for the CRPT documents API."""

from .auth import AuthStrategy, BearerTokenAuth, normalize_bearer
from .documents_client import ClientState, CrptApiClient
from .encoder import Encoder, JsonEncoder
from .models import ClientConfig, OutboundEnvelope, ProductDocument
from .rate_limit import FixedWindowRateLimiter, TimeUnit
from .transport import (
    AsyncHttpxTransport,
    AsyncTransport,
    HttpxTransport,
    Transport,
    TransportResponse,
)

__all__ = [
    "AuthStrategy",
    "BearerTokenAuth",
    "normalize_bearer",
    "ClientState",
    "CrptApiClient",
    "Encoder",
    "JsonEncoder",
    "ClientConfig",
    "OutboundEnvelope",
    "ProductDocument",
    "FixedWindowRateLimiter",
    "TimeUnit",
    "AsyncHttpxTransport",
    "AsyncTransport",
    "HttpxTransport",
    "Transport",
    "TransportResponse",
]

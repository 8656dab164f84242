# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# Request path metrics, labelled by product group (pg=...)
REQUESTS = Counter("crpt_requests_total", "Document create requests", ["product_group"])
ERRORS = Counter("crpt_errors_total", "Failed document create requests", ["product_group", "code"])
LATENCY = Histogram(
    "crpt_request_latency_seconds", "Document create request latency", ["product_group"]
)

# Rate limiter metrics
RATE_LIMITER_WAITS = Counter(
    "crpt_rate_limiter_waits_total", "Number of times rate limiter caused wait", ["mode"]
)
PERMITS_AVAILABLE = Gauge(
    "crpt_rate_limiter_available_permits", "Permits left in the current window", ["limiter"]
)

__all__ = [
    "REQUESTS",
    "ERRORS",
    "LATENCY",
    "RATE_LIMITER_WAITS",
    "PERMITS_AVAILABLE",
]

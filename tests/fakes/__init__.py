# SPDX-License-Identifier: Apache-2.0
"""Fake implementations for testing."""

from __future__ import annotations

from .transport import FakeAsyncTransport, FakeTransport, RequestCapture, ResponseSpec

__all__ = [
    "FakeTransport",
    "FakeAsyncTransport",
    "RequestCapture",
    "ResponseSpec",
]

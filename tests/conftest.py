# SPDX-License-Identifier: Apache-2.0
"""Shared test fixtures for the crptapi test suite.

FIXTURES PROVIDED:
- fake_transport / fake_async_transport: controllable transports capturing requests
- client: configured client whose limiter never refills on its own (capacity 2)
- product_document: a valid ProductDocument
- isolated_env: cwd in a temp dir and no CRPT_* variables leaking in
- wait_until: polling helper for cross-thread assertions
"""

from __future__ import annotations

import time
from typing import Callable

import pytest

from crptapi.client import CrptApiClient, ProductDocument, TimeUnit
from tests.fakes import FakeAsyncTransport, FakeTransport
from tests.fakes.constants import TEST_BASE_URL, TEST_PRODUCT_GROUP, TEST_TOKEN


def _wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


@pytest.fixture
def wait_until():
    """Poll ``predicate`` until it is true or ``timeout`` elapses."""
    return _wait_until


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def fake_async_transport():
    return FakeAsyncTransport()


@pytest.fixture
def client(fake_transport, fake_async_transport):
    """Configured client; tests drive refills by calling ``rate_limiter.refill()``."""
    api = CrptApiClient(
        TimeUnit.HOURS,
        2,
        base_url=TEST_BASE_URL,
        auth_token=TEST_TOKEN,
        product_group=TEST_PRODUCT_GROUP,
        transport=fake_transport,
        async_transport=fake_async_transport,
    )
    yield api
    api.shutdown()


@pytest.fixture
def product_document():
    return ProductDocument(
        participant_inn="1234567890",
        production_date="2025-08-01",
        usage_type="TEST",
    )


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    """Run in an empty directory with no CRPT_* settings in the environment."""
    import os

    for key in list(os.environ):
        if key.startswith("CRPT_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path

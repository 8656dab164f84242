# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import asyncio
import time

import pytest

from crptapi.client import CrptApiClient, TimeUnit
from crptapi.errors import ApiError, ClientClosedError, ConfigurationError, TransportError
from tests.fakes import FakeAsyncTransport
from tests.fakes.constants import TEST_BASE_URL, TEST_PRODUCT_GROUP, TEST_TOKEN


class TestSubmitAsync:
    @pytest.mark.asyncio
    async def test_submit_async_returns_body(self, client, fake_async_transport, product_document):
        response = await client.submit_async(product_document, "sig")

        assert response == '{"status":"ok"}'
        request = fake_async_transport.last_request
        assert request.url == "https://test.server/api/v3/lk/documents/create?pg=milk"
        assert request.json()["signature"] == "sig"

    @pytest.mark.asyncio
    async def test_submit_async_api_error(self, client, fake_async_transport, product_document):
        fake_async_transport.configure_response(status=404, body="not found")

        with pytest.raises(ApiError) as exc_info:
            await client.submit_async(product_document)

        assert exc_info.value.status_code == 404
        assert exc_info.value.body == "not found"
        assert client.rate_limiter.available_permits == 1

    @pytest.mark.asyncio
    async def test_submit_async_transport_error(
        self, client, fake_async_transport, product_document
    ):
        fake_async_transport.configure_error(TransportError("Request failed: refused"))

        with pytest.raises(TransportError):
            await client.submit_async(product_document)

    @pytest.mark.asyncio
    async def test_submit_async_requires_configuration(self, fake_async_transport, product_document):
        async with CrptApiClient(TimeUnit.HOURS, 1, async_transport=fake_async_transport) as api:
            with pytest.raises(ConfigurationError):
                await api.submit_async(product_document)

        assert fake_async_transport.send_count == 0

    @pytest.mark.asyncio
    async def test_submit_async_waits_for_refill(
        self, client, fake_async_transport, product_document
    ):
        await client.submit_async(product_document)
        await client.submit_async(product_document)

        asyncio.get_running_loop().call_later(0.1, client.rate_limiter.refill)
        start = time.monotonic()
        await asyncio.wait_for(client.submit_async(product_document), timeout=2)

        assert time.monotonic() - start >= 0.09
        assert fake_async_transport.send_count == 3

    @pytest.mark.asyncio
    async def test_shutdown_fails_waiting_submit(self, client, product_document):
        await client.submit_async(product_document)
        await client.submit_async(product_document)

        task = asyncio.create_task(client.submit_async(product_document))
        await asyncio.sleep(0.01)
        client.shutdown()

        with pytest.raises(ClientClosedError):
            await asyncio.wait_for(task, timeout=1)

    @pytest.mark.asyncio
    async def test_aclose_closes_default_async_transport(self, monkeypatch, fake_transport):
        created = FakeAsyncTransport()
        monkeypatch.setattr(
            "crptapi.client.documents_client.get_default_async_transport", lambda: created
        )

        api = CrptApiClient(TimeUnit.SECONDS, 1, transport=fake_transport)
        assert api.async_transport is created
        await api.aclose()

        assert created.closed
        assert api.closed

    @pytest.mark.asyncio
    async def test_aclose_waits_for_in_flight_send(
        self, monkeypatch, fake_transport, product_document
    ):
        created = FakeAsyncTransport()
        created.configure_response(status=200, body="done", delay=0.2)
        monkeypatch.setattr(
            "crptapi.client.documents_client.get_default_async_transport", lambda: created
        )
        api = CrptApiClient(
            TimeUnit.HOURS,
            1,
            base_url=TEST_BASE_URL,
            auth_token=TEST_TOKEN,
            product_group=TEST_PRODUCT_GROUP,
            transport=fake_transport,
        )

        task = asyncio.create_task(api.submit_async(product_document))
        await asyncio.sleep(0.05)
        assert created.send_count == 1

        await api.aclose()
        assert not created.closed

        assert await asyncio.wait_for(task, timeout=2) == "done"
        assert created.closed


# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import base64
import enum
import logging
import threading
import time
from typing import Any, Optional
from urllib.parse import quote_plus

from pydantic import ValidationError

from crptapi.errors import (
    ApiError,
    ClientClosedError,
    ConfigurationError,
    LimiterClosedError,
    TransportError,
)
from crptapi.metrics import ERRORS, LATENCY, REQUESTS
from crptapi.security.mask import masked_headers, safe_for_log

from .auth import BearerTokenAuth
from .encoder import Encoder, get_default_encoder
from .models import CREATE_DOCUMENT_PATH, DEFAULT_TIMEOUT, ClientConfig, OutboundEnvelope
from .rate_limit import FixedWindowRateLimiter, IntervalLike
from .transport import (
    AsyncTransport,
    Transport,
    TransportResponse,
    get_default_async_transport,
    get_default_transport,
)


class ClientState(enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


class CrptApiClient:
    """Rate-limited client for the CRPT documents API.

    Every call to :meth:`submit` takes one permit from a shared
    :class:`FixedWindowRateLimiter`, blocking while the current window is
    exhausted, then posts an ``LP_INTRODUCE_GOODS`` document. Permits spent on
    failed calls are not given back; only the limiter's refill restores them.

    Usage:
        >>> client = CrptApiClient(TimeUnit.MINUTES, 10)
        >>> client.set_base_url("https://ismp.crpt.ru")
        >>> client.set_auth_token("eyJ...")
        >>> client.set_product_group("milk")
        >>> body = client.submit(ProductDocument(participant_inn="1234567890"), "c2ln...")
        >>> client.shutdown()

    Args:
        interval: Limiter window (a TimeUnit, timedelta or seconds)
        request_limit: Maximum requests per window
        base_url: True-API base URL (may be set later)
        auth_token: Auth token, with or without the Bearer prefix (may be set later)
        product_group: Product group code (may be set later)
        transport: Sync HTTP transport; an httpx-backed one is created if omitted
        async_transport: Async HTTP transport used by :meth:`submit_async`
        encoder: Payload encoder; compact JSON if omitted
        timeout: Per-request timeout in seconds
        logger: Optional logger
    """

    def __init__(
        self,
        interval: IntervalLike,
        request_limit: int,
        *,
        base_url: Optional[str] = None,
        auth_token: Optional[str] = None,
        product_group: Optional[str] = None,
        transport: Optional[Transport] = None,
        async_transport: Optional[AsyncTransport] = None,
        encoder: Optional[Encoder] = None,
        timeout: float = DEFAULT_TIMEOUT,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.log = logger or logging.getLogger(self.__class__.__name__)
        self._config = self._validated_config(
            base_url=base_url,
            auth_token=auth_token,
            product_group=product_group,
            timeout=timeout,
        )
        self._lock = threading.Lock()
        self._state = ClientState.OPEN

        self.rate_limiter = FixedWindowRateLimiter(request_limit, interval)
        self.encoder = encoder or get_default_encoder()

        self._owns_transport = transport is None
        self.transport = transport or get_default_transport()
        self._owns_async_transport = async_transport is None
        self._async_transport = async_transport

        # Owned transports are closed only once no send is using them
        self._in_flight = {"sync": 0, "async": 0}
        self._close_requested: set[str] = set()
        self._transports_closed: set[str] = set()

        self.log.info(
            "CrptApiClient initialized with limit %d per %.3fs",
            self.rate_limiter.capacity,
            self.rate_limiter.interval,
        )

    # ---------- configuration ----------
    @staticmethod
    def _validated_config(**values: Any) -> ClientConfig:
        try:
            return ClientConfig(**values)
        except ValidationError as e:
            raise ConfigurationError(str(e)) from e

    def _update_config(self, **changes: Any) -> None:
        with self._lock:
            self._config = self._validated_config(**{**self._config.model_dump(), **changes})

    def set_base_url(self, base_url: Optional[str]) -> None:
        self._update_config(base_url=base_url)

    def set_auth_token(self, auth_token: Optional[str]) -> None:
        self._update_config(auth_token=auth_token)

    def set_product_group(self, product_group: Optional[str]) -> None:
        self._update_config(product_group=product_group)

    def set_timeout(self, timeout: float) -> None:
        self._update_config(timeout=timeout)

    def config_snapshot(self) -> ClientConfig:
        """Current settings; the returned object never changes."""
        return self._config

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state is ClientState.CLOSED

    @property
    def async_transport(self) -> AsyncTransport:
        if self._async_transport is None:
            self._async_transport = get_default_async_transport()
        return self._async_transport

    # ---------- request building ----------
    @staticmethod
    def endpoint_url(base_url: str, product_group: str) -> str:
        """Document create URL for ``base_url`` with ``pg`` form-encoded."""
        return f"{base_url.strip().rstrip('/')}{CREATE_DOCUMENT_PATH}?pg={quote_plus(product_group)}"

    @staticmethod
    def request_headers(auth_token: str) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "*/*"}
        BearerTokenAuth(auth_token).apply(headers)
        return headers

    def build_envelope(
        self,
        document: Any,
        signature: Optional[str] = None,
        product_group: Optional[str] = None,
    ) -> OutboundEnvelope:
        """Encode ``document`` and wrap it into a create-document envelope."""
        encoded = self.encoder.serialize(document)
        return OutboundEnvelope(
            product_document=base64.b64encode(encoded).decode("ascii"),
            product_group=product_group,
            signature=signature or "",
        )

    def build_request_body(
        self,
        document: Any,
        signature: Optional[str] = None,
        product_group: Optional[str] = None,
    ) -> bytes:
        """Serialized request body for ``document``.

        Uses the configured product group unless one is passed explicitly.
        """
        if product_group is None:
            product_group = self._config.product_group
        envelope = self.build_envelope(document, signature, product_group)
        return self.encoder.serialize(envelope)

    # ---------- submit ----------
    def _ensure_open(self) -> None:
        if self._state is ClientState.CLOSED:
            raise ClientClosedError("CrptApiClient is closed")

    def _prepare(self, document: Any) -> ClientConfig:
        """Validate preconditions and return the config snapshot for one call."""
        self._ensure_open()
        if document is None:
            raise ConfigurationError("document must not be None")

        config = self._config
        missing = config.missing_fields()
        if missing:
            raise ConfigurationError(
                f"{', '.join(missing)} not set. Use set_{missing[0]}(...)"
            )
        return config

    def _build_request(
        self, config: ClientConfig, document: Any, signature: Optional[str]
    ) -> tuple[str, dict[str, str], bytes]:
        url = self.endpoint_url(config.base_url, config.product_group)
        headers = self.request_headers(config.auth_token)
        body = self.build_request_body(document, signature, config.product_group)
        self.log.debug("POST %s headers=%s", url, masked_headers(headers))
        return url, headers, body

    def _classify(self, config: ClientConfig, response: TransportResponse) -> str:
        if response.is_success:
            return response.text

        ERRORS.labels(product_group=config.product_group, code=str(response.status_code)).inc()
        self.log.warning(
            safe_for_log(
                f"Document create failed: HTTP {response.status_code}, body: {response.text[:200]}",
                config.auth_token,
            )
        )
        raise ApiError(response.status_code, response.text)

    def _on_transport_error(self, config: ClientConfig, error: TransportError) -> None:
        ERRORS.labels(product_group=config.product_group, code="transport").inc()
        self.log.warning(safe_for_log(f"Document create failed: {error}", config.auth_token))

    def submit(self, document: Any, signature: Optional[str] = None) -> str:
        """Create an introduce-goods document.

        Blocks while the rate limit for the current window is exhausted.

        Args:
            document: Business payload; anything the encoder can serialize
            signature: Detached signature (base64), empty if omitted

        Returns:
            Response body of a 2xx answer, unchanged

        Raises:
            ConfigurationError: If ``document`` is None or settings are missing
            ClientClosedError: If the client is shut down, also while waiting
            EncodingError: If the payload cannot be serialized
            TransportError: On connection failure or timeout
            ApiError: On a non-2xx response
        """
        config = self._prepare(document)
        try:
            self.rate_limiter.acquire()
        except LimiterClosedError as e:
            raise ClientClosedError("CrptApiClient is closed") from e

        url, headers, body = self._build_request(config, document, signature)

        self._begin_send("sync")
        REQUESTS.labels(product_group=config.product_group).inc()
        start = time.perf_counter()
        try:
            response = self.transport.send("POST", url, headers, body, timeout=config.timeout)
        except TransportError as e:
            self._on_transport_error(config, e)
            raise
        finally:
            LATENCY.labels(product_group=config.product_group).observe(time.perf_counter() - start)
            if self._end_send("sync"):
                self._close_transport()

        return self._classify(config, response)

    async def submit_async(self, document: Any, signature: Optional[str] = None) -> str:
        """Async HTTP request (same semantics as :meth:`submit`)."""
        config = self._prepare(document)
        try:
            await self.rate_limiter.acquire_async()
        except LimiterClosedError as e:
            raise ClientClosedError("CrptApiClient is closed") from e

        url, headers, body = self._build_request(config, document, signature)

        self._begin_send("async")
        REQUESTS.labels(product_group=config.product_group).inc()
        start = time.perf_counter()
        try:
            response = await self.async_transport.send(
                "POST", url, headers, body, timeout=config.timeout
            )
        except TransportError as e:
            self._on_transport_error(config, e)
            raise
        finally:
            LATENCY.labels(product_group=config.product_group).observe(time.perf_counter() - start)
            if self._end_send("async"):
                await self._close_async_transport()

        return self._classify(config, response)

    def create_introduce_goods(self, document: Any, signature: Optional[str] = None) -> str:
        """Alias of :meth:`submit`."""
        return self.submit(document, signature)

    # ---------- in-flight sends ----------
    def _begin_send(self, kind: str) -> None:
        with self._lock:
            if kind in self._transports_closed:
                raise ClientClosedError("CrptApiClient is closed")
            self._in_flight[kind] += 1

    def _end_send(self, kind: str) -> bool:
        """Finish a send; True if the caller now has to close the owned transport."""
        with self._lock:
            self._in_flight[kind] -= 1
            return self._claim_close_locked(kind)

    def _claim_close_locked(self, kind: str) -> bool:
        if kind not in self._close_requested or self._in_flight[kind]:
            return False
        self._close_requested.discard(kind)
        self._transports_closed.add(kind)
        return True

    def _close_transport(self) -> None:
        close = getattr(self.transport, "close", None)
        if close is not None:
            close()
        self.log.debug("HTTP transport closed")

    async def _close_async_transport(self) -> None:
        aclose = getattr(self._async_transport, "aclose", None)
        if aclose is not None:
            await aclose()
        self.log.debug("Async HTTP transport closed")

    # ---------- lifecycle ----------
    def shutdown(self) -> None:
        """Close the client and stop the limiter's refill thread.

        Callers blocked waiting for a permit fail with ClientClosedError;
        requests already on the wire are left to finish, and a transport the
        client created itself is closed once the last of them is done. Safe
        to call more than once.
        """
        with self._lock:
            if self._state is ClientState.CLOSED:
                return
            self._state = ClientState.CLOSED
            if self._owns_transport:
                self._close_requested.add("sync")
            close_now = self._claim_close_locked("sync")
            pending = self._in_flight["sync"]

        self.rate_limiter.shutdown()
        if close_now:
            self._close_transport()
        elif pending:
            self.log.debug("Transport close deferred until %d in-flight request(s) finish", pending)
        self.log.info("CrptApiClient shut down")

    async def aclose(self) -> None:
        """Shut down and close a default async transport, if one was created.

        As with :meth:`shutdown`, the async transport stays open until
        in-flight :meth:`submit_async` calls have finished.
        """
        self.shutdown()
        with self._lock:
            if self._owns_async_transport and "async" not in self._transports_closed:
                if self._async_transport is None:
                    # Never created; keep a late send from creating one
                    self._transports_closed.add("async")
                else:
                    self._close_requested.add("async")
            close_now = self._claim_close_locked("async")

        if close_now:
            await self._close_async_transport()

    def __enter__(self) -> CrptApiClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()

    async def __aenter__(self) -> CrptApiClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


__all__ = ["CrptApiClient", "ClientState"]

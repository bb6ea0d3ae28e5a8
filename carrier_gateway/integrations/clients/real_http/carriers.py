"""
Real Carrier HTTP Client.

One bound ``httpx.AsyncClient`` per carrier: fixed base URL, bearer
credential, per-call timeout and a log line for every request and every
response (or transport error). Retry and rate-limit handling are composed by
the callers in ``integrations/carriers/retry.py``.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional, Tuple

import httpx

from carrier_gateway.integrations.carriers.errors import ProviderRequestError, ProviderTimeoutError
from carrier_gateway.integrations.carriers.registry import ProviderRegistry
from carrier_gateway.integrations.contracts.carriers import ProviderConfig

logger = logging.getLogger(__name__)

USER_AGENT = "Carrier-Gateway/1.0"


class CarrierHttpClient:
    def __init__(
        self,
        config: ProviderConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        headers: Dict[str, str] = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }
        if config.api_key:
            headers["Authorization"] = f"Bearer {config.api_key}"

        self._client = httpx.AsyncClient(
            base_url=config.base_url.rstrip("/"),
            headers=headers,
            timeout=config.timeout_seconds,
            transport=transport,
        )

    @property
    def provider(self) -> str:
        return self.config.name

    async def send(self, method: str, path: str, body: Any = None) -> Tuple[int, Any]:
        """Issue one call and return ``(status_code, decoded_body)``.

        Non-2xx answers are returned, not raised; only transport failures
        raise.
        """
        method = method.upper()
        logger.info("Carrier API request: provider=%s %s %s", self.provider, method, path)
        started = time.perf_counter()
        try:
            response = await self._client.request(method, path, json=body)
        except httpx.TimeoutException as exc:
            logger.error(
                "Carrier API timeout: provider=%s %s %s after %.0fms",
                self.provider, method, path, _elapsed_ms(started),
            )
            raise ProviderTimeoutError(
                f"Carrier '{self.provider}' timed out on {method} {path}", provider=self.provider
            ) from exc
        except httpx.RequestError as exc:
            logger.error(
                "Carrier API request error: provider=%s %s %s error=%s",
                self.provider, method, path, exc,
            )
            raise ProviderRequestError(
                f"Carrier '{self.provider}' request failed on {method} {path}: {exc}",
                provider=self.provider,
            ) from exc

        logger.info(
            "Carrier API response: provider=%s %s %s status=%s latency=%.0fms",
            self.provider, method, path, response.status_code, _elapsed_ms(started),
        )
        return response.status_code, _decode_body(response)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "CarrierHttpClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


class CarrierClientPool:
    """Lazily creates and owns one ``CarrierHttpClient`` per registered carrier."""

    def __init__(
        self,
        registry: ProviderRegistry,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._registry = registry
        self._transport = transport
        self._clients: Dict[str, CarrierHttpClient] = {}

    def client_for(self, provider_name: str) -> CarrierHttpClient:
        config = self._registry.resolve(provider_name)
        client = self._clients.get(config.key)
        if client is None:
            client = CarrierHttpClient(config, transport=self._transport)
            self._clients[config.key] = client
        return client

    async def aclose(self) -> None:
        clients, self._clients = list(self._clients.values()), {}
        for client in clients:
            await client.aclose()


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text

"""
Carrier gateway wiring.

Builds the registry once and injects it, together with the shared client
pool and rate governor, into the quote fan-out, the policy lifecycle client
and the webhook reconciler. ``CarrierGateway.from_env()`` is what the API
uses at start-up; tests build one directly around an ``httpx.MockTransport``.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

import httpx

from carrier_gateway.integrations.carriers.errors import CarrierGatewayError
from carrier_gateway.integrations.carriers.rate_governor import RateGovernor
from carrier_gateway.integrations.carriers.registry import ProviderRegistry
from carrier_gateway.integrations.carriers.retry import Sleeper
from carrier_gateway.integrations.clients.mocks.carriers import MockCarrierBackend
from carrier_gateway.integrations.clients.real_http.carriers import CarrierClientPool
from carrier_gateway.integrations.contracts.carriers import ProviderConfig
from carrier_gateway.integrations.notifications.notification_service import (
    LoggingNotificationSink,
    NotificationSink,
)
from carrier_gateway.integrations.policy.policy_service import PolicyLifecycleService
from carrier_gateway.integrations.policy.quotation_service import QuoteFanOutEngine
from carrier_gateway.integrations.policy.webhook_service import WebhookReconciler
from carrier_gateway.utils.config_loader import load_provider_configs

logger = logging.getLogger(__name__)

HEALTH_PATH = "/health"


def _should_use_mock_carriers(environ: Mapping[str, str]) -> bool:
    mode = environ.get("INTEGRATIONS_MODE", "").strip().lower()
    return mode in {"mock", "test"}


class CarrierGateway:
    def __init__(
        self,
        registry: ProviderRegistry,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sink: Optional[NotificationSink] = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.registry = registry
        self.clients = CarrierClientPool(registry, transport=transport)
        self.governor = RateGovernor(registry)
        self.sink = sink or LoggingNotificationSink()
        self.quotes = QuoteFanOutEngine(registry, self.clients, self.governor, sleep=sleep)
        self.policies = PolicyLifecycleService(registry, self.clients, self.governor, sleep=sleep)
        self.webhooks = WebhookReconciler(registry, self.sink)

    @classmethod
    def from_configs(cls, configs: Iterable[ProviderConfig], **kwargs: Any) -> "CarrierGateway":
        return cls(ProviderRegistry.from_configs(configs), **kwargs)

    @classmethod
    def from_env(
        cls,
        config_path: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
        **kwargs: Any,
    ) -> "CarrierGateway":
        env = os.environ if environ is None else environ
        configs = load_provider_configs(config_path, env)
        if _should_use_mock_carriers(env) and "transport" not in kwargs:
            logger.warning("INTEGRATIONS_MODE=%s: all carriers are served by the mock carrier backend", env.get("INTEGRATIONS_MODE"))
            kwargs["transport"] = MockCarrierBackend().transport()
        return cls.from_configs(configs, **kwargs)

    def carrier_status(self) -> List[Dict[str, Any]]:
        return [
            {
                "name": config.name,
                "configured": config.is_configured,
                "api_url": config.base_url,
                "rate_limit": config.rate_limit_per_minute,
                "timeout_seconds": config.timeout_seconds,
                "retry_attempts": config.retry_attempts,
            }
            for config in self.registry
        ]

    async def test_connection(self, provider_name: str) -> Dict[str, Any]:
        """Reachability check: any HTTP answer from the carrier counts as connected."""
        config = self.registry.resolve(provider_name)
        started = time.perf_counter()
        try:
            status_code, _ = await self.clients.client_for(config.name).send("GET", HEALTH_PATH)
        except CarrierGatewayError as exc:
            return {
                "connected": False,
                "response_time_ms": round((time.perf_counter() - started) * 1000, 1),
                "message": str(exc),
            }
        return {
            "connected": True,
            "response_time_ms": round((time.perf_counter() - started) * 1000, 1),
            "message": f"Connection successful (HTTP {status_code})",
        }

    async def aclose(self) -> None:
        await self.clients.aclose()

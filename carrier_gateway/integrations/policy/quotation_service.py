"""
Quotation Service for carrier quote fan-out

Sends one carrier-agnostic ``QuoteRequest`` to several carriers at once and
collects whatever comes back. Each carrier runs in its own task with its own
429 retry loop; the aggregate returns once every task has finished, and a
carrier that failed for any reason is simply absent from the result.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Sequence

from carrier_gateway.integrations.carriers.errors import (
    CarrierGatewayError,
    UnconfiguredProviderError,
    UnknownProviderError,
)
from carrier_gateway.integrations.carriers.rate_governor import RateGovernor
from carrier_gateway.integrations.carriers.registry import ProviderRegistry, provider_key
from carrier_gateway.integrations.carriers.retry import Sleeper, call_with_backoff
from carrier_gateway.integrations.carriers.transformers import transform_quote_request
from carrier_gateway.integrations.clients.real_http.carriers import CarrierClientPool
from carrier_gateway.integrations.contracts.carriers import QuoteRequest, QuoteResult, QuoteSlot, SlotStatus
from carrier_gateway.integrations.policy.response_wrappers import normalize_quote_response

logger = logging.getLogger(__name__)

QUOTES_PATH = "/quotes"


class QuoteFanOutEngine:
    def __init__(
        self,
        registry: ProviderRegistry,
        clients: CarrierClientPool,
        governor: RateGovernor,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._registry = registry
        self._clients = clients
        self._governor = governor
        self._sleep = sleep

    async def request_quotes(
        self,
        request: QuoteRequest,
        provider_names: Optional[Sequence[str]] = None,
    ) -> Dict[str, QuoteResult]:
        """
        Fan ``request`` out to ``provider_names`` (every registered carrier
        when omitted) and return the quotes that succeeded, keyed by carrier
        name. Never raises for a single carrier's failure; an empty mapping
        means no carrier produced a quote.
        """
        slots = await self.request_quotes_detailed(request, provider_names)
        return {
            name: slot.quote
            for name, slot in slots.items()
            if slot.status is SlotStatus.SUCCEEDED and slot.quote is not None
        }

    async def request_quotes_detailed(
        self,
        request: QuoteRequest,
        provider_names: Optional[Sequence[str]] = None,
    ) -> Dict[str, QuoteSlot]:
        """Same fan-out as ``request_quotes`` but keeps a status slot per carrier."""
        targets = self._targets(provider_names)
        logger.info(
            "Requesting quotes for submission %s from %d carriers: %s",
            request.submission_id, len(targets), ", ".join(targets) or "-",
        )
        # gather cancels every child task if this coroutine is cancelled
        slots = await asyncio.gather(*(self._quote_slot(name, request) for name in targets))
        succeeded = sum(1 for slot in slots if slot.status is SlotStatus.SUCCEEDED)
        logger.info(
            "Quote fan-out for submission %s finished: %d/%d carriers returned a quote",
            request.submission_id, succeeded, len(targets),
        )
        return {slot.provider: slot for slot in slots}

    async def request_quote_from_carrier(self, provider_name: str, request: QuoteRequest) -> QuoteResult:
        """Quote from exactly one carrier; every failure propagates."""
        config = self._registry.resolve_configured(provider_name)
        payload = transform_quote_request(config, request)
        client = self._clients.client_for(config.name)
        body = await call_with_backoff(client, self._governor, "POST", QUOTES_PATH, payload, sleep=self._sleep)
        return normalize_quote_response(body, provider=config.name)

    def _targets(self, provider_names: Optional[Sequence[str]]) -> List[str]:
        if not provider_names:
            return self._registry.names()
        seen = set()
        targets: List[str] = []
        for name in provider_names:
            key = provider_key(name)
            if not key or key in seen:
                continue
            seen.add(key)
            targets.append(name)
        return targets

    async def _quote_slot(self, provider_name: str, request: QuoteRequest) -> QuoteSlot:
        try:
            quote = await self.request_quote_from_carrier(provider_name, request)
        except UnknownProviderError as exc:
            logger.warning("Skipping quote from %s: %s", provider_name, exc)
            return QuoteSlot(provider=provider_name, status=SlotStatus.UNKNOWN, error=str(exc))
        except UnconfiguredProviderError as exc:
            logger.warning("Skipping quote from %s: %s", provider_name, exc)
            return QuoteSlot(provider=provider_name, status=SlotStatus.UNCONFIGURED, error=str(exc))
        except CarrierGatewayError as exc:
            logger.error("Failed to get quote from %s: %s", provider_name, exc)
            return QuoteSlot(provider=provider_name, status=SlotStatus.FAILED, error=str(exc))
        except Exception as exc:
            logger.exception("Unexpected error while quoting from %s", provider_name)
            return QuoteSlot(provider=provider_name, status=SlotStatus.FAILED, error=str(exc))
        return QuoteSlot(provider=provider_name, status=SlotStatus.SUCCEEDED, quote=quote)

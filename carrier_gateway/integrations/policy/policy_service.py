"""
Policy Service for carrier policy lifecycle calls

Purchase, status, cancellation and documents against one named carrier.
These are stateful, billable actions, so every failure is raised to the
caller; the only retry is the bounded 429 backoff shared with quoting.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from carrier_gateway.integrations.carriers.rate_governor import RateGovernor
from carrier_gateway.integrations.carriers.registry import ProviderRegistry
from carrier_gateway.integrations.carriers.retry import Sleeper, call_with_backoff
from carrier_gateway.integrations.clients.real_http.carriers import CarrierClientPool
from carrier_gateway.integrations.contracts.carriers import (
    CancellationResult,
    PolicyDocument,
    PolicyRequest,
    PolicyResult,
)
from carrier_gateway.integrations.policy.response_wrappers import (
    normalize_cancellation_response,
    normalize_policy_documents,
    normalize_policy_response,
)

logger = logging.getLogger(__name__)

POLICIES_PATH = "/policies"


def build_policy_payload(request: PolicyRequest) -> Dict[str, Any]:
    billing = request.billing
    return {
        "quoteId": request.quote_id,
        "submissionId": request.submission_id,
        "effectiveDate": request.effective_date.isoformat(),
        "paymentMethod": request.payment_cadence.value,
        "billingInfo": {
            "name": billing.name,
            "address": billing.address,
            "city": billing.city,
            "state": billing.state,
            "zipCode": billing.zip_code,
        },
    }


class PolicyLifecycleService:
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

    async def purchase_policy(self, provider_name: str, request: PolicyRequest) -> PolicyResult:
        provider, body = await self._call(provider_name, "POST", POLICIES_PATH, build_policy_payload(request))
        policy = normalize_policy_response(body, provider=provider)
        logger.info(
            "Policy purchased: carrier=%s policy_id=%s submission_id=%s",
            provider, policy.policy_id, request.submission_id,
        )
        return policy

    async def get_policy_status(self, provider_name: str, policy_id: str) -> PolicyResult:
        provider, body = await self._call(provider_name, "GET", _policy_path(policy_id))
        return normalize_policy_response(body, provider=provider, fallback_policy_id=policy_id)

    async def cancel_policy(
        self,
        provider_name: str,
        policy_id: str,
        reason: str,
        effective_date: Optional[datetime] = None,
    ) -> CancellationResult:
        if not (reason or "").strip():
            raise ValueError("Cancellation reason is required")
        if effective_date is None:
            effective_date = datetime.now(timezone.utc)

        provider, body = await self._call(
            provider_name,
            "POST",
            f"{_policy_path(policy_id)}/cancel",
            {"reason": reason, "effectiveDate": effective_date.isoformat()},
        )
        result = normalize_cancellation_response(
            body,
            provider=provider,
            policy_id=policy_id,
            reason=reason,
            effective_date=effective_date,
        )
        logger.info(
            "Policy cancelled: carrier=%s policy_id=%s cancellation_id=%s",
            provider, policy_id, result.cancellation_id,
        )
        return result

    async def get_policy_documents(self, provider_name: str, policy_id: str) -> List[PolicyDocument]:
        provider, body = await self._call(provider_name, "GET", f"{_policy_path(policy_id)}/documents")
        return normalize_policy_documents(body, provider=provider)

    async def _call(self, provider_name: str, method: str, path: str, body: Any = None):
        config = self._registry.resolve_configured(provider_name)
        client = self._clients.client_for(config.name)
        payload = await call_with_backoff(client, self._governor, method, path, body, sleep=self._sleep)
        return config.name, payload


def _policy_path(policy_id: str) -> str:
    if not (policy_id or "").strip():
        raise ValueError("policy_id is required")
    return f"{POLICIES_PATH}/{quote(policy_id, safe='')}"

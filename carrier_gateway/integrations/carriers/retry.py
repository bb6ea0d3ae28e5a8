"""Bounded retry-on-429 for carrier calls."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from carrier_gateway.integrations.carriers.errors import ProviderRateLimitedError, ProviderRequestError
from carrier_gateway.integrations.carriers.rate_governor import RateGovernor
from carrier_gateway.integrations.clients.real_http.carriers import CarrierHttpClient

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[Any]]

RATE_LIMITED = 429


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def should_retry(status_code: int, attempt: int, max_retries: int) -> bool:
    """Only 429 is retried, and only while the carrier's retry budget lasts."""
    if attempt >= max_retries:
        return False
    return status_code == RATE_LIMITED


async def call_with_backoff(
    client: CarrierHttpClient,
    governor: RateGovernor,
    method: str,
    path: str,
    body: Any = None,
    *,
    sleep: Sleeper = asyncio.sleep,
) -> Any:
    """Send one carrier call, sleeping and retrying on 429 up to the retry budget.

    Returns the decoded 2xx body. Any other status raises
    ``ProviderRequestError`` without retrying; an exhausted budget raises
    ``ProviderRateLimitedError``.
    """
    provider = client.provider
    max_retries = client.config.retry_attempts
    attempt = 0
    while True:
        status_code, payload = await client.send(method, path, body)
        if is_success(status_code):
            return payload

        if should_retry(status_code, attempt, max_retries):
            delay = governor.backoff_for(provider)
            attempt += 1
            logger.warning(
                "Rate limit exceeded for %s, waiting %.0fms (retry %d/%d)",
                provider, delay.total_seconds() * 1000, attempt, max_retries,
            )
            await sleep(delay.total_seconds())
            continue

        if status_code == RATE_LIMITED:
            raise ProviderRateLimitedError(provider, attempt)

        raise ProviderRequestError(
            f"Carrier '{provider}' answered {method.upper()} {path} with HTTP {status_code}",
            provider=provider,
            status_code=status_code,
            payload=payload,
        )

"""
Reactive rate-limit backoff for carrier calls.

Only reacts to HTTP 429: the wait is one request slot of the carrier's
configured per-minute limit (60 000 ms / limit). No jitter, no exponential
growth and no pre-emptive request counting; retries are bounded by the
carrier's retry budget instead.
"""

from __future__ import annotations

from datetime import timedelta

from carrier_gateway.integrations.carriers.registry import ProviderRegistry

_WINDOW_MS = 60_000


class RateGovernor:
    def __init__(self, registry: ProviderRegistry) -> None:
        self._registry = registry

    def backoff_for(self, provider_name: str) -> timedelta:
        config = self._registry.resolve(provider_name)
        return timedelta(milliseconds=_WINDOW_MS / config.rate_limit_per_minute)

"""
Integrations layer.
This package contains all code used to communicate with external systems such as:
- Carrier quote and policy APIs (one bound HTTP client per carrier)
- Carrier webhooks (inbound quote/policy/payment events)
- The notification collaborator that reconciled events are handed to

Key rule:
- API routes MUST NOT call carrier APIs directly.
- Routes go through the services in integrations/policy, which use the
  clients under integrations/clients.
- We use the MOCK carrier transport during development and the REAL_HTTP
  client when carrier credentials are available.

Switching implementations:
- The selection of mock vs real transport happens in ONE place
  (integrations/carriers/gateway.py).
"""

from .contracts.carriers import (
    PolicyRequest,
    PolicyResult,
    ProviderConfig,
    QuoteRequest,
    QuoteResult,
    WebhookEvent,
)

__all__ = [
    "PolicyRequest",
    "PolicyResult",
    "ProviderConfig",
    "QuoteRequest",
    "QuoteResult",
    "WebhookEvent",
]

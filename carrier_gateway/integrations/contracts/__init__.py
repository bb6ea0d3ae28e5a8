"""
Contracts (data models).

This folder defines the request/response shapes for carrier integrations:
- provider configuration
- quote requests and per-carrier quote results
- policy purchase / status / cancellation / documents
- webhook events and the notifications they turn into

Both the real HTTP carrier client and the mock carrier transport are read
through these contracts, so flows never guess at carrier payload formats.
"""

from .carriers import (
    BillingInfo,
    BusinessProfile,
    CancellationResult,
    CarrierNotification,
    ContactInfo,
    CoverageLine,
    CoverageSelection,
    NotificationKind,
    PaymentCadence,
    PaymentInstallment,
    PolicyDocument,
    PolicyRequest,
    PolicyResult,
    PolicyStatus,
    PostalAddress,
    ProviderConfig,
    QuoteDocument,
    QuoteRequest,
    QuoteResult,
    QuoteSlot,
    QuoteStatus,
    SlotStatus,
    WebhookEvent,
    WebhookEventType,
    WebhookOutcome,
)

__all__ = [
    "BillingInfo",
    "BusinessProfile",
    "CancellationResult",
    "CarrierNotification",
    "ContactInfo",
    "CoverageLine",
    "CoverageSelection",
    "NotificationKind",
    "PaymentCadence",
    "PaymentInstallment",
    "PolicyDocument",
    "PolicyRequest",
    "PolicyResult",
    "PolicyStatus",
    "PostalAddress",
    "ProviderConfig",
    "QuoteDocument",
    "QuoteRequest",
    "QuoteResult",
    "QuoteSlot",
    "QuoteStatus",
    "SlotStatus",
    "WebhookEvent",
    "WebhookEventType",
    "WebhookOutcome",
]

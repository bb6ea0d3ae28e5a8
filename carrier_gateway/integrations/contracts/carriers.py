"""
Carrier contracts.

Request/response shapes shared by the quote fan-out, the policy lifecycle
client, the webhook reconciler and the HTTP routes. Carrier bodies are
normalised into these models in ``integrations/policy/response_wrappers.py``;
nothing else should read raw carrier JSON.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class QuoteStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"


class PolicyStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PENDING = "PENDING"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


class PaymentCadence(str, Enum):
    ANNUAL = "ANNUAL"
    SEMI_ANNUAL = "SEMI_ANNUAL"
    QUARTERLY = "QUARTERLY"
    MONTHLY = "MONTHLY"


class WebhookEventType(str, Enum):
    QUOTE_READY = "QUOTE_READY"
    POLICY_ISSUED = "POLICY_ISSUED"
    POLICY_CANCELLED = "POLICY_CANCELLED"
    PAYMENT_RECEIVED = "PAYMENT_RECEIVED"


class NotificationKind(str, Enum):
    QUOTE_AVAILABLE = "QUOTE_AVAILABLE"
    POLICY_ACTIVE = "POLICY_ACTIVE"
    POLICY_CANCELLED = "POLICY_CANCELLED"
    PAYMENT_RECORDED = "PAYMENT_RECORDED"


class SlotStatus(str, Enum):
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    UNCONFIGURED = "UNCONFIGURED"
    UNKNOWN = "UNKNOWN"


# ---------------------------------------------------------------------------
# Provider configuration
# ---------------------------------------------------------------------------

class ProviderConfig(BaseModel):
    """Static configuration of one carrier. Built once at start-up."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    base_url: str
    api_key: str = ""
    timeout_seconds: float = Field(default=30.0, gt=0)
    retry_attempts: int = Field(default=3, ge=0)
    rate_limit_per_minute: int = Field(default=60, ge=1)
    webhook_secret: Optional[str] = None
    routing_codes: Dict[str, str] = Field(default_factory=dict)

    @property
    def key(self) -> str:
        return self.name.strip().lower()

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key.strip())


# ---------------------------------------------------------------------------
# Quote request
# ---------------------------------------------------------------------------

class PostalAddress(BaseModel):
    model_config = ConfigDict(frozen=True)

    street: str
    city: str
    state: str
    zip_code: str


class BusinessProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    tax_id: str
    legal_form: str                      # e.g. llc, corporation, partnership
    years_active: int = Field(ge=0)
    description: str = ""
    address: PostalAddress


class CoverageSelection(BaseModel):
    model_config = ConfigDict(frozen=True)

    coverage_types: List[str] = Field(..., min_length=1)
    limits: Dict[str, float] = Field(default_factory=dict)
    deductibles: Dict[str, float] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _keys_are_selected(self) -> "CoverageSelection":
        selected = set(self.coverage_types)
        for label, mapping in (("limits", self.limits), ("deductibles", self.deductibles)):
            extra = sorted(set(mapping) - selected)
            if extra:
                raise ValueError(f"{label} reference unselected coverage types: {', '.join(extra)}")
        return self


class ContactInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    email: str
    phone: str


class QuoteRequest(BaseModel):
    """Carrier-agnostic quote request derived from one submission."""

    model_config = ConfigDict(frozen=True)

    submission_id: str = Field(..., min_length=1)
    business: BusinessProfile
    coverage: CoverageSelection
    contact: ContactInfo


# ---------------------------------------------------------------------------
# Quote result
# ---------------------------------------------------------------------------

class CoverageLine(BaseModel):
    type: str
    limit: float = 0.0
    deductible: float = 0.0
    premium: float = 0.0


class QuoteDocument(BaseModel):
    type: str
    url: Optional[str] = None
    required: bool = True


class QuoteResult(BaseModel):
    provider: str
    quote_id: str
    premium: float
    coverage: List[CoverageLine] = Field(default_factory=list)
    valid_until: Optional[datetime] = None
    status: QuoteStatus = QuoteStatus.PENDING
    required_documents: List[QuoteDocument] = Field(default_factory=list)
    effective_date: Optional[date] = None
    expiration_date: Optional[date] = None
    terms: List[str] = Field(default_factory=list)
    conditions: List[str] = Field(default_factory=list)
    raw: Dict[str, Any] = Field(default_factory=dict)


class QuoteSlot(BaseModel):
    """Outcome of one provider's leg of a fan-out."""

    provider: str
    status: SlotStatus
    quote: Optional[QuoteResult] = None
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# Policy lifecycle
# ---------------------------------------------------------------------------

class BillingInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    address: str
    city: str
    state: str
    zip_code: str


class PolicyRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    quote_id: str = Field(..., min_length=1)
    submission_id: str = Field(..., min_length=1)
    effective_date: date
    payment_cadence: PaymentCadence
    billing: BillingInfo


class PaymentInstallment(BaseModel):
    frequency: str
    amount: float
    due_date: Optional[date] = None


class PolicyDocument(BaseModel):
    type: str
    url: Optional[str] = None
    download_url: Optional[str] = None


class PolicyResult(BaseModel):
    provider: str
    policy_id: str
    policy_number: Optional[str] = None
    effective_date: Optional[date] = None
    expiration_date: Optional[date] = None
    premium: Optional[float] = None
    payment_schedule: List[PaymentInstallment] = Field(default_factory=list)
    documents: List[PolicyDocument] = Field(default_factory=list)
    status: PolicyStatus = PolicyStatus.PENDING
    raw: Dict[str, Any] = Field(default_factory=dict)


class CancellationResult(BaseModel):
    provider: str
    policy_id: str
    success: bool
    cancellation_id: Optional[str] = None
    reason: str
    effective_date: datetime


# ---------------------------------------------------------------------------
# Webhooks & notifications
# ---------------------------------------------------------------------------

class WebhookEvent(BaseModel):
    provider: str
    # Normalised upper-case form; unrecognised carrier types are kept as-is.
    event_type: str
    payload: Dict[str, Any] = Field(default_factory=dict)

    @property
    def known_type(self) -> Optional[WebhookEventType]:
        try:
            return WebhookEventType(self.event_type)
        except ValueError:
            return None


class WebhookOutcome(BaseModel):
    processed: bool
    message: str


class CarrierNotification(BaseModel):
    kind: NotificationKind
    provider: str
    event_type: WebhookEventType
    reference_id: str
    payload: Dict[str, Any] = Field(default_factory=dict)

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ValidationError

from carrier_gateway.integrations.carriers.errors import ProviderResponseError
from carrier_gateway.integrations.contracts.carriers import (
    CancellationResult,
    PolicyDocument,
    PolicyResult,
    PolicyStatus,
    QuoteResult,
    QuoteStatus,
)

_QUOTE_STATUS_ALIASES = {
    "PENDING": QuoteStatus.PENDING,
    "QUOTED": QuoteStatus.PENDING,
    "REFERRED": QuoteStatus.PENDING,
    "APPROVED": QuoteStatus.APPROVED,
    "BOUND": QuoteStatus.APPROVED,
    "REJECTED": QuoteStatus.REJECTED,
    "DECLINED": QuoteStatus.REJECTED,
    "EXPIRED": QuoteStatus.EXPIRED,
}

_POLICY_STATUS_ALIASES = {
    "ACTIVE": PolicyStatus.ACTIVE,
    "ISSUED": PolicyStatus.ACTIVE,
    "IN_FORCE": PolicyStatus.ACTIVE,
    "PENDING": PolicyStatus.PENDING,
    "PROCESSING": PolicyStatus.PENDING,
    "CANCELLED": PolicyStatus.CANCELLED,
    "CANCELED": PolicyStatus.CANCELLED,
    "EXPIRED": PolicyStatus.EXPIRED,
}


def normalize_quote_response(raw: Any, *, provider: str) -> QuoteResult:
    data = _require_object(raw, provider, "quote")
    quote_id = _first_non_empty(data, "quoteId", "quote_id", "id", provider=provider)
    premium = _coerce_amount(
        _first_non_empty(data, "premium", "totalPremium", "total_premium", "amount", provider=provider),
        "quote premium",
        provider,
    )
    status = _map_status(
        _first_non_empty(data, "status", "quoteStatus", "quote_status", default="PENDING"),
        _QUOTE_STATUS_ALIASES,
        "quote",
        provider,
    )

    coverage = [
        {
            "type": str(_first_non_empty(item, "type", "coverageType", "coverage_type", default="UNSPECIFIED")),
            "limit": _coerce_amount(item.get("limit") or 0, "coverage limit", provider),
            "deductible": _coerce_amount(item.get("deductible") or 0, "coverage deductible", provider),
            "premium": _coerce_amount(item.get("premium") or 0, "coverage premium", provider),
        }
        for item in _list_of_objects(data.get("coverage"))
    ]
    documents = [
        {
            "type": str(_first_non_empty(item, "type", "documentType", default="DOCUMENT")),
            "url": item.get("url"),
            "required": bool(item.get("required", True)),
        }
        for item in _list_of_objects(_first_non_empty(data, "documents", "requiredDocuments", default=[]))
    ]

    return _build_model(
        QuoteResult,
        {
            "provider": provider,
            "quote_id": str(quote_id),
            "premium": premium,
            "coverage": coverage,
            "valid_until": _first_non_empty(data, "validUntil", "valid_until", default=None),
            "status": status,
            "required_documents": documents,
            "effective_date": _date_part(_first_non_empty(data, "effectiveDate", "effective_date", default=None)),
            "expiration_date": _date_part(_first_non_empty(data, "expirationDate", "expiration_date", default=None)),
            "terms": [str(t) for t in data.get("terms") or []],
            "conditions": [str(c) for c in data.get("conditions") or []],
            "raw": data,
        },
        data,
        provider,
    )


def normalize_policy_response(
    raw: Any,
    *,
    provider: str,
    fallback_policy_id: Optional[str] = None,
) -> PolicyResult:
    data = _require_object(raw, provider, "policy")
    policy_id = _first_non_empty(
        data,
        "policyId",
        "policy_id",
        "id",
        default=fallback_policy_id if fallback_policy_id else _MISSING,
        provider=provider,
    )
    premium = _first_non_empty(data, "premium", "totalPremium", default=None)
    status = _map_status(
        _first_non_empty(data, "status", "policyStatus", default="PENDING"),
        _POLICY_STATUS_ALIASES,
        "policy",
        provider,
    )
    schedule = [
        {
            "frequency": str(_first_non_empty(item, "frequency", default="UNSPECIFIED")),
            "amount": _coerce_amount(_first_non_empty(item, "amount", default=0), "installment amount", provider),
            "due_date": _date_part(_first_non_empty(item, "dueDate", "due_date", default=None)),
        }
        for item in _list_of_objects(_first_non_empty(data, "paymentSchedule", "payment_schedule", default=[]))
    ]

    return _build_model(
        PolicyResult,
        {
            "provider": provider,
            "policy_id": str(policy_id),
            "policy_number": _optional_str(_first_non_empty(data, "policyNumber", "policy_number", default=None)),
            "effective_date": _date_part(_first_non_empty(data, "effectiveDate", "effective_date", default=None)),
            "expiration_date": _date_part(_first_non_empty(data, "expirationDate", "expiration_date", default=None)),
            "premium": _coerce_amount(premium, "policy premium", provider) if premium is not None else None,
            "payment_schedule": schedule,
            "documents": normalize_policy_documents(data.get("documents") or [], provider=provider),
            "status": status,
            "raw": data,
        },
        data,
        provider,
    )


def normalize_policy_documents(raw: Any, *, provider: str) -> List[PolicyDocument]:
    items = raw.get("documents") if isinstance(raw, dict) else raw
    if not isinstance(items, list):
        raise ProviderResponseError(
            f"Carrier '{provider}' returned documents in an unexpected shape.",
            provider=provider,
            payload=raw if isinstance(raw, dict) else {"body": raw},
        )
    return [
        PolicyDocument(
            type=str(_first_non_empty(item, "type", "documentType", default="DOCUMENT")),
            url=_optional_str(item.get("url")),
            download_url=_optional_str(_first_non_empty(item, "downloadUrl", "download_url", default=None)),
        )
        for item in _list_of_objects(items)
    ]


def normalize_cancellation_response(
    raw: Any,
    *,
    provider: str,
    policy_id: str,
    reason: str,
    effective_date: datetime,
) -> CancellationResult:
    data = raw if isinstance(raw, dict) else {}
    return _build_model(
        CancellationResult,
        {
            "provider": provider,
            "policy_id": policy_id,
            "success": bool(data.get("success", True)),
            "cancellation_id": _optional_str(_first_non_empty(data, "cancellationId", "cancellation_id", default=None)),
            "reason": reason,
            "effective_date": effective_date,
        },
        data,
        provider,
    )


def _require_object(raw: Any, provider: str, label: str) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        raise ProviderResponseError(
            f"Carrier '{provider}' returned a non-object {label} body.",
            provider=provider,
            payload={"body": raw},
        )
    return raw


_MISSING = object()


def _first_non_empty(data: Dict[str, Any], *keys: str, default: Any = _MISSING, provider: Optional[str] = None) -> Any:
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    if default is not _MISSING:
        return default
    raise ProviderResponseError(
        f"Missing required field. Checked keys: {', '.join(keys)}",
        provider=provider,
        payload=data,
    )


def _coerce_amount(value: Any, label: str, provider: str) -> float:
    try:
        amount = float(value)
    except (TypeError, ValueError) as exc:
        raise ProviderResponseError(f"Invalid {label}: {value!r}", provider=provider) from exc
    if amount < 0:
        raise ProviderResponseError(f"{label.capitalize()} must be >= 0; got {amount}.", provider=provider)
    return amount


def _map_status(raw_status: Any, aliases: Dict[str, Any], label: str, provider: str) -> Any:
    value = str(raw_status or "").strip().upper().replace("-", "_").replace(" ", "_")
    if value not in aliases:
        raise ProviderResponseError(f"Unsupported {label} status '{value}'.", provider=provider)
    return aliases[value]


def _list_of_objects(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _date_part(value: Any) -> Any:
    # carriers send either plain dates or full ISO timestamps
    if isinstance(value, str) and "T" in value:
        return value.split("T", 1)[0]
    return value


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _build_model(model_type: type, payload: Dict[str, Any], raw: Dict[str, Any], provider: str) -> BaseModel:
    try:
        return model_type(**payload)
    except ValidationError as exc:
        raise ProviderResponseError(f"Response validation failed: {exc}", provider=provider, payload=raw) from exc

"""
Carrier-specific quote request transformers.

Every carrier receives the same common business fields; each transformer
adds the routing and derived fields that carrier expects. Transformers are
pure functions of ``(QuoteRequest, ProviderConfig)`` registered by carrier
key, so a new carrier only needs a new entry here (carriers without an entry
get the common payload).
"""

from __future__ import annotations

from typing import Any, Callable, Dict

from carrier_gateway.integrations.carriers.registry import provider_key
from carrier_gateway.integrations.contracts.carriers import ProviderConfig, QuoteRequest

QuoteTransformer = Callable[[QuoteRequest, ProviderConfig], Dict[str, Any]]

_TRANSFORMERS: Dict[str, QuoteTransformer] = {}

_TERRITORY_BY_STATE = {
    "CA": "WEST",
    "NY": "NORTHEAST",
    "TX": "SOUTH",
    "FL": "SOUTH",
    "IL": "MIDWEST",
}

_REGION_BY_STATE = {
    "CA": "WESTERN",
    "NY": "EASTERN",
    "TX": "SOUTHERN",
    "FL": "SOUTHERN",
    "IL": "CENTRAL",
}

_BUSINESS_CLASS_BY_LEGAL_FORM = {
    "sole-proprietorship": "SOLE_PROP",
    "partnership": "PARTNERSHIP",
    "llc": "LLC",
    "corporation": "CORPORATION",
    "non-profit": "NON_PROFIT",
}


def register_transformer(carrier_name: str) -> Callable[[QuoteTransformer], QuoteTransformer]:
    def decorator(func: QuoteTransformer) -> QuoteTransformer:
        _TRANSFORMERS[provider_key(carrier_name)] = func
        return func

    return decorator


def get_transformer(carrier_name: str) -> QuoteTransformer:
    return _TRANSFORMERS.get(provider_key(carrier_name), base_quote_payload)


def transform_quote_request(config: ProviderConfig, request: QuoteRequest) -> Dict[str, Any]:
    return get_transformer(config.name)(request, config)


def territory_for_state(state: str) -> str:
    return _TERRITORY_BY_STATE.get((state or "").upper(), "UNKNOWN")


def region_for_state(state: str) -> str:
    return _REGION_BY_STATE.get((state or "").upper(), "UNKNOWN")


def business_class_for(legal_form: str) -> str:
    return _BUSINESS_CLASS_BY_LEGAL_FORM.get((legal_form or "").strip().lower(), "OTHER")


def base_quote_payload(request: QuoteRequest, config: ProviderConfig) -> Dict[str, Any]:
    business = request.business
    address = business.address
    return {
        "submissionId": request.submission_id,
        "businessName": business.name,
        "federalId": business.tax_id,
        "businessType": business.legal_form,
        "yearsInBusiness": business.years_active,
        "businessDescription": business.description,
        "address": {
            "street": address.street,
            "city": address.city,
            "state": address.state,
            "zipCode": address.zip_code,
        },
        "contactName": request.contact.name,
        "email": request.contact.email,
        "phone": request.contact.phone,
        "coverageTypes": list(request.coverage.coverage_types),
        "limits": dict(request.coverage.limits),
        "deductibles": dict(request.coverage.deductibles),
    }


@register_transformer("State Farm")
def state_farm_payload(request: QuoteRequest, config: ProviderConfig) -> Dict[str, Any]:
    return {
        **base_quote_payload(request, config),
        "agencyCode": config.routing_codes.get("agency_code"),
        "territory": territory_for_state(request.business.address.state),
    }


@register_transformer("Progressive")
def progressive_payload(request: QuoteRequest, config: ProviderConfig) -> Dict[str, Any]:
    return {
        **base_quote_payload(request, config),
        "channel": "AGENT",
        "productLine": "COMMERCIAL",
    }


@register_transformer("Allstate")
def allstate_payload(request: QuoteRequest, config: ProviderConfig) -> Dict[str, Any]:
    return {
        **base_quote_payload(request, config),
        "agencyId": config.routing_codes.get("agency_id"),
        "region": region_for_state(request.business.address.state),
    }


@register_transformer("Liberty Mutual")
def liberty_mutual_payload(request: QuoteRequest, config: ProviderConfig) -> Dict[str, Any]:
    return {
        **base_quote_payload(request, config),
        "producerCode": config.routing_codes.get("producer_code"),
        "marketSegment": "SMALL_BUSINESS",
    }


@register_transformer("Travelers")
def travelers_payload(request: QuoteRequest, config: ProviderConfig) -> Dict[str, Any]:
    return {
        **base_quote_payload(request, config),
        "agentCode": config.routing_codes.get("agent_code"),
        "businessClass": business_class_for(request.business.legal_form),
    }

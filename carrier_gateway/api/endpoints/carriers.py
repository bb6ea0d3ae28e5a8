import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from carrier_gateway.api.dependencies import get_gateway
from carrier_gateway.integrations.carriers.gateway import CarrierGateway
from carrier_gateway.integrations.contracts.carriers import PolicyRequest, QuoteRequest, SlotStatus

logger = logging.getLogger(__name__)

router = APIRouter()


class QuoteFanOutRequest(QuoteRequest):
    carrier_names: Optional[List[str]] = Field(default=None, description="Carriers to ask; all registered when omitted")


class PolicyPurchaseRequest(PolicyRequest):
    carrier_name: str = Field(..., min_length=1)


class CancelPolicyRequest(BaseModel):
    reason: str = Field(..., min_length=1)
    effective_date: Optional[datetime] = None


@router.get("/carriers", tags=["Carriers"])
async def list_carriers(gateway: CarrierGateway = Depends(get_gateway)):
    return {"success": True, "data": {"carriers": gateway.carrier_status()}}


@router.get("/status", tags=["Carriers"])
async def integration_status(gateway: CarrierGateway = Depends(get_gateway)):
    carriers = gateway.carrier_status()
    return {
        "success": True,
        "data": {
            "carriers": carriers,
            "total_carriers": len(carriers),
            "configured_carriers": sum(1 for c in carriers if c["configured"]),
        },
    }


@router.post("/quotes/request", tags=["Quotes"])
async def request_quotes(body: QuoteFanOutRequest, gateway: CarrierGateway = Depends(get_gateway)):
    logger.info("Quote request received: submission_id=%s carriers=%s", body.submission_id, body.carrier_names or "all")
    slots = await gateway.quotes.request_quotes_detailed(body, body.carrier_names)
    quotes = {
        name: slot.quote.model_dump(mode="json")
        for name, slot in slots.items()
        if slot.status is SlotStatus.SUCCEEDED and slot.quote is not None
    }
    return {
        "success": True,
        "data": {
            "quotes": quotes,
            "total_quotes": len(quotes),
            "requested_carriers": list(slots),
            "carrier_status": {name: slot.status.value for name, slot in slots.items()},
        },
    }


@router.post("/quotes/{carrier_name}", tags=["Quotes"])
async def request_quote_from_carrier(
    carrier_name: str,
    body: QuoteRequest,
    gateway: CarrierGateway = Depends(get_gateway),
):
    quote = await gateway.quotes.request_quote_from_carrier(carrier_name, body)
    return {"success": True, "data": {"carrier": carrier_name, "quote": quote.model_dump(mode="json")}}


@router.post("/policies/purchase", tags=["Policies"])
async def purchase_policy(body: PolicyPurchaseRequest, gateway: CarrierGateway = Depends(get_gateway)):
    policy = await gateway.policies.purchase_policy(body.carrier_name, body)
    return {"success": True, "data": {"carrier": body.carrier_name, "policy": policy.model_dump(mode="json")}}


@router.get("/policies/{carrier_name}/{policy_id}/status", tags=["Policies"])
async def get_policy_status(carrier_name: str, policy_id: str, gateway: CarrierGateway = Depends(get_gateway)):
    policy = await gateway.policies.get_policy_status(carrier_name, policy_id)
    return {
        "success": True,
        "data": {"carrier": carrier_name, "policy_id": policy_id, "policy": policy.model_dump(mode="json")},
    }


@router.post("/policies/{carrier_name}/{policy_id}/cancel", tags=["Policies"])
async def cancel_policy(
    carrier_name: str,
    policy_id: str,
    body: CancelPolicyRequest,
    gateway: CarrierGateway = Depends(get_gateway),
):
    result = await gateway.policies.cancel_policy(carrier_name, policy_id, body.reason, body.effective_date)
    return {
        "success": True,
        "data": {"carrier": carrier_name, "policy_id": policy_id, "cancellation": result.model_dump(mode="json")},
    }


@router.get("/policies/{carrier_name}/{policy_id}/documents", tags=["Policies"])
async def get_policy_documents(carrier_name: str, policy_id: str, gateway: CarrierGateway = Depends(get_gateway)):
    documents = await gateway.policies.get_policy_documents(carrier_name, policy_id)
    return {
        "success": True,
        "data": {
            "carrier": carrier_name,
            "policy_id": policy_id,
            "documents": [doc.model_dump(mode="json") for doc in documents],
        },
    }


@router.post("/test/{carrier_name}", tags=["Carriers"])
async def test_carrier_connection(carrier_name: str, gateway: CarrierGateway = Depends(get_gateway)):
    result = await gateway.test_connection(carrier_name)
    return {"success": True, "data": {"carrier": carrier_name, **result}}

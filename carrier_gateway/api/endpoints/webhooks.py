import logging

from fastapi import APIRouter, Depends, Request

from carrier_gateway.api.dependencies import get_gateway
from carrier_gateway.integrations.carriers.gateway import CarrierGateway
from carrier_gateway.integrations.policy.webhook_service import SIGNATURE_HEADER

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/webhooks/{carrier_name}", tags=["Webhooks"])
async def carrier_webhook(carrier_name: str, request: Request, gateway: CarrierGateway = Depends(get_gateway)):
    """
    Carrier event callback.

    Always answers 200 with ``{processed, message}``: a failing answer would
    make carriers retry the same event over and over.
    """
    raw_body = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER)
    outcome = await gateway.webhooks.handle_webhook(carrier_name, raw_body, signature)
    return {"success": outcome.processed, "processed": outcome.processed, "message": outcome.message}

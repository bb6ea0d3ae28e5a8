from datetime import date

import pytest

from carrier_gateway.integrations.carriers.errors import ProviderRequestError
from carrier_gateway.integrations.carriers.gateway import CarrierGateway
from carrier_gateway.integrations.contracts.carriers import (
    BillingInfo,
    PaymentCadence,
    PolicyRequest,
    PolicyStatus,
    SlotStatus,
)
from carrier_gateway.integrations.notifications.notification_service import InMemoryNotificationSink


@pytest.fixture
def mock_environ():
    return {
        "INTEGRATIONS_MODE": "mock",
        "STATE_FARM_API_KEY": "sf-key",
        "STATE_FARM_AGENCY_CODE": "SF-001",
        "TRAVELERS_API_KEY": "tr-key",
    }


@pytest.mark.asyncio
async def test_mock_mode_serves_every_configured_carrier(mock_environ, quote_request):
    gateway = CarrierGateway.from_env(environ=mock_environ, sink=InMemoryNotificationSink())
    try:
        slots = await gateway.quotes.request_quotes_detailed(quote_request)
    finally:
        await gateway.aclose()

    assert {name: slot.status for name, slot in slots.items()} == {
        "State Farm": SlotStatus.SUCCEEDED,
        "Progressive": SlotStatus.UNCONFIGURED,
        "Allstate": SlotStatus.UNCONFIGURED,
        "Liberty Mutual": SlotStatus.UNCONFIGURED,
        "Travelers": SlotStatus.SUCCEEDED,
    }
    quote = slots["State Farm"].quote
    # GL at 1.2 per mille on 1M, 0.5% deductible credit
    assert quote.premium == pytest.approx(1194.0)
    assert quote.coverage[0].type == "GL"


@pytest.mark.asyncio
async def test_mock_policy_lifecycle(mock_environ, quote_request):
    gateway = CarrierGateway.from_env(environ=mock_environ, sink=InMemoryNotificationSink())
    try:
        quote = await gateway.quotes.request_quote_from_carrier("State Farm", quote_request)
        policy = await gateway.policies.purchase_policy(
            "State Farm",
            PolicyRequest(
                quote_id=quote.quote_id,
                submission_id=quote_request.submission_id,
                effective_date=date(2030, 1, 1),
                payment_cadence=PaymentCadence.QUARTERLY,
                billing=BillingInfo(name="Dana Lee", address="1 Market St", city="San Francisco", state="CA", zip_code="94105"),
            ),
        )
        assert policy.status is PolicyStatus.ACTIVE
        assert policy.premium == quote.premium
        assert len(policy.payment_schedule) == 4
        assert policy.payment_schedule[0].due_date == date(2030, 1, 1)

        documents = await gateway.policies.get_policy_documents("State Farm", policy.policy_id)
        assert documents[0].type == "DECLARATIONS"

        cancellation = await gateway.policies.cancel_policy("State Farm", policy.policy_id, "Business sold")
        assert cancellation.success is True
        assert cancellation.cancellation_id.startswith("CXL-")

        status = await gateway.policies.get_policy_status("State Farm", policy.policy_id)
        assert status.status is PolicyStatus.CANCELLED

        with pytest.raises(ProviderRequestError) as exc_info:
            await gateway.policies.get_policy_status("State Farm", "P-MISSING")
        assert exc_info.value.status_code == 404

        connection = await gateway.test_connection("Travelers")
        assert connection["connected"] is True
    finally:
        await gateway.aclose()


@pytest.mark.asyncio
async def test_mock_rejects_purchase_of_unknown_quote(mock_environ):
    gateway = CarrierGateway.from_env(environ=mock_environ, sink=InMemoryNotificationSink())
    try:
        with pytest.raises(ProviderRequestError) as exc_info:
            await gateway.policies.purchase_policy(
                "Travelers",
                PolicyRequest(
                    quote_id="Q-NOPE",
                    submission_id="S-1",
                    effective_date=date(2030, 1, 1),
                    payment_cadence=PaymentCadence.ANNUAL,
                    billing=BillingInfo(name="Dana Lee", address="1 Market St", city="SF", state="CA", zip_code="94105"),
                ),
            )
    finally:
        await gateway.aclose()

    assert exc_info.value.status_code == 422

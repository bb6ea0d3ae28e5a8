import pytest

from carrier_gateway.integrations.carriers import transformers
from carrier_gateway.integrations.carriers.transformers import (
    business_class_for,
    register_transformer,
    region_for_state,
    territory_for_state,
    transform_quote_request,
)
from carrier_gateway.integrations.contracts.carriers import ProviderConfig


def _config(name, **routing_codes):
    return ProviderConfig(name=name, base_url="https://carrier.test", api_key="k", routing_codes=routing_codes)


@pytest.mark.parametrize("carrier", ["State Farm", "Progressive", "Allstate", "Liberty Mutual", "Travelers", "Acme"])
def test_every_carrier_gets_the_common_fields(carrier, quote_request):
    payload = transform_quote_request(_config(carrier), quote_request)

    assert payload["submissionId"] == "S-1"
    assert payload["businessName"] == "Bay Area Bakery LLC"
    assert payload["federalId"] == "12-3456789"
    assert payload["yearsInBusiness"] == 7
    assert payload["address"] == {
        "street": "1 Market St",
        "city": "San Francisco",
        "state": "CA",
        "zipCode": "94105",
    }
    assert payload["coverageTypes"] == ["GL"]
    assert payload["limits"] == {"GL": 1_000_000}
    assert payload["deductibles"] == {"GL": 5000}
    assert payload["email"] == "dana@example.com"


def test_state_farm_adds_agency_and_territory(quote_request):
    payload = transform_quote_request(_config("State Farm", agency_code="SF-001"), quote_request)

    assert payload["agencyCode"] == "SF-001"
    assert payload["territory"] == "WEST"


def test_progressive_adds_channel(quote_request):
    payload = transform_quote_request(_config("progressive"), quote_request)

    assert payload["channel"] == "AGENT"
    assert payload["productLine"] == "COMMERCIAL"


def test_allstate_adds_agency_and_region(quote_request):
    payload = transform_quote_request(_config("Allstate", agency_id="AL-9"), quote_request)

    assert payload["agencyId"] == "AL-9"
    assert payload["region"] == "WESTERN"


def test_liberty_mutual_adds_producer_and_segment(quote_request):
    payload = transform_quote_request(_config("Liberty Mutual"), quote_request)

    assert payload["producerCode"] is None
    assert payload["marketSegment"] == "SMALL_BUSINESS"


def test_travelers_adds_business_class(quote_request):
    payload = transform_quote_request(_config("Travelers", agent_code="TR-5"), quote_request)

    assert payload["agentCode"] == "TR-5"
    assert payload["businessClass"] == "LLC"


def test_unlisted_carrier_gets_common_payload_only(quote_request):
    payload = transform_quote_request(_config("Acme"), quote_request)

    for key in ("agencyCode", "territory", "channel", "agencyId", "region", "producerCode", "businessClass"):
        assert key not in payload


def test_lookup_defaults():
    assert territory_for_state("ny") == "NORTHEAST"
    assert territory_for_state("WA") == "UNKNOWN"
    assert region_for_state("IL") == "CENTRAL"
    assert region_for_state("") == "UNKNOWN"
    assert business_class_for(" Sole-Proprietorship ") == "SOLE_PROP"
    assert business_class_for("cooperative") == "OTHER"


def test_registered_transformer_is_used(monkeypatch, quote_request):
    monkeypatch.setattr(transformers, "_TRANSFORMERS", dict(transformers._TRANSFORMERS))

    @register_transformer("Acme Mutual")
    def acme_payload(request, config):
        return {"ref": request.submission_id, "carrier": config.name}

    payload = transform_quote_request(_config("ACME MUTUAL"), quote_request)

    assert payload == {"ref": "S-1", "carrier": "ACME MUTUAL"}

"""Pytest fixtures for carrier gateway tests."""

import inspect
from collections import defaultdict, deque
from typing import Any, Callable, Deque, Dict, List, Union

import httpx
import pytest
import pytest_asyncio

from carrier_gateway.integrations.carriers.gateway import CarrierGateway
from carrier_gateway.integrations.contracts.carriers import ProviderConfig, QuoteRequest
from carrier_gateway.integrations.notifications.notification_service import InMemoryNotificationSink

Scripted = Union[tuple, Callable[[httpx.Request], Any]]


class CarrierScript:
    """
    Scripted carrier APIs behind one ``httpx.MockTransport``.

    Responses are queued per host as ``(status, json_body)`` tuples or as
    callables taking the request (sync or async; they may raise). A host with
    nothing queued answers 500.
    """

    def __init__(self) -> None:
        self._queues: Dict[str, Deque[Scripted]] = defaultdict(deque)
        self.requests: List[httpx.Request] = []

    def queue(self, host: str, *responses: Scripted) -> None:
        self._queues[host].extend(responses)

    def requests_for(self, host: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.host == host]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._queues[request.url.host]
        if not queue:
            return httpx.Response(500, json={"message": "nothing scripted"})
        item = queue.popleft()
        if callable(item):
            result = item(request)
            if inspect.isawaitable(result):
                result = await result
            return result
        status_code, body = item
        return httpx.Response(status_code, json=body)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class FakeSleep:
    def __init__(self) -> None:
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def make_quote_body(quote_id: str = "Q-1", premium: float = 1200, **extra: Any) -> Dict[str, Any]:
    body = {
        "quoteId": quote_id,
        "premium": premium,
        "coverage": [{"type": "GL", "limit": 1_000_000, "deductible": 5000, "premium": premium}],
        "status": "PENDING",
        "validUntil": "2030-01-31T00:00:00+00:00",
        "documents": [{"type": "LOSS_RUNS", "url": None, "required": True}],
    }
    body.update(extra)
    return body


@pytest.fixture
def quote_body():
    return make_quote_body


@pytest.fixture
def carrier_configs():
    return [
        ProviderConfig(
            name="Acme",
            base_url="https://acme.test/v1",
            api_key="acme-key",
            timeout_seconds=5,
            retry_attempts=2,
            rate_limit_per_minute=120,
            webhook_secret="acme-secret",
        ),
        ProviderConfig(
            name="Beacon",
            base_url="https://beacon.test/v2",
            api_key="beacon-key",
            timeout_seconds=5,
            retry_attempts=1,
            rate_limit_per_minute=60,
        ),
        ProviderConfig(
            name="Dormant",
            base_url="https://dormant.test/v1",
            api_key="",
            rate_limit_per_minute=30,
        ),
    ]


@pytest.fixture
def carrier_script():
    return CarrierScript()


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def notification_sink():
    return InMemoryNotificationSink()


@pytest_asyncio.fixture
async def gateway(carrier_configs, carrier_script, fake_sleep, notification_sink):
    gw = CarrierGateway.from_configs(
        carrier_configs,
        transport=carrier_script.transport(),
        sink=notification_sink,
        sleep=fake_sleep,
    )
    yield gw
    await gw.aclose()


@pytest.fixture
def quote_request_data():
    return {
        "submission_id": "S-1",
        "business": {
            "name": "Bay Area Bakery LLC",
            "tax_id": "12-3456789",
            "legal_form": "llc",
            "years_active": 7,
            "description": "Retail bakery with two storefronts",
            "address": {"street": "1 Market St", "city": "San Francisco", "state": "CA", "zip_code": "94105"},
        },
        "coverage": {
            "coverage_types": ["GL"],
            "limits": {"GL": 1_000_000},
            "deductibles": {"GL": 5000},
        },
        "contact": {"name": "Dana Lee", "email": "dana@example.com", "phone": "+1-415-555-0100"},
    }


@pytest.fixture
def quote_request(quote_request_data):
    return QuoteRequest(**quote_request_data)

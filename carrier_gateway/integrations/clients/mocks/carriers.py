"""
Carrier APIs - MOCK transport.

⚠️  This is a mock implementation for development and testing.
    It stands in for every carrier's quote/policy API at the transport level
    (``httpx.MockTransport``), so the real ``CarrierHttpClient`` and the
    whole gateway run unchanged against it. Enable with
    ``INTEGRATIONS_MODE=mock``.
"""

import json
import logging
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

# Annual rate per unit of limit, by coverage type
_RATE_BY_COVERAGE = {
    "GL": 0.0012,
    "PROPERTY": 0.0025,
    "AUTO": 0.0030,
    "WC": 0.0040,
    "UMBRELLA": 0.0008,
    "CYBER": 0.0020,
}
_DEFAULT_RATE = 0.0015

_INSTALLMENTS = {"ANNUAL": 1, "SEMI_ANNUAL": 2, "QUARTERLY": 4, "MONTHLY": 12}


class MockCarrierBackend:
    """
    In-memory fake of a carrier quote/policy API.

    Parameters
    ----------
    quote_validity_days : int
        How long mock quotes stay valid. Default 30.
    """

    def __init__(self, quote_validity_days: int = 30) -> None:
        self._validity = timedelta(days=quote_validity_days)
        # In-memory stores (reset on restart)
        self._quotes: Dict[str, Dict[str, Any]] = {}
        self._policies: Dict[str, Dict[str, Any]] = {}
        logger.info("[CARRIER MOCK] Backend initialised")

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def handle(self, request: httpx.Request) -> httpx.Response:
        carrier = request.url.host
        parts = [p for p in request.url.path.split("/") if p]
        body = json.loads(request.content) if request.content else {}

        if parts and parts[-1] == "health":
            return httpx.Response(200, json={"status": "ok"})
        if request.method == "POST" and parts[-1:] == ["quotes"]:
            return httpx.Response(201, json=self._create_quote(carrier, body))
        if request.method == "POST" and parts[-1:] == ["policies"]:
            return self._purchase(carrier, body)

        if "policies" in parts:
            idx = parts.index("policies")
            rest = parts[idx + 1:]
            policy = self._policies.get(rest[0]) if rest else None
            if policy is None:
                return httpx.Response(404, json={"message": "Policy not found"})
            if request.method == "GET" and len(rest) == 1:
                return httpx.Response(200, json=policy)
            if request.method == "GET" and rest[1:] == ["documents"]:
                return httpx.Response(200, json=policy["documents"])
            if request.method == "POST" and rest[1:] == ["cancel"]:
                policy["status"] = "CANCELLED"
                return httpx.Response(
                    200,
                    json={"success": True, "cancellationId": f"CXL-{uuid.uuid4().hex[:10].upper()}"},
                )

        return httpx.Response(404, json={"message": f"No mock route for {request.method} {request.url.path}"})

    # ------------------------------------------------------------------
    # Quotes & policies
    # ------------------------------------------------------------------

    def _create_quote(self, carrier: str, body: Dict[str, Any]) -> Dict[str, Any]:
        limits: Dict[str, float] = body.get("limits") or {}
        deductibles: Dict[str, float] = body.get("deductibles") or {}
        lines = []
        for coverage_type in body.get("coverageTypes") or []:
            limit = float(limits.get(coverage_type, 1_000_000))
            deductible = float(deductibles.get(coverage_type, 0))
            rate = _RATE_BY_COVERAGE.get(coverage_type.upper(), _DEFAULT_RATE)
            credit = min(deductible / max(limit, 1.0), 0.25)
            lines.append(
                {
                    "type": coverage_type,
                    "limit": limit,
                    "deductible": deductible,
                    "premium": round(limit * rate * (1 - credit), 2),
                }
            )

        now = datetime.now(timezone.utc)
        quote = {
            "quoteId": f"Q-{uuid.uuid4().hex[:12].upper()}",
            "carrierId": carrier,
            "premium": round(sum(line["premium"] for line in lines), 2),
            "coverage": lines,
            "effectiveDate": date.today().isoformat(),
            "expirationDate": (date.today() + timedelta(days=365)).isoformat(),
            "status": "PENDING",
            "validUntil": (now + self._validity).isoformat(),
            "terms": ["12 month policy term"],
            "conditions": ["Subject to inspection"],
            "documents": [{"type": "APPLICATION", "url": None, "required": True}],
        }
        self._quotes[quote["quoteId"]] = quote
        logger.info("[CARRIER MOCK] Quote %s issued by %s premium=%s", quote["quoteId"], carrier, quote["premium"])
        return quote

    def _purchase(self, carrier: str, body: Dict[str, Any]) -> httpx.Response:
        quote: Optional[Dict[str, Any]] = self._quotes.get(body.get("quoteId", ""))
        if quote is None:
            return httpx.Response(422, json={"message": "Unknown quoteId"})

        installments = _INSTALLMENTS.get(body.get("paymentMethod", "ANNUAL"), 1)
        effective = date.fromisoformat(body.get("effectiveDate") or date.today().isoformat())
        months = 12 // installments
        policy_id = f"P-{uuid.uuid4().hex[:12].upper()}"
        policy = {
            "policyId": policy_id,
            "policyNumber": f"POL-{uuid.uuid4().int % 10**8:08d}",
            "effectiveDate": effective.isoformat(),
            "expirationDate": (effective + timedelta(days=365)).isoformat(),
            "premium": quote["premium"],
            "paymentSchedule": [
                {
                    "frequency": body.get("paymentMethod", "ANNUAL"),
                    "amount": round(quote["premium"] / installments, 2),
                    "dueDate": (effective + timedelta(days=30 * months * i)).isoformat(),
                }
                for i in range(installments)
            ],
            "documents": [
                {
                    "type": "DECLARATIONS",
                    "url": f"https://{carrier}/documents/{policy_id}/declarations",
                    "downloadUrl": f"https://{carrier}/documents/{policy_id}/declarations.pdf",
                }
            ],
            "status": "ACTIVE",
        }
        self._policies[policy_id] = policy
        logger.info("[CARRIER MOCK] Policy %s bound by %s", policy_id, carrier)
        return httpx.Response(201, json=policy)

"""
Webhook Service for carrier callbacks

Turns inbound carrier events into internal notifications:
- QUOTE_READY      -> QUOTE_AVAILABLE  (quote id)
- POLICY_ISSUED    -> POLICY_ACTIVE    (policy id)
- POLICY_CANCELLED -> POLICY_CANCELLED (policy id)
- PAYMENT_RECEIVED -> PAYMENT_RECORDED (payment id)

Handlers are keyed by ``(carrier, event type)``; a carrier-specific handler
wins over the generic one. Unrecognised event types are logged and dropped.

Signatures are optional: carriers that sign send ``X-Webhook-Signature``,
the hex HMAC-SHA256 of the raw body under the carrier's webhook secret. A
missing header is accepted; a present header that does not verify rejects the
event before anything is dispatched.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from carrier_gateway.integrations.carriers.errors import (
    CarrierGatewayError,
    InvalidSignatureError,
    ProviderResponseError,
)
from carrier_gateway.integrations.carriers.registry import ProviderRegistry, provider_key
from carrier_gateway.integrations.contracts.carriers import (
    CarrierNotification,
    NotificationKind,
    ProviderConfig,
    WebhookEvent,
    WebhookEventType,
    WebhookOutcome,
)
from carrier_gateway.integrations.notifications.notification_service import NotificationSink

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Webhook-Signature"

RawPayload = Union[bytes, str, Mapping[str, Any]]
WebhookHandler = Callable[[WebhookEvent], CarrierNotification]

_PAYLOAD_ID_KEYS = ("quoteId", "quote_id", "policyId", "policy_id", "paymentId", "payment_id", "eventId", "id")


def compute_signature(secret: str, body: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def _reference(event: WebhookEvent, *keys: str) -> str:
    for key in keys:
        value = event.payload.get(key)
        if value not in (None, ""):
            return str(value)
    raise ProviderResponseError(
        f"{event.event_type} webhook is missing {' / '.join(keys)}",
        provider=event.provider,
        payload=event.payload,
    )


def quote_ready(event: WebhookEvent) -> CarrierNotification:
    return CarrierNotification(
        kind=NotificationKind.QUOTE_AVAILABLE,
        provider=event.provider,
        event_type=WebhookEventType.QUOTE_READY,
        reference_id=_reference(event, "quoteId", "quote_id"),
        payload=event.payload,
    )


def policy_issued(event: WebhookEvent) -> CarrierNotification:
    return CarrierNotification(
        kind=NotificationKind.POLICY_ACTIVE,
        provider=event.provider,
        event_type=WebhookEventType.POLICY_ISSUED,
        reference_id=_reference(event, "policyId", "policy_id"),
        payload=event.payload,
    )


def policy_cancelled(event: WebhookEvent) -> CarrierNotification:
    return CarrierNotification(
        kind=NotificationKind.POLICY_CANCELLED,
        provider=event.provider,
        event_type=WebhookEventType.POLICY_CANCELLED,
        reference_id=_reference(event, "policyId", "policy_id"),
        payload=event.payload,
    )


def payment_received(event: WebhookEvent) -> CarrierNotification:
    return CarrierNotification(
        kind=NotificationKind.PAYMENT_RECORDED,
        provider=event.provider,
        event_type=WebhookEventType.PAYMENT_RECEIVED,
        reference_id=_reference(event, "paymentId", "payment_id"),
        payload=event.payload,
    )


class WebhookReconciler:
    def __init__(self, registry: ProviderRegistry, sink: NotificationSink) -> None:
        self._registry = registry
        self._sink = sink
        self._handlers: Dict[Tuple[Optional[str], WebhookEventType], WebhookHandler] = {
            (None, WebhookEventType.QUOTE_READY): quote_ready,
            (None, WebhookEventType.POLICY_ISSUED): policy_issued,
            (None, WebhookEventType.POLICY_CANCELLED): policy_cancelled,
            (None, WebhookEventType.PAYMENT_RECEIVED): payment_received,
        }

    def register_handler(
        self,
        event_type: WebhookEventType,
        handler: WebhookHandler,
        provider: Optional[str] = None,
    ) -> None:
        key = provider_key(provider) if provider else None
        self._handlers[(key, WebhookEventType(event_type))] = handler

    def verify_signature(self, config: ProviderConfig, body: bytes, signature: Optional[str]) -> None:
        if signature is None or not signature.strip():
            return
        if not config.webhook_secret:
            raise InvalidSignatureError(
                f"Carrier '{config.name}' sent a signature but no webhook secret is configured.",
                provider=config.name,
            )
        candidate = signature.strip()
        if candidate.lower().startswith("sha256="):
            candidate = candidate[len("sha256="):]
        expected = compute_signature(config.webhook_secret, body)
        if not hmac.compare_digest(candidate.lower(), expected):
            raise InvalidSignatureError(f"Invalid webhook signature from '{config.name}'.", provider=config.name)

    def parse_event(self, config: ProviderConfig, payload: Mapping[str, Any]) -> WebhookEvent:
        raw_type = payload.get("type") or payload.get("event_type") or payload.get("eventType") or ""
        event_type = str(raw_type).strip().upper().replace("-", "_")
        return WebhookEvent(provider=config.name, event_type=event_type, payload=dict(payload))

    async def reconcile(
        self,
        provider_name: str,
        raw_payload: RawPayload,
        signature: Optional[str] = None,
    ) -> Optional[CarrierNotification]:
        """
        Verify, parse and dispatch one inbound event.

        Returns the dispatched notification, or ``None`` when the event type
        is not recognised. Raises on unknown carriers, bad signatures and
        malformed payloads.
        """
        config = self._registry.resolve(provider_name)
        body, payload = _split_payload(raw_payload, config.name)
        self.verify_signature(config, body, signature)

        event = self.parse_event(config, payload)
        logger.info("Received webhook from %s: type=%s id=%s", config.name, event.event_type or "-", _payload_id(payload))

        event_type = event.known_type
        if event_type is None:
            logger.warning("Unknown webhook type from %s: %r", config.name, event.event_type)
            return None

        handler = self._handlers.get((config.key, event_type)) or self._handlers[(None, event_type)]
        notification = handler(event)
        await self._sink.notify(notification)
        return notification

    async def handle_webhook(
        self,
        provider_name: str,
        raw_payload: RawPayload,
        signature: Optional[str] = None,
    ) -> WebhookOutcome:
        """Transport-facing wrapper: never raises, failures are logged."""
        try:
            notification = await self.reconcile(provider_name, raw_payload, signature)
        except InvalidSignatureError as exc:
            logger.error("Rejected webhook from %s: %s", provider_name, exc)
            return WebhookOutcome(processed=False, message="Invalid webhook signature")
        except CarrierGatewayError as exc:
            logger.error(
                "Error processing webhook from %s (type=%s id=%s): %s",
                provider_name, _payload_type(raw_payload), _payload_id(raw_payload), exc,
            )
            return WebhookOutcome(processed=False, message="Webhook processing failed")
        except Exception:
            logger.exception(
                "Unexpected error processing webhook from %s (type=%s id=%s)",
                provider_name, _payload_type(raw_payload), _payload_id(raw_payload),
            )
            return WebhookOutcome(processed=False, message="Webhook processing failed")

        if notification is None:
            return WebhookOutcome(processed=True, message="Webhook type not recognised; ignored")
        return WebhookOutcome(processed=True, message="Webhook processed successfully")


def _split_payload(raw_payload: RawPayload, provider: str) -> Tuple[bytes, Dict[str, Any]]:
    if isinstance(raw_payload, Mapping):
        payload = dict(raw_payload)
        return json.dumps(payload, separators=(",", ":")).encode("utf-8"), payload

    body = raw_payload.encode("utf-8") if isinstance(raw_payload, str) else bytes(raw_payload)
    try:
        payload = json.loads(body or b"{}")
    except ValueError as exc:
        raise ProviderResponseError("Webhook body is not valid JSON", provider=provider) from exc
    if not isinstance(payload, dict):
        raise ProviderResponseError("Webhook body must be a JSON object", provider=provider, payload={"body": payload})
    return body, payload


def _as_mapping(raw_payload: RawPayload) -> Dict[str, Any]:
    if isinstance(raw_payload, Mapping):
        return dict(raw_payload)
    try:
        data = json.loads(raw_payload or "{}")
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _payload_id(raw_payload: RawPayload) -> str:
    data = _as_mapping(raw_payload)
    for key in _PAYLOAD_ID_KEYS:
        if data.get(key):
            return str(data[key])
    return "-"


def _payload_type(raw_payload: RawPayload) -> str:
    data = _as_mapping(raw_payload)
    return str(data.get("type") or data.get("event_type") or data.get("eventType") or "-")

"""
Notification sinks for reconciled carrier events.

The real-time fan-out to connected users lives outside the gateway. The
webhook reconciler only hands each ``CarrierNotification`` to a sink:
- ``LoggingNotificationSink``: default, logs and forwards to an optional
  async callback (e.g. a websocket broadcaster or a queue producer)
- ``InMemoryNotificationSink``: keeps notifications in a list, for local
  development and tests
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, List, Optional

from carrier_gateway.integrations.contracts.carriers import CarrierNotification

logger = logging.getLogger(__name__)

NotificationCallback = Callable[[CarrierNotification], Awaitable[None]]


class NotificationSink(ABC):
    @abstractmethod
    async def notify(self, notification: CarrierNotification) -> None:
        """Deliver one reconciled carrier notification."""


class LoggingNotificationSink(NotificationSink):
    def __init__(self, forward: Optional[NotificationCallback] = None) -> None:
        self._forward = forward
        if forward is None:
            logger.warning("No notification backend configured. Carrier notifications will only be logged.")

    async def notify(self, notification: CarrierNotification) -> None:
        logger.info(
            "Carrier notification %s from %s (reference=%s)",
            notification.kind.value, notification.provider, notification.reference_id,
        )
        if self._forward is not None:
            await self._forward(notification)


class InMemoryNotificationSink(NotificationSink):
    def __init__(self) -> None:
        self.notifications: List[CarrierNotification] = []

    async def notify(self, notification: CarrierNotification) -> None:
        self.notifications.append(notification)

    def clear(self) -> None:
        self.notifications.clear()

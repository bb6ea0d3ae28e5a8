from .notification_service import (
    InMemoryNotificationSink,
    LoggingNotificationSink,
    NotificationSink,
)

__all__ = ["InMemoryNotificationSink", "LoggingNotificationSink", "NotificationSink"]

"""
Flight notifications: delivery sinks, per-flight dedup, batch throttling.
"""

from overhead.notifications.service import (
    FlightNotification,
    NotificationSink,
    LogSink,
    WebhookSink,
    NotificationService,
    format_notification_title,
    format_notification_body,
    calculate_notification_duration,
)
from overhead.notifications.manager import NotificationManager

__all__ = [
    'FlightNotification',
    'NotificationSink',
    'LogSink',
    'WebhookSink',
    'NotificationService',
    'format_notification_title',
    'format_notification_body',
    'calculate_notification_duration',
    'NotificationManager',
]

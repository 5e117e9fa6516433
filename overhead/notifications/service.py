"""
Notification service - formats and delivers one notification per flight.

Delivery goes through a NotificationSink:
- LogSink: writes the notification to the log (default, no setup)
- WebhookSink: POSTs the notification as JSON

Each flight id is remembered after it is notified, for 60 s plus 30 s
per 10,000 ft of altitude (at most +90 s). Higher aircraft stay in
view longer, so they stay deduplicated longer too.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict, field
from typing import Callable, Dict, Optional

import requests

from overhead.config import config
from overhead.errors import NotificationError
from overhead.models import Flight, UNKNOWN

logger = logging.getLogger(__name__)


@dataclass
class FlightNotification:
    """A notification ready for delivery."""
    id: str
    title: str
    body: str
    image_path: Optional[str] = None
    data: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


# -----------------------------------------------------------------------------
# Sinks
# -----------------------------------------------------------------------------

class NotificationSink(ABC):
    """Where notifications are delivered."""

    def request_permission(self) -> bool:
        return True

    @abstractmethod
    def send(self, notification: FlightNotification) -> None:
        ...

    def cancel(self, notification_id: str) -> None:
        pass

    def cancel_all(self) -> None:
        pass


class LogSink(NotificationSink):
    """Notifications as log lines."""

    def __init__(self, level: int = logging.INFO):
        self.level = level

    def send(self, notification: FlightNotification) -> None:
        image = f' [image: {notification.image_path}]' if notification.image_path else ''
        logger.log(self.level, f'{notification.title}: {notification.body}{image}')


class WebhookSink(NotificationSink):
    """POSTs each notification as JSON to a URL."""

    def __init__(self, url: str, session: Optional[requests.Session] = None, timeout: float = 10):
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout

    def request_permission(self) -> bool:
        return bool(self.url)

    def send(self, notification: FlightNotification) -> None:
        self._post({'event': 'flight_overhead', 'notification': notification.to_dict()})

    def cancel(self, notification_id: str) -> None:
        self._post({'event': 'cancel', 'id': notification_id})

    def cancel_all(self) -> None:
        self._post({'event': 'cancel_all'})

    def _post(self, payload: dict) -> None:
        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise NotificationError(f'Webhook delivery to {self.url} failed', e) from e


def sink_from_config() -> NotificationSink:
    if config.notifications.webhook_url:
        return WebhookSink(config.notifications.webhook_url)
    return LogSink()


# -----------------------------------------------------------------------------
# Formatting
# -----------------------------------------------------------------------------

def format_notification_title(flight: Flight) -> str:
    if flight.flight_number and flight.flight_number != UNKNOWN:
        return f'Flight {flight.flight_number} Overhead'
    return 'Aircraft Overhead'


def format_notification_body(flight: Flight) -> str:
    """
    e.g. 'B738 at 35,000 feet, traveling 450 knots from JFK to LAX'
    """
    body = ''
    if flight.has_known_type:
        body += f'{flight.aircraft_type} '

    body += f'at {flight.altitude:,} feet, traveling {flight.speed} knots'

    if flight.origin != UNKNOWN and flight.destination != UNKNOWN:
        body += f' from {flight.origin} to {flight.destination}'
    elif flight.origin_city != UNKNOWN:
        body += f' from {flight.origin_city}'

    return body


def calculate_notification_duration(flight: Flight) -> float:
    """Seconds a flight stays in the already-notified set."""
    altitude_factor = min(3, flight.altitude / 10000)
    return (
        config.notifications.base_duration_seconds
        + altitude_factor * config.notifications.altitude_bonus_seconds
    )


# -----------------------------------------------------------------------------
# Service
# -----------------------------------------------------------------------------

class NotificationService:
    """
    Sends flight notifications through a sink, at most once per flight
    per dedup window.
    """

    def __init__(
        self,
        sink: Optional[NotificationSink] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.sink = sink or sink_from_config()
        self._clock = clock
        self._initialized = False

        # flight id -> time its dedup window ends
        self._sent: Dict[str, float] = {}
        self._lock = threading.Lock()

    def request_permissions(self) -> bool:
        try:
            return self.sink.request_permission()
        except Exception as e:
            logger.error(f'Error requesting notification permissions: {e}')
            return False

    def setup_notifications(self) -> None:
        if self._initialized:
            return
        self._initialized = True
        logger.info(f'Notification service initialized ({type(self.sink).__name__})')

    def show_flight_notification(self, flight: Flight, image_path: Optional[str] = None) -> str:
        """
        Deliver a notification for flight and return its id.

        A flight still inside its dedup window is skipped; its id is
        returned all the same.

        Raises:
            NotificationError if the sink fails
        """
        self.setup_notifications()

        if self.is_recently_notified(flight.id):
            logger.debug(f'Skipping duplicate notification for flight {flight.id}')
            return flight.id

        notification = FlightNotification(
            id=flight.id,
            title=format_notification_title(flight),
            body=format_notification_body(flight),
            image_path=image_path,
            data={'flight_id': flight.id},
        )

        try:
            self.sink.send(notification)
        except NotificationError:
            raise
        except Exception as e:
            logger.error(f'Error showing notification for flight {flight.id}: {e}')
            raise NotificationError('Failed to show flight notification', e) from e

        with self._lock:
            self._sent[flight.id] = self._clock() + calculate_notification_duration(flight)

        logger.info(f'Notification sent for flight {flight.id} (image={bool(image_path)})')
        return flight.id

    def is_recently_notified(self, flight_id: str) -> bool:
        with self._lock:
            self._evict_expired()
            return flight_id in self._sent

    def cancel_notification(self, notification_id: str) -> None:
        with self._lock:
            self._sent.pop(notification_id, None)
        try:
            self.sink.cancel(notification_id)
        except Exception as e:
            logger.error(f'Error cancelling notification {notification_id}: {e}')
            return
        logger.info(f'Cancelled notification {notification_id}')

    def cancel_all_notifications(self) -> None:
        with self._lock:
            self._sent.clear()
        try:
            self.sink.cancel_all()
        except Exception as e:
            logger.error(f'Error cancelling all notifications: {e}')
            return
        logger.info('Cancelled all notifications')

    def _evict_expired(self) -> None:
        now = self._clock()
        for flight_id in [fid for fid, until in self._sent.items() if until <= now]:
            del self._sent[flight_id]

"""
Notification manager - throttling and batching on top of NotificationService.

Rules:
- At least throttle_seconds (30 s) between batches
- At most max_per_batch (3) notifications per batch, lowest aircraft first
- Images are best effort: a failed image lookup sends the notification
  without one
"""

import logging
import time
from typing import Callable, List, Optional

from overhead.config import config
from overhead.errors import AppError
from overhead.images import AircraftImageManager
from overhead.models import Flight
from overhead.notifications.service import NotificationService

logger = logging.getLogger(__name__)


class NotificationManager:
    """Decides which detected flights get a notification, and when."""

    def __init__(
        self,
        notification_service: Optional[NotificationService] = None,
        image_manager: Optional[AircraftImageManager] = None,
        throttle_seconds: Optional[float] = None,
        max_per_batch: Optional[int] = None,
        rich_notifications: Optional[bool] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.notification_service = notification_service or NotificationService()
        self.image_manager = image_manager
        self.throttle_seconds = (
            throttle_seconds if throttle_seconds is not None else config.notifications.throttle_seconds
        )
        self.max_per_batch = max_per_batch if max_per_batch is not None else config.notifications.max_per_batch
        self.rich_notifications = (
            rich_notifications if rich_notifications is not None else config.notifications.rich_notifications
        )
        self._clock = clock

        self.notifications_enabled = True
        self.last_notification_time: Optional[float] = None

    def set_image_manager(self, image_manager: AircraftImageManager) -> None:
        self.image_manager = image_manager
        logger.info('Aircraft image manager set for rich notifications')

    def initialize(self) -> None:
        """Check delivery permission; notifications are disabled without it."""
        if not self.notification_service.request_permissions():
            logger.warning('Notification permissions not granted, notifications will be disabled')
            self.notifications_enabled = False
            return

        self.notification_service.setup_notifications()
        logger.info('Notification manager initialized')

    def notify_flight_detected(self, flight: Flight) -> bool:
        """Notify about one flight. False if disabled, throttled or failed."""
        if not self.notifications_enabled:
            logger.debug('Notifications are disabled, skipping notification')
            return False

        if not self._should_send_notification():
            logger.debug('Throttling notification due to recent notification')
            return False

        try:
            self.notification_service.show_flight_notification(flight, self._image_for(flight))
        except AppError as e:
            logger.error(f'Error sending flight notification for {flight.id}: {e}')
            return False

        self.last_notification_time = self._clock()
        return True

    def notify_flights_detected(self, flights: List[Flight]) -> List[Flight]:
        """
        Notify about a batch of newly detected flights.

        Returns:
            The flights actually notified; [] if disabled, empty or throttled
        """
        if not self.notifications_enabled or not flights:
            return []

        if not self._should_send_notification():
            logger.debug('Throttling notifications due to recent notification')
            return []

        # Lower aircraft are more visible
        to_notify = sorted(flights, key=lambda f: f.altitude)[:self.max_per_batch]

        if self.rich_notifications and self.image_manager is not None:
            try:
                self.image_manager.prefetch_images_for_flights(to_notify)
            except Exception as e:
                logger.warning(f'Failed to prefetch aircraft images: {e}')

        notified: List[Flight] = []
        for flight in to_notify:
            try:
                self.notification_service.show_flight_notification(flight, self._image_for(flight))
            except AppError as e:
                logger.error(f'Error notifying about flight {flight.id}: {e}')
                continue
            notified.append(flight)

        if notified:
            self.last_notification_time = self._clock()

        logger.info(f'Notified about {len(notified)} flights')
        return notified

    def clear_all_notifications(self) -> None:
        self.notification_service.cancel_all_notifications()
        logger.info('Cleared all notifications')

    def _image_for(self, flight: Flight) -> Optional[str]:
        if not self.rich_notifications or self.image_manager is None:
            return None
        try:
            return self.image_manager.get_image_for_flight(flight)
        except Exception as e:
            logger.warning(f'Failed to get aircraft image for flight {flight.id}: {e}')
            return None

    def _should_send_notification(self) -> bool:
        if self.last_notification_time is None:
            return True
        return self._clock() - self.last_notification_time >= self.throttle_seconds

"""
Detection manager - one detection cycle, and the timer that repeats it.

Cycle stages:
1. Locate: current position, falling back to the last known one
2. Configure: read the detection radius from settings
3. Detect: poll and deduplicate (FlightDetector)
4. Record: append new flights to the history
5. Notify: hand new flights to the NotificationManager
"""

import logging
import threading
import time
from typing import Callable, List, Optional

from overhead.config import config
from overhead.detection.detector import FlightDetector
from overhead.errors import AppError, LocationError
from overhead.location import LocationService
from overhead.models import Flight, Location
from overhead.repositories import FlightRepository, SettingsRepository

logger = logging.getLogger(__name__)


class FlightDetectionManager:
    """
    Coordinates detection, history and notifications.

    Can run as a background thread for periodic detection.
    """

    def __init__(
        self,
        flight_detector: FlightDetector,
        location_service: LocationService,
        settings_repository: SettingsRepository,
        flight_repository: FlightRepository,
        notification_manager=None,
    ):
        self.flight_detector = flight_detector
        self.location_service = location_service
        self.settings_repository = settings_repository
        self.flight_repository = flight_repository
        self.notification_manager = notification_manager

        # State tracking
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._last_run_time: float = 0
        self._run_count: int = 0
        self._error_count: int = 0

        # Callbacks for external integration
        self._on_detection_callbacks: List[Callable[[List[Flight]], None]] = []

    def add_detection_callback(self, callback: Callable[[List[Flight]], None]) -> None:
        """
        Register callback to be invoked after each detection cycle.

        Callback receives the list of newly detected flights.
        """
        self._on_detection_callbacks.append(callback)

    def perform_detection(self) -> List[Flight]:
        """
        Execute one detection cycle.

        Returns the newly detected flights; [] if nothing new or on error.
        """
        self._run_count += 1
        self._last_run_time = time.time()

        try:
            location = self._get_location()
            if location is None:
                logger.warning('Cannot perform detection: location not available')
                return []

            radius_km = self.settings_repository.get_settings().detection_radius_km
            detected = self.flight_detector.detect_overhead_flights(location, radius_km)

            if detected:
                self.flight_repository.add_flights(detected)

                if self.notification_manager is not None:
                    self.notification_manager.notify_flights_detected(detected)

        except AppError as e:
            self._error_count += 1
            logger.error(f'Error performing flight detection: {e}')
            return []
        except Exception as e:
            self._error_count += 1
            logger.exception(f'Unexpected error during flight detection: {e}')
            return []

        for callback in self._on_detection_callbacks:
            try:
                callback(detected)
            except Exception as e:
                logger.error(f'Detection callback error: {e}')

        return detected

    def _get_location(self) -> Optional[Location]:
        """Current location, or last known location if current is unavailable."""
        try:
            return self.location_service.get_current_location()
        except LocationError as e:
            logger.warning(f'Failed to get current location, trying last known location: {e}')
            return self.location_service.get_last_known_location()

    # -------------------------------------------------------------------------
    # Background loop
    # -------------------------------------------------------------------------

    def run_continuous(self, interval_minutes: Optional[float] = None) -> None:
        """
        Run detection every interval_minutes until stopped.

        This method blocks - use start_background_detection() for non-blocking.
        """
        interval_minutes = interval_minutes or config.detection.poll_interval_minutes
        interval = interval_minutes * 60

        logger.info(f'Starting continuous detection (interval={interval_minutes}min)')

        while not self._stop_event.is_set():
            detected = self.perform_detection()
            logger.info(f'Background detection found {len(detected)} flights')
            self._stop_event.wait(interval)

        logger.info('Detection loop exited')

    def start_background_detection(self, interval_minutes: Optional[float] = None) -> bool:
        """Start detection in a background thread. False if already running."""
        if self.is_detection_active():
            logger.warning('Background detection already running')
            return False

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self.run_continuous,
            args=(interval_minutes,),
            name='flight-detection',
            daemon=True,
        )
        self._thread.start()
        logger.info('Started background flight detection')
        return True

    def stop_background_detection(self, timeout: float = 5) -> None:
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=timeout)
            self._thread = None
        logger.info('Stopped background flight detection')

    def is_detection_active(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def stats(self) -> dict:
        """Get detection statistics."""
        return {
            'run_count': self._run_count,
            'error_count': self._error_count,
            'last_run_time': self._last_run_time,
            'running': self.is_detection_active(),
        }

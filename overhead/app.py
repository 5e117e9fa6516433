"""
Flight Overhead application.

Wires the services together and exposes them through a small CLI:
- Database schema
- Shared storage and TTL cache
- Detection, history and settings
- Notifications with aircraft images

Usage:
    python -m overhead run              # poll until Ctrl-C
    python -m overhead check            # one detection cycle
    python -m overhead history
    python -m overhead settings --radius 8
    python -m overhead clear-cache
    python -m overhead load-aircraft aircraftDatabase.csv
"""

import argparse
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from overhead import __version__
from overhead.cache import TTLCache
from overhead.config import config
from overhead.detection import FlightDetectionManager, FlightDetector
from overhead.images import AircraftImageManager, AircraftImageService
from overhead.ingestion import AircraftLookup, OpenSkyClient, load_aircraft_csv
from overhead.location import LocationService
from overhead.models import Flight, init_db
from overhead.notifications import NotificationManager, NotificationService, NotificationSink
from overhead.repositories import FlightApiRepository, FlightRepository, SettingsRepository
from overhead.storage import StorageService

logger = logging.getLogger(__name__)


def configure_logging(debug: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )


@dataclass
class FlightOverheadApp:
    """All long-lived services of one process."""
    storage: StorageService
    cache: TTLCache
    settings_repository: SettingsRepository
    flight_repository: FlightRepository
    flight_api_repository: FlightApiRepository
    location_service: LocationService
    image_manager: AircraftImageManager
    notification_manager: NotificationManager
    detection_manager: FlightDetectionManager


def create_app(
    notification_sink: Optional[NotificationSink] = None,
    client: Optional[OpenSkyClient] = None,
    location_service: Optional[LocationService] = None,
) -> FlightOverheadApp:
    """
    Application factory.

    Args:
        notification_sink: Delivery target; LogSink or WebhookSink from config if None
        client: OpenSky client; built from config if None
        location_service: Location source; config/IP lookup if None

    Returns:
        Fully wired application.
    """
    logger.info('Initializing database...')
    init_db()

    storage = StorageService()
    cache = TTLCache(storage=storage)
    settings_repository = SettingsRepository(storage=storage)
    flight_repository = FlightRepository(storage=storage)

    flight_api_repository = FlightApiRepository(
        client=client,
        cache=cache,
        aircraft_lookup=AircraftLookup(),
    )
    location_service = location_service or LocationService(settings_repository=settings_repository)

    image_manager = AircraftImageManager(AircraftImageService(cache=cache))
    notification_manager = NotificationManager(
        notification_service=NotificationService(sink=notification_sink),
        image_manager=image_manager,
    )
    notification_manager.initialize()

    detection_manager = FlightDetectionManager(
        flight_detector=FlightDetector(flight_api_repository),
        location_service=location_service,
        settings_repository=settings_repository,
        flight_repository=flight_repository,
        notification_manager=notification_manager,
    )

    return FlightOverheadApp(
        storage=storage,
        cache=cache,
        settings_repository=settings_repository,
        flight_repository=flight_repository,
        flight_api_repository=flight_api_repository,
        location_service=location_service,
        image_manager=image_manager,
        notification_manager=notification_manager,
        detection_manager=detection_manager,
    )


def format_flight_line(flight: Flight) -> str:
    distance = f'{flight.distance_km:.1f}km' if flight.distance_km is not None else '-'
    return (
        f'{flight.id:<8} {flight.flight_number:<9} {flight.aircraft_type:<8} '
        f'{flight.altitude:>7,}ft {flight.speed:>4}kt {distance:>7}  {flight.origin_city}'
    )


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------

def _print_detected(flights: List[Flight]) -> None:
    for flight in flights:
        print(format_flight_line(flight))


def cmd_run(app: FlightOverheadApp, args: argparse.Namespace) -> int:
    manager = app.detection_manager
    manager.add_detection_callback(_print_detected)
    if not manager.start_background_detection(args.interval):
        return 1

    try:
        while manager.is_detection_active():
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info('Interrupted, shutting down')
    finally:
        manager.stop_background_detection()

    return 0


def cmd_check(app: FlightOverheadApp, args: argparse.Namespace) -> int:
    detected = app.detection_manager.perform_detection()
    if not detected:
        print('No new aircraft overhead')
        return 0

    for flight in detected:
        print(format_flight_line(flight))
    return 0


def cmd_history(app: FlightOverheadApp, args: argparse.Namespace) -> int:
    flights = app.flight_repository.get_all_flights()
    if not flights:
        print('No flights recorded')
        return 0

    for flight in flights[-args.limit:]:
        seen = time.strftime('%Y-%m-%d %H:%M', time.localtime(flight.timestamp)) if flight.timestamp else '-'
        print(f'{seen}  {format_flight_line(flight)}')
    return 0


def cmd_settings(app: FlightOverheadApp, args: argparse.Namespace) -> int:
    if args.radius is not None:
        try:
            settings = app.settings_repository.update_detection_radius(args.radius)
        except ValueError as e:
            print(f'Invalid radius: {e}')
            return 2
    else:
        settings = app.settings_repository.get_settings()

    print(f'Detection radius: {settings.detection_radius_km:g} km')
    location = settings.last_known_location
    if location:
        print(f'Last known location: {location.latitude:.4f}, {location.longitude:.4f}')
    else:
        print('Last known location: -')
    return 0


def cmd_clear_cache(app: FlightOverheadApp, args: argparse.Namespace) -> int:
    size = app.cache.get_cache_size()
    app.image_manager.clear_image_cache()
    app.cache.clear_cache()
    print(f'Cleared {size} cache entries')
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='overhead',
        description='Notify when aircraft fly overhead (OpenSky Network data)',
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='command', required=True)

    run_parser = subparsers.add_parser('run', help='Poll for aircraft until interrupted')
    run_parser.add_argument(
        '--interval', type=float, default=None,
        help=f'Minutes between checks (default {config.detection.poll_interval_minutes:g})',
    )
    run_parser.set_defaults(func=cmd_run)

    check_parser = subparsers.add_parser('check', help='Run one detection cycle')
    check_parser.set_defaults(func=cmd_check)

    history_parser = subparsers.add_parser('history', help='Show detected flights')
    history_parser.add_argument('--limit', type=int, default=20)
    history_parser.set_defaults(func=cmd_history)

    settings_parser = subparsers.add_parser('settings', help='Show or change settings')
    settings_parser.add_argument('--radius', type=float, default=None, help='Detection radius in km')
    settings_parser.set_defaults(func=cmd_settings)

    clear_parser = subparsers.add_parser('clear-cache', help='Clear API and image caches')
    clear_parser.set_defaults(func=cmd_clear_cache)

    load_parser = subparsers.add_parser('load-aircraft', help='Load the OpenSky aircraft database CSV')
    load_parser.add_argument('csv_path', type=Path)
    load_parser.add_argument('--batch-size', type=int, default=5000)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.debug or config.debug)

    if args.command == 'load-aircraft':
        init_db()
        if not args.csv_path.is_file():
            print(f'File not found: {args.csv_path}')
            return 2
        count = load_aircraft_csv(args.csv_path, batch_size=args.batch_size)
        print(f'Loaded {count} aircraft')
        return 0

    app = create_app()
    return args.func(app, args)

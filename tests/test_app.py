import argparse
import threading
from unittest.mock import MagicMock, patch

import pytest

from overhead.app import build_parser, cmd_check, cmd_run, create_app, format_flight_line, main
from overhead.models import Location
from overhead.notifications import NotificationSink
from tests.conftest import make_flight, make_state


@pytest.fixture
def sink():
    sink = MagicMock(spec=NotificationSink)
    sink.request_permission.return_value = True
    return sink


@pytest.fixture
def client():
    client = MagicMock()
    client.get_states_in_area.return_value = [make_state(icao24='abc123', latitude=40.01, longitude=-74.0)]
    return client


@pytest.fixture
def location_service():
    service = MagicMock()
    service.get_current_location.return_value = Location(40.0, -74.0)
    return service


def test_parser_requires_a_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_parser_settings_radius():
    args = build_parser().parse_args(['settings', '--radius', '8'])
    assert args.radius == 8.0


def test_check_detects_records_and_notifies(sink, client, location_service, capsys):
    app = create_app(notification_sink=sink, client=client, location_service=location_service)

    assert cmd_check(app, argparse.Namespace()) == 0

    assert 'abc123' in capsys.readouterr().out
    assert [f.id for f in app.flight_repository.get_all_flights()] == ['abc123']
    notification = sink.send.call_args.args[0]
    assert notification.title == 'Flight UAL839 Overhead'


def test_second_check_reports_nothing_new(sink, client, location_service, capsys):
    app = create_app(notification_sink=sink, client=client, location_service=location_service)

    cmd_check(app, argparse.Namespace())
    cmd_check(app, argparse.Namespace())

    assert 'No new aircraft overhead' in capsys.readouterr().out
    assert sink.send.call_count == 1


def test_settings_command(capsys):
    assert main(['settings', '--radius', '8']) == 0
    assert 'Detection radius: 8 km' in capsys.readouterr().out

    assert main(['settings']) == 0
    assert 'Detection radius: 8 km' in capsys.readouterr().out


def test_settings_command_rejects_bad_radius(capsys):
    assert main(['settings', '--radius', '-1']) == 2


def test_history_command_empty(capsys):
    assert main(['history']) == 0
    assert 'No flights recorded' in capsys.readouterr().out


def test_clear_cache_command(capsys):
    assert main(['clear-cache']) == 0
    assert 'Cleared 0 cache entries' in capsys.readouterr().out


def test_load_aircraft_missing_file(tmp_path, capsys):
    assert main(['load-aircraft', str(tmp_path / 'missing.csv')]) == 2


def test_format_flight_line():
    line = format_flight_line(make_flight(
        'abc123', flight_number='UAL839', aircraft_type='B738',
        altitude=35000, speed=450, distance_km=1.3, origin_city='United States',
    ))

    assert line.split() == ['abc123', 'UAL839', 'B738', '35,000ft', '450kt', '1.3km', 'United', 'States']


def test_run_prints_detections_until_interrupted(sink, client, location_service, capsys):
    app = create_app(notification_sink=sink, client=client, location_service=location_service)
    detected = threading.Event()
    app.detection_manager.add_detection_callback(lambda flights: detected.set())

    def interrupt(seconds):
        detected.wait(timeout=5)
        raise KeyboardInterrupt

    with patch('overhead.app.time.sleep', side_effect=interrupt):
        assert cmd_run(app, argparse.Namespace(interval=60)) == 0

    assert 'abc123' in capsys.readouterr().out
    assert not app.detection_manager.is_detection_active()

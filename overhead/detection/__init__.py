"""
Overhead flight detection: per-poll deduplication and the polling loop.
"""

from overhead.detection.detector import FlightDetector, identify_new_flights
from overhead.detection.manager import FlightDetectionManager

__all__ = ['FlightDetector', 'identify_new_flights', 'FlightDetectionManager']

"""Usage detectors over the program model."""

from chainscan.detection.common import UsageDetector, build_source_location
from chainscan.detection.events import EventPublishDetector
from chainscan.detection.functions import FunctionClientDetector
from chainscan.detection.services import ServiceDetector
from chainscan.detection.smart_service import SmartServiceDetector

__all__ = [
    "EventPublishDetector",
    "FunctionClientDetector",
    "ServiceDetector",
    "SmartServiceDetector",
    "UsageDetector",
    "build_source_location",
]

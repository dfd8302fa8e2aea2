"""Port interfaces."""

from .clock import ClockPort
from .logger import LoggerPort
from .metrics import MetricsPort
from .store import ObjectStorePort

__all__ = [
    "ClockPort",
    "LoggerPort",
    "MetricsPort",
    "ObjectStorePort",
]

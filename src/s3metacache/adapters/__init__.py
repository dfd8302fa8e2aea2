"""Adapters for s3metacache ports."""

from .clock_utc import UtcClockAdapter
from .logger_std import StdLoggerAdapter
from .metrics_logging import LoggingMetricsAdapter
from .metrics_noop import NoopMetricsAdapter
from .store_memory import MemoryObjectStoreAdapter
from .store_s3 import S3ObjectStoreAdapter

__all__ = [
    "LoggingMetricsAdapter",
    "MemoryObjectStoreAdapter",
    "NoopMetricsAdapter",
    "S3ObjectStoreAdapter",
    "StdLoggerAdapter",
    "UtcClockAdapter",
]

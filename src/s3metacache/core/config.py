"""Centralized configuration for s3metacache."""

import math
import os
from dataclasses import dataclass, field
from datetime import timedelta

_NEVER_EXPIRES = {"", "inf", "infinite", "infinity", "none", "never"}


def parse_lifetime(value: str | float | None) -> timedelta | None:
    """Parse a cache lifetime in seconds.

    ``None``, ``inf`` and the words in ``_NEVER_EXPIRES`` mean the cache never
    expires and are returned as None.
    """
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _NEVER_EXPIRES:
            return None
        try:
            seconds = float(text)
        except ValueError as e:
            raise ValueError(f"Invalid cache lifetime: {value!r}") from e
    else:
        seconds = float(value)

    if math.isnan(seconds) or seconds < 0:
        raise ValueError(f"Cache lifetime must be a non-negative number, got {value!r}")
    if math.isinf(seconds):
        return None
    return timedelta(seconds=seconds)


@dataclass(slots=True)
class MetaCacheConfig:
    """All s3metacache configuration in one place.

    Environment variables (all optional):
        MC_CACHE_LIFETIME:  Seconds before cached metadata is re-fetched.
                            "inf" (default) never expires.
        MC_LOG_LEVEL:       Logging level. Default "INFO".
        MC_METRICS:         Metrics backend: "noop" or "logging" (default).
        MC_STORE:           Object store backend: "s3" (default) or "memory".
        MC_BUCKET:          S3 bucket holding the schemas.
    """

    lifetime: timedelta | None = None
    log_level: str = "INFO"
    metrics_type: str = "logging"
    store_backend: str = "s3"
    bucket: str | None = None

    # Connection params (typically passed by CLI, not env vars)
    endpoint_url: str | None = field(default=None, repr=False)
    region: str | None = None
    profile: str | None = None

    @classmethod
    def from_env(
        cls,
        *,
        log_level: str = "INFO",
        lifetime: str | None = None,
        bucket: str | None = None,
        store_backend: str | None = None,
        endpoint_url: str | None = None,
        region: str | None = None,
        profile: str | None = None,
    ) -> "MetaCacheConfig":
        """Build config from environment variables + explicit overrides."""
        if lifetime is None:
            lifetime = os.environ.get("MC_CACHE_LIFETIME", "inf")
        return cls(
            lifetime=parse_lifetime(lifetime),
            log_level=os.environ.get("MC_LOG_LEVEL", log_level),
            metrics_type=os.environ.get("MC_METRICS", "logging"),
            store_backend=store_backend or os.environ.get("MC_STORE", "s3"),
            bucket=bucket or os.environ.get("MC_BUCKET"),
            endpoint_url=endpoint_url,
            region=region,
            profile=profile,
        )

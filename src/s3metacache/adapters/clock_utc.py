"""UTC clock adapter."""

from datetime import UTC, datetime


class UtcClockAdapter:
    """Clock returning timezone-aware UTC time."""

    def now(self) -> datetime:
        return datetime.now(UTC)

"""Metrics adapter that writes every sample to the logger."""

from ..ports import LoggerPort


class LoggingMetricsAdapter:
    """Emit metrics as DEBUG log lines."""

    def __init__(self, logger: LoggerPort):
        self.logger = logger

    def increment(self, name: str, value: int = 1, tags: dict[str, str] | None = None) -> None:
        self.logger.debug("metric", kind="counter", name=name, value=value, **(tags or {}))

    def timing(self, name: str, seconds: float, tags: dict[str, str] | None = None) -> None:
        self.logger.debug(
            "metric", kind="timing", name=name, value=round(seconds, 6), **(tags or {})
        )

    def gauge(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        self.logger.debug("metric", kind="gauge", name=name, value=value, **(tags or {}))

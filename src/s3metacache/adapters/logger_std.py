"""Standard library logging adapter."""

import logging
import sys
from typing import Any


class StdLoggerAdapter:
    """Structured-ish logging on top of the ``logging`` module.

    Keyword context is rendered as ``key=value`` pairs after the message.
    """

    def __init__(self, name: str = "s3metacache", level: str = "INFO"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper(), logging.INFO))

        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(
                logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
            )
            self.logger.addHandler(handler)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, kwargs)

    def log_operation(
        self,
        op: str,
        schema: str | None,
        durations: dict[str, float],
        cache_hit: bool = False,
        **kwargs: Any,
    ) -> None:
        """Log one summary line per cache operation."""
        timings = {f"{name}_ms": round(seconds * 1000, 3) for name, seconds in durations.items()}
        self.info(
            f"Operation {op} completed",
            op=op,
            schema=schema,
            cache_hit=cache_hit,
            **timings,
            **kwargs,
        )

    def _log(self, level: int, message: str, context: dict[str, Any]) -> None:
        if not self.logger.isEnabledFor(level):
            return
        if context:
            pairs = " ".join(f"{key}={value}" for key, value in context.items() if value is not None)
            if pairs:
                message = f"{message} {pairs}"
        self.logger.log(level, message)

"""Standard logging adapter."""

import logging
import sys
from typing import Any


class StdLoggerAdapter:
    """Structured logging on top of the stdlib logging module.

    Extra keyword fields are rendered as ``key=value`` after the message.
    """

    def __init__(self, name: str = "buildcache", level: str = "INFO"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper(), logging.INFO))

        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
            self.logger.addHandler(handler)
            self.logger.propagate = False

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
        key: str,
        sizes: dict[str, int] | None = None,
        durations: dict[str, float] | None = None,
        **kwargs: Any,
    ) -> None:
        """Log a completed operation in one line."""
        fields: dict[str, Any] = {"op": op, "key": key}
        for name, size in (sizes or {}).items():
            fields[f"{name}_size"] = size
        for name, duration in (durations or {}).items():
            fields[f"{name}_duration"] = f"{duration:.3f}s"
        fields.update(kwargs)
        self._log(logging.INFO, f"{op} complete", fields)

    def _log(self, level: int, message: str, fields: dict[str, Any]) -> None:
        if not self.logger.isEnabledFor(level):
            return
        if fields:
            message = f"{message} " + " ".join(f"{k}={v}" for k, v in fields.items())
        self.logger.log(level, message)

"""Logging utilities for flowsync.

Everything logs through a ``ContextualLogger``: a ``logging.LoggerAdapter`` that
carries key/value dimensions (run id, record id, ...). Handlers render the
dimensions in front of each message. ``RunLogCollector`` captures the bare
messages of one batch run so they can be returned to the caller of the sync
endpoint.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from rich.console import Console
from rich.logging import RichHandler

from flowsync.core.config import settings

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(dims)s%(message)s"


class DimensionsFormatter(logging.Formatter):
    """Formatter that renders ``record.dimensions`` as ``[k=v ...]``."""

    def format(self, record: logging.LogRecord) -> str:
        """Expose the rendered dimensions as ``%(dims)s``."""
        dimensions = getattr(record, "dimensions", None) or {}
        record.dims = (
            "[" + " ".join(f"{k}={v}" for k, v in dimensions.items()) + "] " if dimensions else ""
        )
        return super().format(record)


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter that carries dimensions on every record."""

    def __init__(self, logger: logging.Logger, dimensions: Optional[Dict[str, Any]] = None):
        """Wrap ``logger`` with a fixed set of dimensions."""
        super().__init__(logger, dict(dimensions or {}))
        self.dimensions: Dict[str, Any] = dict(dimensions or {})

    def process(self, msg: Any, kwargs: Dict[str, Any]):
        """Attach dimensions to the record for the formatter to render."""
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("dimensions", self.dimensions)
        kwargs["extra"] = extra
        return msg, kwargs

    def with_context(self, **dimensions: Any) -> "ContextualLogger":
        """Return a child logger with extra dimensions merged in."""
        merged = {**self.dimensions, **dimensions}
        return ContextualLogger(self.logger, merged)


class RunLogCollector(logging.Handler):
    """Handler that keeps the plain messages emitted during a single run.

    Runs share logger names, so when ``run_id`` is given only records carrying
    the same ``run_id`` dimension are kept.
    """

    def __init__(self, run_id: Optional[str] = None, level: int = logging.INFO):
        """Initialize an empty collector."""
        super().__init__(level)
        self.run_id = run_id
        self.messages: List[str] = []

    def filter(self, record: logging.LogRecord) -> bool:
        """Drop records logged by other runs."""
        if self.run_id is not None:
            dimensions = getattr(record, "dimensions", None) or {}
            if dimensions.get("run_id") != self.run_id:
                return False
        return super().filter(record)

    def emit(self, record: logging.LogRecord) -> None:
        """Store the record's message without timestamp or dimensions."""
        try:
            self.messages.append(record.getMessage())
        except Exception:
            self.handleError(record)


@contextmanager
def capture_run_logs(logger: ContextualLogger) -> Iterator[List[str]]:
    """Collect the INFO+ messages of ``logger``'s run while the block runs.

    The run is identified by the logger's ``run_id`` dimension; without one,
    every message reaching the underlying logger is collected.
    """
    collector = RunLogCollector(run_id=logger.dimensions.get("run_id"))
    logger.logger.addHandler(collector)
    try:
        yield collector.messages
    finally:
        logger.logger.removeHandler(collector)


class LoggerConfigurator:
    """Builds loggers with a consistent handler setup."""

    _configured: bool = False

    @classmethod
    def _configure_root(cls) -> None:
        if cls._configured:
            return

        root = logging.getLogger("flowsync")
        root.setLevel(getattr(logging, settings.LOG_LEVEL, logging.INFO))

        if settings.LOCAL_DEVELOPMENT:
            # Explicit width so CI consoles don't wrap at 80 columns
            console = Console(width=200)
            handler: logging.Handler = RichHandler(
                console=console, show_time=True, show_path=False, rich_tracebacks=True
            )
            handler.setFormatter(DimensionsFormatter("%(dims)s%(message)s"))
        else:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(DimensionsFormatter(_FORMAT))

        root.addHandler(handler)
        # quiet noisy deps
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
        cls._configured = True

    @classmethod
    def configure_logger(
        cls, name: str, dimensions: Optional[Dict[str, Any]] = None
    ) -> ContextualLogger:
        """Return a contextual logger under the ``flowsync`` namespace.

        Args:
            name: Logger name, e.g. ``flowsync.sync``
            dimensions: Key/value pairs rendered in front of every message

        Returns:
            ContextualLogger bound to ``name``
        """
        cls._configure_root()
        if name != "flowsync" and not name.startswith("flowsync."):
            name = f"flowsync.{name}"
        return ContextualLogger(logging.getLogger(name), dimensions)


logger = LoggerConfigurator.configure_logger("flowsync")

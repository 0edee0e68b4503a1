"""Root logger wiring driven by the ``[logging]`` config section.

Modules log through ``logging.getLogger(__name__)``; this module only decides
where those records go and how they look. It is applied once by the CLI
``run`` command before the ASGI server starts.
"""

from __future__ import annotations

import json
import logging
import sys

from impulse_ledger.config import LoggingSettings

SIMPLE_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
DETAILED_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s [%(filename)s:%(lineno)d]"


class JsonLogFormatter(logging.Formatter):
    """Render each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def build_formatter(fmt: str) -> logging.Formatter:
    """Return the formatter for a ``simple``/``detailed``/``json`` style name."""
    if fmt == "json":
        return JsonLogFormatter()
    if fmt == "simple":
        return logging.Formatter(SIMPLE_LOG_FORMAT)
    return logging.Formatter(DETAILED_LOG_FORMAT)


def configure_logging(settings: LoggingSettings) -> logging.Handler:
    """Install a single stderr handler on the root logger.

    Calling this more than once replaces the handler installed previously
    rather than stacking duplicates.

    Returns:
        The handler that was installed.
    """
    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, "_impulse_ledger", False):
            root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(build_formatter(settings.format))
    handler._impulse_ledger = True  # type: ignore[attr-defined]
    root.addHandler(handler)

    level = logging.getLevelName(settings.level.upper())
    root.setLevel(level if isinstance(level, int) else logging.INFO)
    return handler

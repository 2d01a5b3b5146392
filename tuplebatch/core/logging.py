"""Logging setup for tuplebatch.

Provides a module-level ``logger`` and ``ContextualLogger``, a LoggerAdapter
that carries dimensions (store id, chunk index, ...) through a call chain:

    log = logger.with_context(store_id=store_id)
    log.with_context(chunk=3).debug("[Dispatcher] Chunk sent")
"""

import logging
import sys
from typing import Any, MutableMapping, Optional, Tuple

from pythonjsonlogger.json import JsonFormatter

from tuplebatch.core.config import settings

_JSON_FIELDS = ["asctime", "levelname", "name", "message"]
_TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s%(context_suffix)s"


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter that attaches a dict of dimensions to every record."""

    def __init__(self, logger: logging.Logger, dimensions: Optional[dict] = None):
        """Initialize adapter.

        Args:
            logger: Underlying stdlib logger
            dimensions: Key/value pairs added to every record
        """
        super().__init__(logger, dimensions or {})
        self.dimensions = dict(dimensions or {})

    def with_context(self, **dimensions: Any) -> "ContextualLogger":
        """Return a new logger carrying the current dimensions plus ``dimensions``."""
        merged = {**self.dimensions, **dimensions}
        return ContextualLogger(self.logger, merged)

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping]:
        """Merge dimensions into the record's ``extra``."""
        extra = dict(kwargs.get("extra") or {})
        extra.update(self.dimensions)
        extra["context_suffix"] = _format_suffix(self.dimensions)
        kwargs["extra"] = extra
        return msg, kwargs


def _format_suffix(dimensions: dict) -> str:
    if not dimensions:
        return ""
    pairs = " ".join(f"{k}={v}" for k, v in dimensions.items())
    return f" [{pairs}]"


class _ContextSuffixFilter(logging.Filter):
    # Records from plain (non-adapter) loggers still need the format field.
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "context_suffix"):
            record.context_suffix = ""
        return True


def configure_logging(level: Optional[str] = None, json_output: Optional[bool] = None) -> None:
    """Install a stdout handler on the ``tuplebatch`` logger.

    Safe to call more than once; existing handlers are replaced.

    Args:
        level: Log level name, defaults to settings.LOG_LEVEL
        json_output: JSON instead of plain text, defaults to settings.LOG_JSON
    """
    level = level or settings.LOG_LEVEL
    json_output = settings.LOG_JSON if json_output is None else json_output

    base = logging.getLogger("tuplebatch")
    base.setLevel(level)
    for handler in list(base.handlers):
        base.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(JsonFormatter(" ".join(f"%({f})s" for f in _JSON_FIELDS)))
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT))
    handler.addFilter(_ContextSuffixFilter())
    base.addHandler(handler)
    base.propagate = False


logger = ContextualLogger(logging.getLogger("tuplebatch"))

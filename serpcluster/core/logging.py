"""Logging setup for the clustering service: one readable line plus JSON extras."""

import json
import logging
import sys
from typing import IO, Any

from serpcluster.config import settings

LOGGER_NAME = "serpcluster"

# Attributes every LogRecord carries; anything else arrived through `extra=`.
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def _json_default(value: Any) -> Any:
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    return str(value)


class JSONExtrasFormatter(logging.Formatter):
    """Render `time | LEVEL | logger | message {extras}`.

    Extras may hold pydantic models (clusters, actions) and index sets from
    the similarity graph; both are serialized rather than stringified.
    """

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        line = (
            f"{self.formatTime(record, self.datefmt)} | {record.levelname:<8} | "
            f"{record.name} | {record.message}"
        )

        extras = {
            key: value
            for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        }
        if extras:
            line = f"{line} {json.dumps(extras, default=_json_default, ensure_ascii=False)}"

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            line = f"{line}\n{record.exc_text}"
        return line


def setup_logging(level: str | None = None, stream: IO[str] | None = None) -> logging.Logger:
    """Attach the JSON-extras handler to the package logger once and return it."""
    resolved_level = (level or settings.log_level).upper()
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(resolved_level)

    if not logger.handlers:
        handler = logging.StreamHandler(stream or sys.stdout)
        handler.setFormatter(JSONExtrasFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)
        # Records are written here only, not again by the root logger.
        logger.propagate = False

    return logger

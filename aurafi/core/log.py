"""aurafi.core.log

Logging is stdlib. Messages are event names; context goes in ``extra``.

    logger.info("vault_minted", extra={"owner": owner, "qty": qty})
"""

from __future__ import annotations

import json
import logging
from typing import Any

from aurafi.core.config import LoggingConfig

# Attributes every LogRecord carries. Anything else came in through ``extra``.
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime"}


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in vars(record).items() if k not in _STANDARD_ATTRS}


class JsonLineFormatter(logging.Formatter):
    """One JSON object per line. Big integers stay integers."""

    def format(self, record: logging.LogRecord) -> str:
        body: dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        body.update(_extras(record))
        if record.exc_info:
            body["exc"] = self.formatException(record.exc_info)
        return json.dumps(body, sort_keys=True, default=str)


class KeyValueFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        extras = _extras(record)
        if not extras:
            return base
        kv = " ".join(f"{k}={extras[k]}" for k in sorted(extras))
        return f"{base} {kv}"


def configure_logging(config: LoggingConfig, *, logger_name: str = "aurafi") -> logging.Logger:
    """Install a single handler on the package logger. Idempotent."""

    logger = logging.getLogger(logger_name)
    logger.setLevel(config.level.upper())
    for h in list(logger.handlers):
        logger.removeHandler(h)

    handler = logging.StreamHandler()
    if config.json_output:
        handler.setFormatter(JsonLineFormatter())
    else:
        handler.setFormatter(KeyValueFormatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger

"""
Vault Logging - Handlers, formatting and redaction for ``editionvault`` loggers.

Vault modules log state changes with a structured ``context`` mapping
(unit ids, addresses, amounts). This module renders that context in text
and JSON output and keeps key material out of both:

- ``Account`` values are reduced to their public address
- ``Address`` values are written as hex
- Raw bytes (seeds, private keys, proofs) are never written
- Secret-like context keys and ``key=value`` pairs in messages are masked

Configured from the ``logging`` section of VaultConfig, which already folds
in the EDV_LOG_* / EDV_LOGGING_* environment variables.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, List, Mapping, MutableMapping

from .config import LoggingConfig
from .identity import Account, Address

PACKAGE_LOGGER = "editionvault"
REDACTED = "[REDACTED]"

# Context keys whose values are dropped whatever their type
_SECRET_KEY_FRAGMENTS = ("seed", "private", "secret", "mnemonic", "password")

_SECRET_ASSIGNMENT = re.compile(
    r"(?P<key>private[_-]?key|seed|mnemonic|password|secret)\s*[:=]\s*(?P<value>[^\s,;]+)",
    flags=re.IGNORECASE,
)

_MAX_DEPTH = 4
_ROTATE_BYTES = 10 * 1024 * 1024
_ROTATE_BACKUPS = 3


# =============================================================================
# Redaction
# =============================================================================

def mask_message(message: str) -> str:
    """Mask ``seed=...`` style assignments in a free-text message."""
    return _SECRET_ASSIGNMENT.sub(lambda m: f"{m.group('key')}={REDACTED}", message)


def _is_secret_key(key: Any) -> bool:
    return isinstance(key, str) and any(f in key.lower() for f in _SECRET_KEY_FRAGMENTS)


def scrub(value: Any, depth: int = 0) -> Any:
    """Log-safe copy of a context value."""
    if depth > _MAX_DEPTH:
        return REDACTED
    if isinstance(value, Account):
        return value.address.to_hex()
    if isinstance(value, Address):
        return value.to_hex()
    if isinstance(value, (bytes, bytearray)):
        return REDACTED
    if isinstance(value, str):
        return mask_message(value)
    if isinstance(value, Mapping):
        return {
            k: REDACTED if _is_secret_key(k) else scrub(v, depth + 1)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple, set, frozenset)):
        return [scrub(v, depth + 1) for v in value]
    return value


class RedactionFilter(logging.Filter):
    """Scrubs the message and ``context`` of every record it sees."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = mask_message(record.msg)
        context = getattr(record, "context", None)
        if isinstance(context, MutableMapping):
            record.context = scrub(context)
        return True


# =============================================================================
# Formatters
# =============================================================================

def _plain(value: Any) -> Any:
    # Addresses stay readable when redaction is off
    if isinstance(value, Account):
        return value.address.to_hex()
    if isinstance(value, Address):
        return value.to_hex()
    return str(value)


class ContextTextFormatter(logging.Formatter):
    """``LEVEL logger: message [key=value ...]``"""

    def __init__(self, with_time: bool = False):
        fmt = "%(levelname)s %(name)s: %(message)s"
        super().__init__(f"%(asctime)s {fmt}" if with_time else fmt)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = getattr(record, "context", None)
        if isinstance(context, Mapping) and context:
            pairs = " ".join(f"{k}={_plain(v)}" for k, v in context.items())
            line = f"{line} [{pairs}]"
        return line


class JSONFormatter(logging.Formatter):
    """One JSON object per record; context is nested under ``context``."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": record.created,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = getattr(record, "context", None)
        if context is not None:
            payload["context"] = context
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=_plain)


# =============================================================================
# Configuration
# =============================================================================

def _formatter(config: LoggingConfig, for_file: bool) -> logging.Formatter:
    if config.format == "json":
        return JSONFormatter()
    if config.format == "text":
        return ContextTextFormatter(with_time=for_file)
    raise ValueError(f"Invalid log format: {config.format}")


def _handlers(config: LoggingConfig) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.file:
        handlers.append(
            RotatingFileHandler(config.file, maxBytes=_ROTATE_BYTES, backupCount=_ROTATE_BACKUPS)
        )
    for i, handler in enumerate(handlers):
        handler.setFormatter(_formatter(config, for_file=i > 0))
        if config.redact:
            handler.addFilter(RedactionFilter())
    return handlers


def configure_logging(config: LoggingConfig) -> logging.Logger:
    """Install handlers on the ``editionvault`` logger according to ``config``.

    Replaces (and closes) handlers from an earlier call, so it is safe to
    call again after the configuration changes.
    """
    level = logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Invalid logging level: {config.level}")

    _formatter(config, for_file=False)
    handlers = _handlers(config)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for old in package_logger.handlers:
        old.close()
    package_logger.handlers.clear()
    package_logger.setLevel(level)
    package_logger.propagate = False
    for handler in handlers:
        package_logger.addHandler(handler)
    return package_logger

"""Logging helpers: sensitive-value masking and handler setup."""
from __future__ import annotations

import logging
import re
import sys


_SENSITIVE_RE = re.compile(
    r"(sessionId|apiKey|token|key)\s*[=:]\s*[^&\s,}]+"
    r"|\"(sessionId|apiKey|token|key)\"\s*:\s*\"[^\"]+\"",
    re.IGNORECASE,
)


def filter_sensitive(data: str) -> str:
    """Mask ``sessionId``/``apiKey``/``token``/``key`` values in ``data``."""

    def _mask(match: re.Match[str]) -> str:
        name = match.group(1) or match.group(2)
        return f"{name}=***"

    return _SENSITIVE_RE.sub(_mask, data)


class SensitiveDataFilter(logging.Filter):
    """Rewrites every record's rendered message through :func:`filter_sensitive`."""

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            return True
        record.msg = filter_sensitive(message)
        record.args = None
        return True


def configure_logging(level: str | int = "INFO", *, stream=None) -> logging.Handler:
    """Install a single stream handler on the ``vowser`` logger tree."""

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s"))
    handler.addFilter(SensitiveDataFilter())

    root = logging.getLogger("vowser")
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level if isinstance(level, int) else str(level).upper())
    return handler


__all__ = ["filter_sensitive", "SensitiveDataFilter", "configure_logging"]

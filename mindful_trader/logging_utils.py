"""
Logging utilities.

Primary goals:
- Avoid leaking secrets (API keys, tokens, database passwords) in logs.
- One place to configure the log format used by the CLI.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class RedactSecretsFilter(logging.Filter):
    """
    Best-effort redaction for secrets in log messages.

    This is intentionally conservative: it only redacts common patterns like
    query-string keys, connection-string passwords and obvious token prefixes.
    """

    _query_param_re = re.compile(r"(?i)\b(apiKey|apikey|token|key|secret|password)=([^&\s]+)")
    _json_kv_re = re.compile(
        r"(?i)(\"?(apiKey|token|key|secret|password)\"?\s*[:=]\s*)(\"?)[^\"\s,}&]+(\3)"
    )
    _bearer_re = re.compile(r"(?i)\bBearer\s+([A-Za-z0-9._\-]+)")
    _sk_re = re.compile(r"\bsk-[A-Za-z0-9]{10,}\b")
    _dsn_re = re.compile(r"(?i)\b([a-z][a-z0-9+.\-]*://[^:/\s@]+):([^@\s]+)@")

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003 (Filter.filter)
        try:
            msg = record.getMessage()
        except Exception:
            return True

        redacted = msg
        redacted = self._query_param_re.sub(lambda m: f"{m.group(1)}=REDACTED", redacted)
        redacted = self._json_kv_re.sub(
            lambda m: f"{m.group(1)}{m.group(3)}REDACTED{m.group(4)}", redacted
        )
        redacted = self._sk_re.sub("sk-REDACTED", redacted)
        redacted = self._bearer_re.sub("Bearer REDACTED", redacted)
        redacted = self._dsn_re.sub(lambda m: f"{m.group(1)}:REDACTED@", redacted)

        if redacted != msg:
            # Replace the fully formatted message to avoid re-formatting with args.
            record.msg = redacted
            record.args = ()
        return True


_FILTER_NAME = "mindful_redact_secrets"


def _has_filter(filters: Iterable[logging.Filter], name: str) -> bool:
    return any(getattr(f, "name", None) == name for f in filters)


def install_log_safety() -> None:
    """
    Install log safety defaults:
    - Redact common secrets in log messages
    - Attach the filter to every handler that already exists
    """
    redact_filter = RedactSecretsFilter()
    redact_filter.name = _FILTER_NAME  # type: ignore[attr-defined]

    # Attach to root logger and any existing handlers.
    root = logging.getLogger()
    if not _has_filter(root.filters, _FILTER_NAME):
        root.addFilter(redact_filter)
    for handler in root.handlers:
        if not _has_filter(handler.filters, _FILTER_NAME):
            handler.addFilter(redact_filter)

    # Best-effort: also attach to existing non-root handlers.
    for obj in logging.Logger.manager.loggerDict.values():
        if isinstance(obj, logging.Logger):
            for handler in obj.handlers:
                if not _has_filter(handler.filters, _FILTER_NAME):
                    handler.addFilter(redact_filter)


def setup_logging(level: str | int = "INFO") -> None:
    """Configure root logging for command-line use and install redaction."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)
    try:
        install_log_safety()
    except Exception:
        # Logging should never prevent app startup.
        pass

"""
Logging utilities for the FastAPI application and maintenance scripts.

Provides a consistent logging format and keeps OAuth secrets out of log output.
"""

import logging
import re
import sys

_SECRET_PATTERNS = (
    re.compile(r"(Bearer\s+)[A-Za-z0-9\-._~+/]+=*", re.IGNORECASE),
    re.compile(
        r"(\b(?:access_token|refresh_token|code_verifier|client_secret|code)[\"']?\s*[:=]\s*[\"']?)"
        r"[^\"'&,\s}]+",
        re.IGNORECASE,
    ),
)


def redact_secrets(message: str) -> str:
    """Mask bearer tokens and OAuth credential fields in ``message``."""
    for pattern in _SECRET_PATTERNS:
        message = pattern.sub(r"\1[REDACTED]", message)
    return message


class SecretRedactionFilter(logging.Filter):
    """Rewrite log records so rendered messages never carry raw tokens."""

    def filter(self, record: logging.LogRecord) -> bool:
        rendered = record.getMessage()
        redacted = redact_secrets(rendered)
        if redacted != rendered:
            record.msg = redacted
            record.args = None
        return True


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with a sensible default format."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, SecretRedactionFilter) for f in handler.filters):
            handler.addFilter(SecretRedactionFilter())


__all__ = ["SecretRedactionFilter", "configure_logging", "redact_secrets"]

"""Logging helpers."""

from __future__ import annotations

import logging
from typing import Optional, Set

_LOGGING_CONFIGURED = False
_SECRETS: Set[str] = set()

MASK = "***"


class SecretMaskingFilter(logging.Filter):
    """Replaces registered secret values in rendered log messages."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not _SECRETS:
            return True
        message = record.getMessage()
        masked = message
        for secret in _SECRETS:
            masked = masked.replace(secret, MASK)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


_MASKING_FILTER = SecretMaskingFilter()


def mask_secret(value: Optional[str]) -> None:
    """Never let `value` reach the log output."""
    if value:
        _SECRETS.add(value)


def mask(text: str) -> str:
    for secret in _SECRETS:
        text = text.replace(secret, MASK)
    return text


def get_logger(name: Optional[str] = None) -> logging.Logger:
    global _LOGGING_CONFIGURED
    if not _LOGGING_CONFIGURED:
        logging.basicConfig(
            level=logging.INFO,
            format="[%(asctime)s] %(levelname)s %(name)s - %(message)s",
        )
        for handler in logging.getLogger().handlers:
            handler.addFilter(_MASKING_FILTER)
        _LOGGING_CONFIGURED = True
    return logging.getLogger(name)

"""Logging setup and masking of secrets in log output."""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional, Set

MASK = "***"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class SecretMasker(logging.Filter):
    """Replace registered secret values in formatted log messages."""

    def __init__(self) -> None:
        super().__init__()
        self._secrets: Set[str] = set()

    def add(self, value: str) -> None:
        if value:
            self._secrets.add(value)

    def clear(self) -> None:
        self._secrets.clear()

    def mask(self, text: str) -> str:
        # Longest first so a secret containing another is fully replaced.
        for secret in sorted(self._secrets, key=len, reverse=True):
            text = text.replace(secret, MASK)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        if self._secrets:
            record.msg = self.mask(record.getMessage())
            record.args = ()
        return True


secret_masker = SecretMasker()


def mark_secret(value: str) -> None:
    """Register ``value`` so it never appears in log output."""

    if not value:
        return
    secret_masker.add(value)
    if os.environ.get("GITHUB_ACTIONS") == "true":
        # Tell the runner to mask the value in its own log stream too.
        sys.stdout.write(f"::add-mask::{value}\n")
        sys.stdout.flush()


def setup_logging(level: Optional[str] = None, format_string: str = DEFAULT_FORMAT) -> logging.Logger:
    """Configure the package logger with a single masked console handler."""

    if level is None:
        level = "DEBUG" if os.environ.get("RUNNER_DEBUG") == "1" else "INFO"

    logger = logging.getLogger("git_link_auth")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(format_string))
    handler.addFilter(secret_masker)
    logger.addHandler(handler)
    return logger

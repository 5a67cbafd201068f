from __future__ import annotations

import logging
import re
import sys
import time

_HANDLER_NAME = "wellerman-console"


class MaskSecretsFilter(logging.Filter):
    """Redact tokens and passwords from log records."""

    _patterns = [
        re.compile(r"(PRIVATE-TOKEN['\"]?\s*[=:]\s*['\"]?)([A-Za-z0-9._-]+)", re.IGNORECASE),
        re.compile(r"(\btoken\s*[=:]\s*)([A-Za-z0-9._-]+)", re.IGNORECASE),
        re.compile(r"(password\s*[=:]\s*)([^,\s]+)", re.IGNORECASE),
    ]

    @classmethod
    def mask(cls, text: str) -> str:
        for pattern in cls._patterns:
            text = pattern.sub(r"\1***REDACTED***", text)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.mask(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(
                self.mask(arg) if isinstance(arg, str) else arg for arg in record.args
            )
        return True


def configure_logging(level: str | int = logging.INFO, *, force: bool = False) -> logging.Logger:
    """Install a single stderr handler on the ``wellerman`` logger.

    Calling it again is a no-op unless ``force`` is set, in which case the
    handler is rebuilt (useful when pytest swaps stderr between tests).
    """
    base = logging.getLogger("wellerman")
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    base.setLevel(level)

    existing = [h for h in base.handlers if h.get_name() == _HANDLER_NAME]
    if existing and not force:
        return base
    for handler in existing:
        base.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )
    formatter.converter = time.gmtime
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(formatter)
    handler.addFilter(MaskSecretsFilter())
    base.addHandler(handler)
    return base

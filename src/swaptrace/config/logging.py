from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

ROOT_LOGGER = "swaptrace"


class SwapTraceFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        msg = f"{timestamp} - {record.name} - {record.levelname} - {record.getMessage()}"
        if record.exc_info:
            msg = f"{msg}\n{self.formatException(record.exc_info)}"
        return msg


_configured = False


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """
    Attach console (and optionally file) handlers to the package logger.

    Safe to call more than once; only the first call installs handlers.
    """
    global _configured

    logger = logging.getLogger(ROOT_LOGGER)
    if _configured:
        return logger

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.handlers.clear()
    logger.propagate = False

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(SwapTraceFormatter())
    logger.addHandler(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(path, encoding="utf-8")
        fh.setFormatter(SwapTraceFormatter())
        logger.addHandler(fh)

    _configured = True
    return logger

from __future__ import annotations

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_stream_handler: Optional[logging.Handler] = None


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger."""
    global _stream_handler
    root = logging.getLogger()
    root.setLevel(level)
    if _stream_handler is None:
        _stream_handler = logging.StreamHandler(sys.stdout)
        _stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    if _stream_handler not in root.handlers:
        root.addHandler(_stream_handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)

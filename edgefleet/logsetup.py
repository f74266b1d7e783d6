"""Logging set-up for the service."""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

_HANDLER_NAME = "edgefleet"
_FORMAT = "%(asctime)s %(levelname)s %(funcName)s %(filename)s:%(lineno)d %(message)s"


def level_for(name: Optional[str]) -> int:
    """Map a configured level name to a logging level; anything unknown is INFO."""
    if name == "DEBUG":
        return logging.DEBUG
    if name == "ERROR":
        return logging.ERROR
    return logging.INFO


def init_logger(level_name: Optional[str] = None, stream: Optional[TextIO] = None) -> logging.Logger:
    """Send the root logger's output, with caller details, to ``stream`` (stdout by default)."""
    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root.removeHandler(handler)
            handler.close()
    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(handler)
    root.setLevel(level_for(level_name))
    return root
"""Logging helpers for the KenKen engine."""

from __future__ import annotations

import logging
from typing import Optional


def configure_logging(level: int = logging.INFO) -> None:
    """Configure root logging with a compact formatter.

    Generation runs many rejected attempts, so per-attempt messages are
    emitted at DEBUG and only accepted puzzles reach INFO.
    """

    handler = logging.StreamHandler()
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
    )
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a namespaced logger under ``kenken``."""

    return logging.getLogger(name or "kenken")

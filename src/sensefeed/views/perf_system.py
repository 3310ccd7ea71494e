"""Helpers for querying local process performance metrics."""

from __future__ import annotations

import logging
import os
from typing import Final

import psutil

logger = logging.getLogger(__name__)

_PROCESS: Final[psutil.Process] = psutil.Process(os.getpid())

BYTES_PER_MB = 1024 * 1024


def get_process_cpu_percent() -> float:
    """
    Return the current CPU usage of this process.

    psutil's cpu_percent needs to be called periodically; the first call
    may return 0.0 which is acceptable for a lightweight HUD display.
    """
    try:
        return float(_PROCESS.cpu_percent(interval=None))
    except psutil.Error as exc:
        logger.debug("cpu_percent unavailable: %r", exc)
        return 0.0


def get_process_memory_mb() -> float:
    """Resident set size of this process in MiB (0.0 when unavailable)."""
    try:
        return float(_PROCESS.memory_info().rss) / BYTES_PER_MB
    except psutil.Error as exc:
        logger.debug("memory_info unavailable: %r", exc)
        return 0.0

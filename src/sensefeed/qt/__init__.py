"""PySide6 bindings: run feeds on the Qt event loop."""

from .scheduler import QtScheduler

__all__ = ["QtScheduler"]

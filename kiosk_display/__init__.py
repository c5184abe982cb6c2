"""Top-level package for the weather and calendar kiosk dashboard."""

from __future__ import annotations

from .scheduler import Scheduler, next_boundary

__all__ = [
    "__version__",
    "Scheduler",
    "next_boundary",
]

__version__ = "0.1.0"

"""Display driver adapters for the kiosk dashboard."""
from __future__ import annotations

from .base import DisplayDriver
from .file_driver import DEFAULT_RESOLUTION, LATEST_FRAME_NAME, FileDisplayDriver

__all__ = [
    "DEFAULT_RESOLUTION",
    "DisplayDriver",
    "FileDisplayDriver",
    "LATEST_FRAME_NAME",
]

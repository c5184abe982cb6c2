"""Display driver that writes rendered frames to PNG files."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from PIL import Image, ImageChops

from .base import DisplayDriver

DEFAULT_RESOLUTION: tuple[int, int] = (800, 480)
LATEST_FRAME_NAME = "latest.png"


@dataclass
class FileDisplayDriver(DisplayDriver):
    """Keep the latest frame in memory and optionally mirror it to disk.

    ``latest.png`` is replaced atomically so a kiosk browser or image viewer
    polling the directory never sees a half written file. With
    ``keep_history`` every distinct frame is also saved under a timestamped
    name.
    """

    resolution: tuple[int, int] = DEFAULT_RESOLUTION
    output_dir: Optional[Path] = None
    keep_history: bool = False
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))

    def __post_init__(self) -> None:
        self._initialized = False
        self._last_frame: Optional[Image.Image] = None
        self._frames_written = 0
        if self.output_dir is not None:
            self.output_dir = Path(self.output_dir)

    def initialize(self) -> None:
        if self._initialized:
            return
        if self.output_dir is not None:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            self.logger.info("Writing frames to %s", self.output_dir)
        self._initialized = True

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError("Display has not been initialized. Call initialize() first.")

    def display_image(self, image: Image.Image) -> bool:
        self._require_initialized()
        if image.size != self.resolution:
            raise ValueError(
                f"Image has resolution {image.size}, expected {self.resolution} for this display."
            )
        processed = image.convert("L")
        if self._last_frame is not None and ImageChops.difference(self._last_frame, processed).getbbox() is None:
            self.logger.debug("Frame unchanged; skipping update")
            return False

        if self.output_dir is not None:
            self._write_latest(processed)
            if self.keep_history:
                timestamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S-%fZ")
                history_path = self.output_dir / f"frame-{timestamp}.png"
                processed.save(history_path)
                self.logger.debug("Saved frame to %s", history_path)
        self._last_frame = processed.copy()
        self._frames_written += 1
        return True

    def _write_latest(self, image: Image.Image) -> None:
        assert self.output_dir is not None
        target = self.output_dir / LATEST_FRAME_NAME
        tmp_path = target.with_name(f".{target.name}.tmp")
        image.save(tmp_path, format="PNG")
        os.replace(tmp_path, target)

    def close(self) -> None:
        if self._initialized:
            self.logger.debug("Display closed after %d frame(s)", self._frames_written)
            self._initialized = False

    @property
    def last_frame(self) -> Optional[Image.Image]:
        """Return a copy of the last frame shown, if any."""

        return self._last_frame.copy() if self._last_frame is not None else None

    @property
    def frames_written(self) -> int:
        return self._frames_written

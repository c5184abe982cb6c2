"""Abstract display driver interface used by the dashboard shell."""
from __future__ import annotations

from abc import ABC, abstractmethod

from PIL import Image


class DisplayDriver(ABC):
    """Defines the behaviour required from anything that shows a frame."""

    @property
    @abstractmethod
    def resolution(self) -> tuple[int, int]:
        """Return the (width, height) of the display in pixels."""

    @abstractmethod
    def initialize(self) -> None:
        """Prepare the display for updates."""

    @abstractmethod
    def display_image(self, image: Image.Image) -> bool:
        """Show a rendered image; return False when the frame was unchanged."""

    @abstractmethod
    def close(self) -> None:
        """Release any resources held by the display."""

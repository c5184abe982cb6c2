from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from kiosk_display.display import LATEST_FRAME_NAME, FileDisplayDriver


def test_display_image_writes_latest_frame(tmp_path: Path) -> None:
    driver = FileDisplayDriver(output_dir=tmp_path / "frames")
    driver.initialize()

    image = Image.new("L", driver.resolution, 255)
    image.putpixel((10, 10), 0)
    assert driver.display_image(image)

    latest = tmp_path / "frames" / LATEST_FRAME_NAME
    assert latest.exists()
    with Image.open(latest) as saved:
        assert saved.size == (800, 480)
        assert saved.getpixel((10, 10)) == 0
    assert driver.frames_written == 1
    assert not list((tmp_path / "frames").glob(".*.tmp"))


def test_unchanged_frame_is_skipped(tmp_path: Path) -> None:
    driver = FileDisplayDriver(output_dir=tmp_path)
    driver.initialize()
    image = Image.new("L", driver.resolution, 255)

    assert driver.display_image(image)
    assert not driver.display_image(image.copy())
    assert driver.frames_written == 1


def test_history_keeps_every_distinct_frame(tmp_path: Path) -> None:
    driver = FileDisplayDriver(output_dir=tmp_path, keep_history=True)
    driver.initialize()

    driver.display_image(Image.new("L", driver.resolution, 255))
    driver.display_image(Image.new("L", driver.resolution, 0))

    assert len(list(tmp_path.glob("frame-*.png"))) == 2
    assert driver.last_frame is not None
    assert driver.last_frame.getpixel((0, 0)) == 0


def test_in_memory_driver_without_output_dir() -> None:
    driver = FileDisplayDriver()
    driver.initialize()

    assert driver.display_image(Image.new("RGB", driver.resolution, "white"))
    assert driver.last_frame is not None
    assert driver.last_frame.mode == "L"


def test_requires_initialize_and_matching_size(tmp_path: Path) -> None:
    driver = FileDisplayDriver(output_dir=tmp_path)

    with pytest.raises(RuntimeError):
        driver.display_image(Image.new("L", driver.resolution, 255))

    driver.initialize()
    with pytest.raises(ValueError):
        driver.display_image(Image.new("L", (10, 10), 255))

    driver.close()
    with pytest.raises(RuntimeError):
        driver.display_image(Image.new("L", driver.resolution, 255))

"""Saving captured frames to disk.

Files are named {save_dir}/smr_{timestamp}_{save_name}. The timestamp has
one-second resolution, so two saves within the same second overwrite each
other.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from .capture import CaptureError, capture_all
from .config import Config
from .emit import emit
from .image import CapturedImage, to_pixbuf

log = logging.getLogger(__name__)

FILE_PREFIX = "smr"
TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"

# File extension -> GdkPixbuf saver name
FORMATS = {
    "png": "png",
    "jpg": "jpeg",
    "jpeg": "jpeg",
    "bmp": "bmp",
    "tif": "tiff",
    "tiff": "tiff",
    "webp": "webp",
}
DEFAULT_QUALITY = 90


class SaveError(Exception):
    """Raised when a frame cannot be written."""
    pass


@dataclass
class OutputResult:
    """Result of saving a screenshot."""

    path: Path
    width: int
    height: int
    timestamp: str

    def to_dict(self) -> dict:
        return {
            "path": str(self.path),
            "width": self.width,
            "height": self.height,
            "timestamp": self.timestamp,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


def build_save_path(directory: Path, base_name: str, now: Optional[datetime] = None) -> Path:
    now = now or datetime.now()
    return Path(directory) / f"{FILE_PREFIX}_{now.strftime(TIMESTAMP_FORMAT)}_{base_name}"


def image_format(path: Path) -> str:
    """GdkPixbuf format name for a path; PNG when the extension is unknown."""
    return FORMATS.get(path.suffix.lower().lstrip("."), "png")


def write_image(image: CapturedImage, path: Path, fmt: str) -> None:
    """Encode and write the image with GdkPixbuf.

    Raises:
        SaveError: If GdkPixbuf cannot write the file
    """
    from gi.repository import GLib

    pixbuf = to_pixbuf(image)
    if fmt in ("jpeg", "webp"):
        keys, values = ["quality"], [str(DEFAULT_QUALITY)]
    else:
        keys, values = [], []

    try:
        pixbuf.savev(str(path), fmt, keys, values)
    except GLib.Error as e:
        raise SaveError(f"Could not write {path}: {e.message}")


def save(
    image: CapturedImage,
    directory: Path,
    base_name: str,
    now: Optional[datetime] = None,
) -> OutputResult:
    """Write an image to a timestamped path under ``directory``.

    Raises:
        SaveError: If the directory cannot be created or the write fails
    """
    output_path = build_save_path(directory, base_name, now)

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        write_image(image, output_path, image_format(output_path))
    except OSError as e:
        raise SaveError(f"Could not write {output_path}: {e}")

    result = OutputResult(
        path=output_path,
        width=image.width,
        height=image.height,
        timestamp=datetime.now().isoformat(),
    )

    emit("artifact.created", {
        "file_path": str(output_path),
        "file_type": "screenshot",
        "metadata": {
            "width": image.width,
            "height": image.height,
            "format": image_format(output_path),
            "timestamp": result.timestamp,
        },
    })
    log.info("Screenshot saved: %s", output_path)

    return result


def save_fresh_capture(config: Config) -> OutputResult:
    """Capture the whole desktop right now and save it.

    Raises:
        SaveError: If the capture or the write fails
    """
    try:
        image = capture_all(config)
    except CaptureError as e:
        raise SaveError(f"Fresh capture failed: {e}")
    return save(image, config.save_dir, config.save_name)

"""Screen capture through the wayland-capture binary.

Each capture goes through a temporary PNG that is decoded into a
CapturedImage and removed before returning, on success or failure.
"""

import json
import logging
import subprocess
import tempfile
from pathlib import Path

from .config import Config
from .image import CapturedImage, load_image

log = logging.getLogger(__name__)

CAPTURE_TIMEOUT = 10


class CaptureError(Exception):
    """Raised when capture fails."""
    pass


def list_outputs(config: Config) -> list[dict]:
    """List all available outputs.

    Returns:
        List of output dicts with keys: name, description, width, height, x, y
    """
    try:
        result = subprocess.run(
            [config.wayland_capture, "--list", "--json"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0:
            data = json.loads(result.stdout)
            return data.get("outputs", [])
        log.warning("Could not list outputs: %s", result.stderr.strip())
    except (OSError, subprocess.TimeoutExpired, ValueError) as e:
        log.warning("Could not list outputs: %s", e)
    return []


def _run_capture(config: Config, args: list[str], what: str) -> CapturedImage:
    tmp = tempfile.NamedTemporaryFile(suffix=".png", delete=False)
    temp_path = Path(tmp.name)
    tmp.close()

    try:
        try:
            result = subprocess.run(
                [config.wayland_capture, *args, "--output-file", str(temp_path)],
                capture_output=True,
                text=True,
                timeout=CAPTURE_TIMEOUT,
            )
        except subprocess.TimeoutExpired:
            raise CaptureError(f"{what} capture timed out")
        except FileNotFoundError:
            raise CaptureError(f"wayland-capture not found: {config.wayland_capture}")

        if result.returncode != 0:
            raise CaptureError(f"{what} capture failed: {result.stderr.strip()}")

        try:
            image = load_image(temp_path)
        except ValueError as e:
            raise CaptureError(f"{what} capture returned a malformed frame: {e}")
    finally:
        temp_path.unlink(missing_ok=True)

    log.debug("%s captured: %dx%d", what, image.width, image.height)
    return image


def capture(output_index: int, config: Config) -> CapturedImage:
    """Capture a single output by its index in the compositor's output list.

    Raises:
        CaptureError: If the index is out of range or capture fails
    """
    outputs = list_outputs(config)
    if not outputs:
        raise CaptureError(
            f"No outputs reported by the compositor (is {config.wayland_capture} available?)"
        )
    if not 0 <= output_index < len(outputs):
        raise CaptureError(
            f"Output index {output_index} out of range ({len(outputs)} outputs available)"
        )

    name = outputs[output_index].get("name")
    if not name:
        raise CaptureError(f"Output {output_index} has no name")

    return _run_capture(config, ["--output", name], f"Output {name}")


def capture_all(config: Config) -> CapturedImage:
    """Capture the whole desktop as one composited frame.

    Raises:
        CaptureError: If capture fails
    """
    return _run_capture(config, [], "Desktop")

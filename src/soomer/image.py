"""In-memory captured image and its pixel conversions.

GdkPixbuf and cairo are imported lazily so the viewport engine, dispatcher
and loop can be used without a GTK installation.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

log = logging.getLogger(__name__)

BYTES_PER_PIXEL = 4


def _gdk_pixbuf():
    import gi
    gi.require_version("GdkPixbuf", "2.0")
    from gi.repository import GdkPixbuf
    return GdkPixbuf


@dataclass(frozen=True)
class CapturedImage:
    """A still RGBA frame, row-major, no row padding."""

    width: int
    height: int
    pixels: bytes

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Invalid image size {self.width}x{self.height}")
        expected = self.width * self.height * BYTES_PER_PIXEL
        if len(self.pixels) != expected:
            raise ValueError(
                f"Pixel buffer is {len(self.pixels)} bytes, expected {expected} "
                f"for {self.width}x{self.height} RGBA"
            )

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)


def pack_rows(data: bytes, width: int, height: int, rowstride: int, channels: int = 4) -> bytes:
    """Strip rowstride padding from a pixel buffer.

    The last row of a GdkPixbuf buffer is not padded, so only the first
    ``width * channels`` bytes of each row are read.
    """
    row_len = width * channels
    if rowstride < row_len:
        raise ValueError(f"rowstride {rowstride} shorter than row length {row_len}")
    if len(data) < rowstride * (height - 1) + row_len:
        raise ValueError("Pixel buffer too short for the given geometry")
    if rowstride == row_len:
        return bytes(data[:row_len * height])
    return b"".join(
        data[row * rowstride:row * rowstride + row_len] for row in range(height)
    )


def from_pixbuf(pixbuf) -> CapturedImage:
    """Convert a GdkPixbuf to a CapturedImage, adding alpha if missing."""
    if not pixbuf.get_has_alpha():
        pixbuf = pixbuf.add_alpha(False, 0, 0, 0)
    width = pixbuf.get_width()
    height = pixbuf.get_height()
    data = pixbuf.read_pixel_bytes().get_data()
    pixels = pack_rows(data, width, height, pixbuf.get_rowstride(), pixbuf.get_n_channels())
    return CapturedImage(width=width, height=height, pixels=pixels)


def load_image(path: Path) -> CapturedImage:
    """Decode an image file into a CapturedImage.

    Raises:
        ValueError: If the file cannot be decoded
    """
    GdkPixbuf = _gdk_pixbuf()
    from gi.repository import GLib

    try:
        pixbuf = GdkPixbuf.Pixbuf.new_from_file(str(path))
    except GLib.Error as e:
        raise ValueError(f"Could not decode {path}: {e.message}")
    image = from_pixbuf(pixbuf)
    log.debug("Loaded %s: %dx%d", path, image.width, image.height)
    return image


def to_pixbuf(image: CapturedImage):
    """Wrap a CapturedImage in a GdkPixbuf without copying rows."""
    GdkPixbuf = _gdk_pixbuf()
    from gi.repository import GLib

    return GdkPixbuf.Pixbuf.new_from_bytes(
        GLib.Bytes.new(image.pixels),
        GdkPixbuf.Colorspace.RGB,
        True,
        8,
        image.width,
        image.height,
        image.width * BYTES_PER_PIXEL,
    )


@contextmanager
def surface_for(image: CapturedImage):
    """Yield a cairo surface holding the image, finished on exit.

    cairo wants premultiplied native-endian ARGB; the reorder happens here,
    once, instead of on every draw.
    """
    import gi
    gi.require_version("Gdk", "3.0")
    from gi.repository import Gdk

    surface = Gdk.cairo_surface_create_from_pixbuf(to_pixbuf(image), 1, None)
    try:
        yield surface
    finally:
        surface.finish()

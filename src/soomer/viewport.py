"""Pan/zoom state for the frozen frame.

Every field that the user moves has a current value (what is drawn this
frame) and a target value (where it is easing toward). Input only touches
the targets; advance() moves the current values one smoothing step closer.
A smoothing factor of 1.0 snaps to the target in one step.
"""

from dataclasses import dataclass, fields


def lerp(start: float, end: float, t: float) -> float:
    """Linear interpolation from start toward end by fraction t."""
    return start + (end - start) * t


def clamp(value: float, min_val: float, max_val: float) -> float:
    return max(min_val, min(max_val, value))


@dataclass
class ViewportState:
    """Position and scale of the image on screen, plus drag/cursor state."""

    # Top-left draw offset in screen pixels
    x: float = 0.0
    y: float = 0.0
    target_x: float = 0.0
    target_y: float = 0.0

    scale: float = 1.0
    target_scale: float = 1.0

    dragging: bool = False
    # Cursor minus image position when the drag started
    anchor_x: float = 0.0
    anchor_y: float = 0.0

    # Last known cursor position, used as the zoom pivot
    cursor_x: float = 0.0
    cursor_y: float = 0.0

    @property
    def position(self) -> tuple[float, float]:
        return (self.x, self.y)

    @property
    def target_position(self) -> tuple[float, float]:
        return (self.target_x, self.target_y)

    @property
    def cursor(self) -> tuple[float, float]:
        return (self.cursor_x, self.cursor_y)

    def begin_drag(self, cursor_x: float, cursor_y: float) -> None:
        self.dragging = True
        self.anchor_x = cursor_x - self.x
        self.anchor_y = cursor_y - self.y

    def end_drag(self) -> None:
        self.dragging = False

    def on_motion(self, cursor_x: float, cursor_y: float) -> None:
        self.cursor_x = cursor_x
        self.cursor_y = cursor_y
        if self.dragging:
            self.target_x = cursor_x - self.anchor_x
            self.target_y = cursor_y - self.anchor_y

    def on_zoom(self, direction: int, factor: float, min_scale: float, max_scale: float) -> None:
        """Zoom in (+1) or out (-1) keeping the image point under the cursor fixed.

        Works on the target values so that several scroll events in a row
        compose exactly, whatever the easing has caught up to.
        """
        rel_x = (self.cursor_x - self.target_x) / self.target_scale
        rel_y = (self.cursor_y - self.target_y) / self.target_scale

        if direction > 0:
            self.target_scale *= factor
        elif direction < 0:
            self.target_scale /= factor
        self.target_scale = clamp(self.target_scale, min_scale, max_scale)

        self.target_x = self.cursor_x - rel_x * self.target_scale
        self.target_y = self.cursor_y - rel_y * self.target_scale

    def reset(self) -> None:
        """Return every field to its construction default."""
        for f in fields(self):
            setattr(self, f.name, f.default)

    def reset_scale(self, image_width: int, image_height: int) -> None:
        """Ease back to scale 1.0 around the image's current on-screen center."""
        center_x, center_y = self.visual_center(image_width, image_height)
        self.target_scale = 1.0
        self.target_x = center_x - image_width / 2
        self.target_y = center_y - image_height / 2

    def advance(self, smoothing_factor: float) -> None:
        self.scale = lerp(self.scale, self.target_scale, smoothing_factor)
        self.x = lerp(self.x, self.target_x, smoothing_factor)
        self.y = lerp(self.y, self.target_y, smoothing_factor)

    def clamp_to_bounds(
        self,
        image_width: int,
        image_height: int,
        viewport_width: int,
        viewport_height: int,
    ) -> None:
        """Center the image on each axis where it is smaller than the viewport.

        Only the current position is overwritten, so once the image grows
        past the viewport again the drag target takes over unchanged.
        """
        drawn_width = image_width * self.scale
        drawn_height = image_height * self.scale
        if drawn_width < viewport_width:
            self.x = (viewport_width - drawn_width) / 2
        if drawn_height < viewport_height:
            self.y = (viewport_height - drawn_height) / 2

    def visual_center(
        self,
        image_width: int,
        image_height: int,
        use_target: bool = False,
    ) -> tuple[float, float]:
        if use_target:
            x, y, scale = self.target_x, self.target_y, self.target_scale
        else:
            x, y, scale = self.x, self.y, self.scale
        return (x + image_width * scale / 2, y + image_height * scale / 2)

    def dest_rect(self, image_width: int, image_height: int) -> tuple[int, int, int, int]:
        """Integer (x, y, width, height) to draw the image into."""
        return (
            int(self.x),
            int(self.y),
            int(image_width * self.scale),
            int(image_height * self.scale),
        )

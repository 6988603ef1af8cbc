"""Full-screen GTK window that shows the frozen frame."""

import logging
import sys
from typing import Optional

import cairo
import gi
gi.require_version("Gtk", "3.0")
gi.require_version("Gdk", "3.0")
from gi.repository import Gtk, Gdk, GLib

from ..config import Config
from ..events import (
    Action,
    ButtonPress,
    ButtonRelease,
    InputEvent,
    KeyAction,
    Motion,
    Scroll,
)
from ..image import CapturedImage, surface_for
from ..loop import Viewer

log = logging.getLogger(__name__)

KEY_BINDINGS = {
    Gdk.KEY_Escape: Action.QUIT,
    Gdk.KEY_q: Action.QUIT,
    Gdk.KEY_r: Action.RESET_VIEW,
    Gdk.KEY_c: Action.RESET_SCALE,
    Gdk.KEY_s: Action.SAVE_CURRENT,
    Gdk.KEY_e: Action.SAVE_FRESH,
}


class DisplayError(Exception):
    """Raised when no window can be shown."""
    pass


def _pump():
    while Gtk.events_pending():
        Gtk.main_iteration_do(False)


class ViewerWindow(Gtk.Window):
    """Collects input as event records and draws the image where it is told.

    The window never runs Gtk.main(); the render loop pumps pending GTK
    events itself at the start of each frame.
    """

    def __init__(self, surface, image_width: int, image_height: int):
        super().__init__(title="Soomer")
        self.surface = surface
        self.img_width = image_width
        self.img_height = image_height

        self._events: list[InputEvent] = []
        self._closed = False
        self._bg = (0.0, 0.0, 0.0, 1.0)
        self._rect: Optional[tuple[int, int, int, int]] = None

        self.set_decorated(False)
        self.set_keep_above(True)
        self.set_default_size(image_width, image_height)

        self.drawing_area = Gtk.DrawingArea()
        self.drawing_area.connect("draw", self._on_draw)
        self.add(self.drawing_area)

        self.drawing_area.set_events(
            Gdk.EventMask.BUTTON_PRESS_MASK
            | Gdk.EventMask.BUTTON_RELEASE_MASK
            | Gdk.EventMask.POINTER_MOTION_MASK
            | Gdk.EventMask.SCROLL_MASK
            | Gdk.EventMask.SMOOTH_SCROLL_MASK
            | Gdk.EventMask.KEY_PRESS_MASK
        )

        self.drawing_area.connect("button-press-event", self._on_button_press)
        self.drawing_area.connect("button-release-event", self._on_button_release)
        self.drawing_area.connect("motion-notify-event", self._on_motion)
        self.drawing_area.connect("scroll-event", self._on_scroll)
        self.connect("key-press-event", self._on_key_press)
        self.connect("delete-event", self._on_delete)

        self.drawing_area.set_can_focus(True)
        self.drawing_area.grab_focus()

        self.fullscreen()
        self.show_all()

    # Renderer interface

    def poll(self) -> list[InputEvent]:
        """Run pending GTK callbacks and hand over the queued events."""
        _pump()
        events, self._events = self._events, []
        if self._closed:
            events.append(KeyAction(Action.QUIT))
        return events

    def viewport_size(self) -> Optional[tuple[int, int]]:
        if not self.drawing_area.get_realized():
            return None
        return (
            self.drawing_area.get_allocated_width(),
            self.drawing_area.get_allocated_height(),
        )

    def render(self, bg, rect) -> None:
        self._bg = bg
        self._rect = rect
        self.drawing_area.queue_draw()
        _pump()

    # GTK callbacks

    def _on_draw(self, widget, cr):
        cr.set_source_rgba(*self._bg)
        cr.set_operator(cairo.OPERATOR_SOURCE)
        cr.paint()
        cr.set_operator(cairo.OPERATOR_OVER)

        if self._rect is None:
            return False
        x, y, w, h = self._rect
        if w <= 0 or h <= 0:
            return False

        cr.save()
        cr.translate(x, y)
        cr.scale(w / self.img_width, h / self.img_height)
        cr.set_source_surface(self.surface, 0, 0)
        # Sharp pixels when magnifying, smooth when shrinking
        if w >= self.img_width:
            cr.get_source().set_filter(cairo.FILTER_NEAREST)
        else:
            cr.get_source().set_filter(cairo.FILTER_GOOD)
        cr.paint()
        cr.restore()
        return False

    def _on_button_press(self, widget, event):
        if event.type == Gdk.EventType.BUTTON_PRESS:
            self._events.append(ButtonPress(event.button, event.x, event.y))
        return True

    def _on_button_release(self, widget, event):
        self._events.append(ButtonRelease(event.button))
        return True

    def _on_motion(self, widget, event):
        self._events.append(Motion(event.x, event.y))
        return True

    def _on_scroll(self, widget, event):
        direction = 0
        if event.direction == Gdk.ScrollDirection.UP:
            direction = 1
        elif event.direction == Gdk.ScrollDirection.DOWN:
            direction = -1
        elif event.direction == Gdk.ScrollDirection.SMOOTH:
            ok, _dx, dy = event.get_scroll_deltas()
            if ok and dy:
                direction = -1 if dy > 0 else 1
        if direction:
            self._events.append(Scroll(direction))
        return True

    def _on_key_press(self, widget, event):
        action = KEY_BINDINGS.get(Gdk.keyval_to_lower(event.keyval))
        if action is not None:
            self._events.append(KeyAction(action))
        return True

    def _on_delete(self, widget, event):
        self._closed = True
        return True


def run_viewer(config: Config, image: CapturedImage) -> int:
    """Show the image full-screen and run the render loop until quit.

    Raises:
        DisplayError: If GTK cannot open a display

    Returns:
        Exit code (0 for success)
    """
    GLib.set_prgname("soomer")
    GLib.set_application_name("Soomer")

    ok, _ = Gtk.init_check(sys.argv)
    if not ok:
        raise DisplayError("Could not open a display")

    with surface_for(image) as surface:
        window = ViewerWindow(surface, image.width, image.height)
        try:
            viewer = Viewer(config, image)
            viewer.run(window.poll, window)
        finally:
            window.destroy()
            _pump()

    return 0

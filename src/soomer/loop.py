"""Fixed-cadence render/update loop.

Per frame, in order:
1. Drain and dispatch pending input events
2. Advance the viewport one smoothing step
3. Clear to the background color, draw the image, present
4. Sleep for the frame interval

The window layer supplies the event source and the renderer, so the same
loop drives GTK and the tests.
"""

import logging
import time
from typing import Callable, Optional, Protocol, Sequence

from .config import Config
from .dispatch import Dispatcher
from .events import InputEvent
from .image import CapturedImage
from .viewport import ViewportState

log = logging.getLogger(__name__)


class Renderer(Protocol):
    def viewport_size(self) -> Optional[tuple[int, int]]:
        """Drawable size in pixels, or None before the window is mapped."""

    def render(self, bg: tuple[float, float, float, float], rect: tuple[int, int, int, int]) -> None:
        """Clear to ``bg``, draw the image into ``rect`` and present."""


class Viewer:
    """Owns the viewport state for one session and steps it frame by frame."""

    def __init__(
        self,
        config: Config,
        image: CapturedImage,
        dispatcher: Optional[Dispatcher] = None,
    ):
        self.config = config
        self.image = image
        self.dispatcher = dispatcher or Dispatcher(config, image, ViewportState())
        self.state = self.dispatcher.state
        self.frames = 0

    def update(self, events: Sequence[InputEvent], viewport_size: Optional[tuple[int, int]] = None) -> bool:
        """Dispatch events and advance the view. Returns False on quit."""
        if not self.dispatcher.dispatch(events):
            return False

        self.state.advance(self.config.smoothing_factor)
        if self.config.center_small_image and viewport_size:
            self.state.clamp_to_bounds(self.image.width, self.image.height, *viewport_size)
        return True

    def frame(self, events: Sequence[InputEvent], renderer: Renderer) -> bool:
        if not self.update(events, renderer.viewport_size()):
            return False
        renderer.render(
            self.config.bg.as_floats(),
            self.state.dest_rect(self.image.width, self.image.height),
        )
        self.frames += 1
        return True

    def run(
        self,
        poll: Callable[[], Sequence[InputEvent]],
        renderer: Renderer,
        sleep: Callable[[float], None] = time.sleep,
    ) -> int:
        """Run frames until a quit action arrives.

        Returns:
            Number of frames rendered
        """
        interval = self.config.frame_interval
        log.debug("Render loop started, %.1f ms per frame", interval * 1000)
        while self.frame(poll(), renderer):
            sleep(interval)
        log.debug("Render loop stopped after %d frames", self.frames)
        return self.frames

"""Maps input events to viewport and save operations."""

import logging
from typing import Callable, Iterable, Optional

from .config import Config
from .emit import emit_error
from .events import (
    LEFT_BUTTON,
    Action,
    ButtonPress,
    ButtonRelease,
    InputEvent,
    KeyAction,
    Motion,
    Scroll,
)
from .image import CapturedImage
from .output import OutputResult, SaveError, save, save_fresh_capture
from .viewport import ViewportState

log = logging.getLogger(__name__)


def coalesce_motion(events: Iterable[InputEvent]) -> list[InputEvent]:
    """Collapse each run of consecutive Motion events into its last one.

    Motion on either side of a button event is kept, so drags still start and
    end at the right place.
    """
    result: list[InputEvent] = []
    for event in events:
        if isinstance(event, Motion) and result and isinstance(result[-1], Motion):
            result[-1] = event
        else:
            result.append(event)
    return result


class Dispatcher:
    """Applies a frame's worth of input events to a ViewportState."""

    def __init__(
        self,
        config: Config,
        image: CapturedImage,
        state: ViewportState,
        fresh_saver: Callable[[Config], OutputResult] = save_fresh_capture,
    ):
        self.config = config
        self.image = image
        self.state = state
        self._fresh_saver = fresh_saver
        self.last_save: Optional[OutputResult] = None
        self.last_error: Optional[str] = None

    def dispatch(self, events: Iterable[InputEvent]) -> bool:
        """Handle events in arrival order.

        Returns:
            False once a quit action is seen, True otherwise
        """
        for event in coalesce_motion(events):
            if not self.handle(event):
                return False
        return True

    def handle(self, event: InputEvent) -> bool:
        state = self.state

        if isinstance(event, KeyAction):
            return self._handle_action(event.action)

        if isinstance(event, ButtonPress):
            if event.button == LEFT_BUTTON:
                state.begin_drag(event.x, event.y)
        elif isinstance(event, ButtonRelease):
            if event.button == LEFT_BUTTON:
                state.end_drag()
        elif isinstance(event, Motion):
            state.on_motion(event.x, event.y)
        elif isinstance(event, Scroll):
            state.on_zoom(
                event.direction,
                self.config.zoom_factor,
                self.config.scale_min,
                self.config.scale_max,
            )
        else:
            log.debug("Ignoring unknown event %r", event)
        return True

    def _handle_action(self, action: Action) -> bool:
        if action is Action.QUIT:
            log.debug("Quit requested")
            return False

        if action is Action.RESET_VIEW:
            self.state.reset()
        elif action is Action.RESET_SCALE:
            self.state.reset_scale(self.image.width, self.image.height)
        elif action is Action.SAVE_CURRENT:
            self._save(action, lambda: save(self.image, self.config.save_dir, self.config.save_name))
        elif action is Action.SAVE_FRESH:
            self._save(action, lambda: self._fresh_saver(self.config))
        return True

    def _save(self, action: Action, do_save: Callable[[], OutputResult]) -> None:
        try:
            self.last_save = do_save()
            self.last_error = None
        except SaveError as e:
            self.last_error = str(e)
            emit_error(e, action.value)
            log.error("Save failed: %s", e)

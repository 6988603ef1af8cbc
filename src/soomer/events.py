"""Input event records delivered to the dispatcher.

The window layer translates toolkit events into these records; keys are
already resolved to logical actions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union

LEFT_BUTTON = 1


class Action(Enum):
    QUIT = "quit"
    RESET_VIEW = "reset-view"
    RESET_SCALE = "reset-scale"
    SAVE_CURRENT = "save-current"
    SAVE_FRESH = "save-fresh-capture"


@dataclass(frozen=True)
class KeyAction:
    action: Action


@dataclass(frozen=True)
class ButtonPress:
    button: int
    x: float
    y: float


@dataclass(frozen=True)
class ButtonRelease:
    button: int


@dataclass(frozen=True)
class Motion:
    x: float
    y: float


@dataclass(frozen=True)
class Scroll:
    direction: int  # +1 zoom in, -1 zoom out


InputEvent = Union[KeyAction, ButtonPress, ButtonRelease, Motion, Scroll]

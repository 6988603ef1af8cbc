import pytest

from soomer.config import BgColor, Config
from soomer.events import Action, ButtonPress, KeyAction, Motion, Scroll
from soomer.image import CapturedImage
from soomer.loop import Viewer


class _FakeRenderer:
    def __init__(self, size=None):
        self.size = size
        self.frames: list[tuple] = []

    def viewport_size(self):
        return self.size

    def render(self, bg, rect):
        self.frames.append((bg, rect))


def _scripted(batches):
    batches = list(batches)

    def poll():
        return batches.pop(0) if batches else [KeyAction(Action.QUIT)]

    return poll


def _image(width=100, height=50):
    return CapturedImage(width=width, height=height, pixels=bytes(width * height * 4))


def test_run_renders_until_quit_and_sleeps_between_frames():
    config = Config(frame_delay_ms=60)
    viewer = Viewer(config, _image())
    renderer = _FakeRenderer()
    sleeps = []

    frames = viewer.run(_scripted([[], [], []]), renderer, sleep=sleeps.append)

    assert frames == 3
    assert len(renderer.frames) == 3
    assert sleeps == [pytest.approx(0.015)] * 3


def test_quit_in_first_batch_renders_nothing():
    viewer = Viewer(Config(), _image())
    renderer = _FakeRenderer()

    frames = viewer.run(_scripted([[KeyAction(Action.QUIT)]]), renderer, sleep=lambda _: None)

    assert frames == 0
    assert renderer.frames == []


def test_frame_dispatches_before_advancing():
    config = Config(smoothing_factor=1.0, bg=BgColor(255, 0, 0, 255))
    viewer = Viewer(config, _image())
    renderer = _FakeRenderer()

    viewer.frame([ButtonPress(1, 50, 50), Motion(80, 70)], renderer)

    bg, rect = renderer.frames[-1]
    assert bg == (1.0, 0.0, 0.0, 1.0)
    assert rect == (30, 20, 100, 50)


def test_smoothing_eases_over_several_frames():
    config = Config(smoothing_factor=0.5)
    viewer = Viewer(config, _image())
    renderer = _FakeRenderer()

    viewer.frame([Motion(0, 0), Scroll(1)], renderer)
    first = viewer.state.scale
    viewer.frame([], renderer)
    second = viewer.state.scale

    assert 1.0 < first < second < viewer.state.target_scale


def test_small_image_is_centered_when_enabled():
    config = Config(smoothing_factor=1.0, center_small_image=True)
    viewer = Viewer(config, _image(100, 50))
    renderer = _FakeRenderer(size=(300, 30))

    viewer.frame([], renderer)

    _, rect = renderer.frames[-1]
    assert rect == (100, 0, 100, 50)


def test_small_image_is_not_centered_by_default():
    viewer = Viewer(Config(smoothing_factor=1.0), _image(100, 50))
    renderer = _FakeRenderer(size=(300, 300))

    viewer.frame([], renderer)

    _, rect = renderer.frames[-1]
    assert rect == (0, 0, 100, 50)

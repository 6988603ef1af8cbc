from pathlib import Path

import pytest

from soomer.config import (
    BgColor,
    Config,
    ConfigError,
    config_defaults,
    config_to_dict,
    load_config,
    validate_config_dict,
    validate_config_file,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    import os
    for name in list(os.environ):
        if name.startswith("SOOMER_"):
            monkeypatch.delenv(name)


def test_defaults_when_file_missing(tmp_path):
    config = load_config(config_path=tmp_path / "missing.yaml")

    assert config.bg == BgColor(10, 0, 15, 255)
    assert config.scale_min == 0.1
    assert config.scale_max == 10.0
    assert config.zoom_factor == 1.1
    assert config.smoothing_factor == 0.15
    assert config.frame_delay_ms == 60
    assert config.monitor_index == 0
    assert config.save_name == "screenshot.png"
    assert isinstance(config.save_dir, Path)


def test_defaults_are_valid():
    assert validate_config_dict(config_defaults()) == []


def test_file_values_override_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "bg: {r: 1, g: 2}\n"
        "zoom_factor: 1.5\n"
        "smoothing_factor: 1\n"
        "save_dir: ~/shots\n"
    )

    config = load_config(config_path=path)

    assert config.bg == BgColor(1, 2, 15, 255)
    assert config.zoom_factor == 1.5
    assert config.smoothing_factor == 1
    assert config.save_dir == Path("~/shots").expanduser()


def test_env_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("monitor_index: 2\n")
    monkeypatch.setenv("SOOMER_MONITOR_INDEX", "3")
    monkeypatch.setenv("SOOMER_CENTER_SMALL_IMAGE", "yes")

    config = load_config(config_path=path)

    assert config.monitor_index == 3
    assert config.center_small_image is True


def test_cli_overrides_win_and_none_is_ignored(tmp_path, monkeypatch):
    monkeypatch.setenv("SOOMER_MONITOR_INDEX", "3")

    assert load_config(tmp_path / "x.yaml", overrides={"monitor_index": 1}).monitor_index == 1
    assert load_config(tmp_path / "x.yaml", overrides={"monitor_index": None}).monitor_index == 3


def test_config_path_from_env(tmp_path, monkeypatch):
    path = tmp_path / "elsewhere.yaml"
    path.write_text("save_name: env.png\n")
    monkeypatch.setenv("SOOMER_CONFIG", str(path))

    assert load_config().save_name == "env.png"


def test_invalid_values_raise_config_error(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("zoom_factor: 0.9\nsmoothing_factor: 0\n")

    with pytest.raises(ConfigError) as excinfo:
        load_config(config_path=path)

    assert "zoom_factor must be > 1.0" in str(excinfo.value)
    assert "smoothing_factor must be in (0, 1]" in str(excinfo.value)


def test_unparseable_file_strict_vs_lenient(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("bg: [unclosed\n")

    with pytest.raises(ConfigError):
        load_config(config_path=path, strict=True)
    assert load_config(config_path=path).zoom_factor == 1.1


def test_validate_reports_every_problem():
    errors = validate_config_dict({
        "bg": {"r": 300, "x": 1},
        "scale_min": 5.0,
        "scale_max": 2.0,
        "frame_delay_ms": -1,
        "monitor_index": True,
        "save_name": "",
        "colour": "red",
    })

    assert "Unknown config key: colour" in errors
    assert "Unknown bg channel: x" in errors
    assert "bg.r must be an integer between 0 and 255" in errors
    assert "scale_min must be <= scale_max" in errors
    assert "frame_delay_ms must be >= 0" in errors
    assert "monitor_index must be an integer" in errors
    assert "save_name must not be empty" in errors


def test_validate_config_file(tmp_path):
    path = tmp_path / "config.yaml"
    assert validate_config_file(path) == []

    path.write_text("- just\n- a list\n")
    with pytest.raises(ConfigError):
        validate_config_file(path)

    path.write_text("scale_min: 0\n")
    assert validate_config_file(path) == ["scale_min must be > 0"]


def test_config_is_immutable():
    config = Config()
    with pytest.raises(AttributeError):
        config.scale_max = 3.0


def test_frame_interval_is_quarter_of_delay():
    assert Config(frame_delay_ms=60).frame_interval == pytest.approx(0.015)


def test_config_to_dict_round_trips(tmp_path):
    data = config_to_dict(Config(save_dir="/srv/shots", bg={"r": 1, "g": 2, "b": 3, "a": 4}))

    assert data["save_dir"] == "/srv/shots"
    assert data["bg"] == {"r": 1, "g": 2, "b": 3, "a": 4}
    assert validate_config_dict(data) == []
    assert Config(**data) == Config(save_dir=Path("/srv/shots"), bg=BgColor(1, 2, 3, 4))


@pytest.mark.parametrize("text", [
    "scale_min: .nan\nscale_max: .inf\n",
    "zoom_factor: .inf\n",
    "scale_max: -.inf\n",
    "smoothing_factor: .nan\n",
])
def test_non_finite_numbers_raise_config_error(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text)

    with pytest.raises(ConfigError, match="must be a finite number"):
        load_config(config_path=path, strict=True)


def test_non_finite_env_value_raises_config_error(tmp_path, monkeypatch):
    monkeypatch.setenv("SOOMER_SCALE_MIN", "nan")

    with pytest.raises(ConfigError, match="scale_min must be a finite number"):
        load_config(config_path=tmp_path / "missing.yaml")

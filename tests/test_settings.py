import json

import pytest

from image_toolkit import settings as settings_module
from image_toolkit.config import DEFAULT_SETTINGS
from image_toolkit.errors import InvalidConfiguration
from image_toolkit.settings import (
    aspect_key, find_preset, load_settings, normalize_ratio, output_size_for_aspect,
    validate_settings,
)


@pytest.fixture
def config_home(tmp_path, monkeypatch):
    monkeypatch.setattr(settings_module, "config_dir", lambda: tmp_path)
    return tmp_path


def _write(path, payload):
    path.write_text(json.dumps(payload), encoding="utf-8")


def test_missing_file_writes_defaults(config_home):
    loaded = load_settings()

    assert loaded == DEFAULT_SETTINGS
    on_disk = json.loads((config_home / "settings.json").read_text(encoding="utf-8"))
    assert on_disk == {"version": 1, "settings": DEFAULT_SETTINGS}


def test_corrupt_file_falls_back_to_defaults(config_home, caplog):
    (config_home / "settings.json").write_text("{not json", encoding="utf-8")

    assert load_settings() == DEFAULT_SETTINGS
    assert "restoring defaults" in caplog.text


def test_missing_envelope_falls_back_to_defaults(config_home):
    _write(config_home / "settings.json", {"output_width": 500})

    assert load_settings() == DEFAULT_SETTINGS


def test_partial_file_merges_over_defaults(config_home):
    _write(config_home / "settings.json",
           {"version": 1, "settings": {"output_width": 640, "shape": "circle", "max_zoom": None}})

    loaded = load_settings()

    assert loaded["output_width"] == 640
    assert loaded["shape"] == "circle"
    assert loaded["max_zoom"] is None
    assert loaded["output_height"] == DEFAULT_SETTINGS["output_height"]


def test_invalid_values_fall_back_to_defaults(config_home):
    _write(config_home / "settings.json", {"version": 1, "settings": {"output_width": -1}})

    assert load_settings() == DEFAULT_SETTINGS


def test_load_returns_independent_copy(config_home):
    loaded = load_settings()
    loaded["aspect_presets"].append({"name": "x", "ratio_w": 2, "ratio_h": 1})

    assert len(DEFAULT_SETTINGS["aspect_presets"]) == 3


def test_hand_edited_file_round_trips(config_home):
    data = dict(DEFAULT_SETTINGS, tolerance=80, scale_policy="contain")
    _write(config_home / "settings.json", {"version": 1, "settings": data})

    loaded = load_settings()

    assert loaded["tolerance"] == 80
    assert loaded["scale_policy"] == "contain"


@pytest.mark.parametrize("data, fragment", [
    ({"shape": "triangle"}, "shape"),
    ({"scale_policy": "stretch"}, "scale_policy"),
    ({"zoom_step": 1.5}, "zoom_step"),
    ({"wheel_step": 0}, "wheel_step"),
    ({"max_zoom": 0.5}, "max_zoom"),
    ({"tolerance": 500}, "tolerance"),
    ({"resize_percent": 0}, "resize_percent"),
    ({"output_width": True}, "output_width"),
    ({"aspect_presets": []}, "aspect_presets"),
    ({"aspect_presets": [{"name": "a"}]}, "missing keys"),
    ({"aspect_presets": [{"name": "a", "ratio_w": 16, "ratio_h": 9},
                         {"name": "b", "ratio_w": 32, "ratio_h": 18}]}, "duplicates"),
])
def test_validate_settings_reports_problems(data, fragment):
    errors = validate_settings(data)

    assert any(fragment in e for e in errors), errors


def test_validate_defaults_is_clean():
    assert validate_settings(DEFAULT_SETTINGS) == []
    assert validate_settings([]) == ["Settings data must be a dict"]


def test_aspect_helpers():
    assert normalize_ratio(1920, 1080) == (16, 9)
    assert aspect_key(8, 6) == "4:3"
    assert output_size_for_aspect(300, 16, 9) == (300, 169)
    assert output_size_for_aspect(300, 4, 3) == (300, 225)
    assert output_size_for_aspect(10, 4, 1) == (10, 3)
    with pytest.raises(InvalidConfiguration):
        output_size_for_aspect(0, 1, 1)


def test_find_preset():
    assert find_preset(DEFAULT_SETTINGS, "4:3")["ratio_h"] == 3
    with pytest.raises(InvalidConfiguration):
        find_preset(DEFAULT_SETTINGS, "21:9")

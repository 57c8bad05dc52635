import json

import pytest

from cartoniq.config import (CONFIG_ENV_VAR, DEFAULT_SETTINGS, GeometryConstants, load_settings,
                             settings_from_dict)
from cartoniq.dieline import generate_dieline
from cartoniq.errors import CartonIQError


def test_defaults():
    geometry = DEFAULT_SETTINGS.geometry
    assert geometry == GeometryConstants()
    assert geometry.glue_tab_width == 15.0
    assert geometry.default_bleed == 3.0
    assert DEFAULT_SETTINGS.print_profile.max_ink_coverage == 330.0


def test_overrides_reach_geometry():
    settings = settings_from_dict({"geometry": {"glue_tab_width": 12.0}})
    assert settings.style == DEFAULT_SETTINGS.style
    result = generate_dieline("gift", (120, 120, 40), settings=settings)
    assert result.flat_width == pytest.approx(2 * 40 + 2 * 120 + 2 * 12 + 6)


def test_die_only_style_variant():
    style = DEFAULT_SETTINGS.style
    assert style.die_only().valley_stroke == "#0000FF"
    assert style.valley_stroke != "#0000FF"


@pytest.mark.parametrize("data", [{"geometry": {"no_such_key": 1}}, {"colours": {}}])
def test_unknown_settings_rejected(data):
    with pytest.raises(CartonIQError):
        settings_from_dict(data)


def test_load_settings_from_file(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"style": {"safety_margin": 5.0}}), encoding="utf-8")
    settings = load_settings(str(path))
    assert settings.style.safety_margin == 5.0


def test_load_settings_from_environment(tmp_path, monkeypatch):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"print_profile": {"name": "GRACoL"}}), encoding="utf-8")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
    assert load_settings().print_profile.name == "GRACoL"


def test_load_settings_without_file(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    assert load_settings() is DEFAULT_SETTINGS


@pytest.mark.parametrize("content", ["{not json", "[1, 2]"])
def test_bad_settings_file(tmp_path, content):
    path = tmp_path / "settings.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(CartonIQError):
        load_settings(str(path))

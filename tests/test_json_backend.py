from __future__ import annotations

from pathlib import Path

import pytest

from pkgsettings.backends import get_backend_for_path
from pkgsettings.backends.json_backend import JsonBackend
from pkgsettings.backends.yaml_backend import YamlBackend
from pkgsettings.errors import SettingsLoadError


def test_json_backend_roundtrip():
    doc = {"primitives": [{"type": "float", "key": "x", "value": 0.5}], "strings": []}
    backend = JsonBackend()
    assert backend.loads(backend.dumps(doc)) == doc


def test_pretty_printed():
    text = JsonBackend().dumps({"strings": [{"key": "a", "value": "é"}]})
    assert text.endswith("\n")
    assert '\n    "strings"' in text
    assert "é" in text


def test_empty_text():
    assert JsonBackend().loads("") == {}
    assert JsonBackend().loads("  \n") == {}


def test_invalid_json():
    with pytest.raises(SettingsLoadError):
        JsonBackend().loads("{ invalid")


def test_root_must_be_object():
    with pytest.raises(SettingsLoadError):
        JsonBackend().loads("[1, 2]")


def test_backend_for_path():
    assert isinstance(get_backend_for_path(Path("Settings.json")), JsonBackend)
    assert isinstance(get_backend_for_path(Path("Settings.YML")), YamlBackend)
    assert isinstance(get_backend_for_path(Path("Settings")), JsonBackend)
    with pytest.raises(ValueError):
        get_backend_for_path(Path("Settings.toml"))

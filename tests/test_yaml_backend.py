from __future__ import annotations

import pytest

from pkgsettings.backends.yaml_backend import YamlBackend
from pkgsettings.errors import SettingsLoadError


def require_pyyaml():
    try:
        import yaml  # type: ignore  # noqa: F401
    except ModuleNotFoundError:
        pytest.skip("PyYAML not installed")


def test_yaml_backend_roundtrip():
    require_pyyaml()
    doc = {
        "primitives": [{"type": "float", "key": "volume", "value": 0.8}],
        "strings": [{"key": "name", "value": "Ünïcode"}],
        "objects": [{"type": "dict", "key": "layout", "value": {"a": [1, 2]}}],
    }
    backend = YamlBackend()
    assert backend.loads(backend.dumps(doc)) == doc


def test_keeps_bucket_order():
    require_pyyaml()
    text = YamlBackend().dumps({"primitives": [], "strings": [], "objects": []})
    assert text.index("primitives") < text.index("strings") < text.index("objects")


def test_empty_text():
    require_pyyaml()
    assert YamlBackend().loads("") == {}


def test_invalid_yaml():
    require_pyyaml()
    with pytest.raises(SettingsLoadError):
        YamlBackend().loads("[invalid")


def test_root_must_be_mapping():
    require_pyyaml()
    with pytest.raises(SettingsLoadError):
        YamlBackend().loads("- a\n- b\n")

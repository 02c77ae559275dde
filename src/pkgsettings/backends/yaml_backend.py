from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..errors import SettingsLoadError
from . import register_backend
from .base import BaseBackend


@register_backend
class YamlBackend(BaseBackend):
    """YAML documents."""

    suffixes = (".yaml", ".yml")

    def _require_yaml(self):
        try:
            import yaml  # type: ignore
        except ModuleNotFoundError as exc:
            raise SettingsLoadError("PyYAML is required for YAML settings files") from exc
        return yaml

    def loads(self, text: str) -> dict[str, Any]:
        yaml = self._require_yaml()
        if text.strip() == "":
            return {}
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as exc:
            raise SettingsLoadError(str(exc)) from exc
        if not isinstance(data, dict):
            raise SettingsLoadError("Root of a YAML settings file must be a mapping")
        return data

    def dumps(self, document: Mapping[str, Any]) -> str:
        yaml = self._require_yaml()
        return yaml.safe_dump(
            dict(document),
            sort_keys=False,
            allow_unicode=True,
            default_flow_style=False,
        )

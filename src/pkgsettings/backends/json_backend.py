from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from ..errors import SettingsLoadError
from . import register_backend
from .base import BaseBackend


@register_backend
class JsonBackend(BaseBackend):
    """Pretty-printed JSON documents."""

    suffixes = (".json",)
    indent = 4

    def loads(self, text: str) -> dict[str, Any]:
        if text.strip() == "":
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise SettingsLoadError(str(exc)) from exc
        if not isinstance(data, dict):
            raise SettingsLoadError("Root of a JSON settings file must be an object")
        return data

    def dumps(self, document: Mapping[str, Any]) -> str:
        return json.dumps(document, indent=self.indent, ensure_ascii=False) + "\n"

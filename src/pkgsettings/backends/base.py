from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any


class BaseBackend(ABC):
    """Converts a settings document to and from text."""

    suffixes: tuple[str, ...] = ()

    @abstractmethod
    def loads(self, text: str) -> dict[str, Any]:
        pass

    @abstractmethod
    def dumps(self, document: Mapping[str, Any]) -> str:
        pass

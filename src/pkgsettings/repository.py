from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, TypeVar, runtime_checkable

from .scopes import SettingsScope

T = TypeVar("T")


@runtime_checkable
class SettingsRepository(Protocol):
    """Protocol for anything that can hold typed settings.

    ``path`` is ``None`` for repositories that are not backed by a file.
    """

    @property
    def scope(self) -> SettingsScope: ...

    @property
    def name(self) -> str: ...

    @property
    def path(self) -> Path | None: ...

    def set(self, key: str, value: Any, *, value_type: type | None = None) -> None:
        """Store *value* under ``(value_type or type(value), key)``."""

    def get(self, key: str, value_type: type[T], fallback: T | None = None) -> T | None:
        """Return the value for ``(value_type, key)`` or *fallback*."""

    def contains_key(self, key: str, value_type: type) -> bool:
        """Return True if an entry for ``(value_type, key)`` exists."""

    def remove(self, key: str, value_type: type) -> None:
        """Delete the entry if present."""

    def save(self) -> None:
        """Persist pending changes."""


__all__ = ["SettingsRepository"]

from __future__ import annotations

from enum import Enum


class SettingsScope(str, Enum):
    """Where a setting lives.

    ``PROJECT`` settings are shared and committed with the project, ``USER``
    settings are local to the person working on it.
    """

    PROJECT = "project"
    USER = "user"

    def __str__(self) -> str:
        return self.value

from .errors import (
    PreferenceStoreError,
    SettingsError,
    SettingsLoadError,
    SettingsSerializationError,
)
from .file_repository import FileSettingsRepository
from .preferences import (
    IniPreferenceStore,
    KeyringPreferenceStore,
    MemoryPreferenceStore,
    PreferenceSettingsRepository,
    default_preference_store,
)
from .repository import SettingsRepository
from .scopes import SettingsScope
from .settings import Settings


__all__ = [
    "Settings",
    "SettingsScope",
    "SettingsRepository",
    "FileSettingsRepository",
    "PreferenceSettingsRepository",
    "MemoryPreferenceStore",
    "IniPreferenceStore",
    "KeyringPreferenceStore",
    "default_preference_store",
    "SettingsError",
    "SettingsLoadError",
    "SettingsSerializationError",
    "PreferenceStoreError",
]

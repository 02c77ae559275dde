class SettingsError(Exception):
    """Base class for pkgsettings errors."""


class SettingsLoadError(SettingsError):
    """Raised when a backend fails to parse a settings document."""


class SettingsSerializationError(SettingsError, TypeError):
    """Raised when a value cannot be represented in a settings document."""


class PreferenceStoreError(SettingsError):
    """Raised when a flat preference store cannot be read or written."""

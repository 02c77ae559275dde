from __future__ import annotations

import hashlib
import logging
import shutil
from pathlib import Path
from typing import Any, TypeVar

from .backends import get_backend_for_path
from .dictionary import SettingsDictionary
from .errors import SettingsLoadError
from .paths import (
    DEFAULT_SETTINGS_NAME,
    package_settings_path,
    project_user_settings_path,
)
from .scopes import SettingsScope
from .vcs import VersionControl

logger = logging.getLogger("pkgsettings.file_repository")

T = TypeVar("T")


def _fingerprint(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def _atomic_write(path: Path, text: str) -> None:
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        with tmp.open("w", encoding="utf-8", newline="") as fh:
            fh.write(text)
        tmp.replace(path)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise


class FileSettingsRepository:
    """Settings serialized to a single file.

    Nothing is read until the first accessor call.  :meth:`save` is cheap to
    call repeatedly: the file is only rewritten when the serialized text
    differs from what was last loaded or written.
    """

    def __init__(
        self,
        path: str | Path,
        scope: SettingsScope | str = SettingsScope.PROJECT,
        *,
        version_control: VersionControl | None = None,
    ) -> None:
        self._path = Path(path)
        self._scope = SettingsScope(scope)
        self._backend = get_backend_for_path(self._path)
        self._version_control = version_control
        self._dictionary = SettingsDictionary()
        self._fingerprint: str | None = None
        self.initialized = False

    @classmethod
    def for_package(
        cls,
        package: str,
        name: str = DEFAULT_SETTINGS_NAME,
        *,
        root: str | Path | None = None,
        version_control: VersionControl | None = None,
    ) -> FileSettingsRepository:
        """Project settings saved in ``ProjectSettings/Packages/<package>/<name>.json``."""
        path = package_settings_path(package, name, root=root)
        return cls(path, SettingsScope.PROJECT, version_control=version_control)

    @classmethod
    def for_project_user(
        cls,
        package: str,
        name: str = DEFAULT_SETTINGS_NAME,
        *,
        root: str | Path | None = None,
        version_control: VersionControl | None = None,
    ) -> FileSettingsRepository:
        """Per-project user settings saved in ``UserSettings/Packages/<package>/<name>.json``."""
        path = project_user_settings_path(package, name, root=root)
        return cls(path, SettingsScope.USER, version_control=version_control)

    @property
    def scope(self) -> SettingsScope:
        return self._scope

    @property
    def path(self) -> Path:
        return self._path

    @property
    def name(self) -> str:
        return self._path.stem

    def __repr__(self) -> str:
        return f"FileSettingsRepository({str(self._path)!r}, scope={self._scope.value!r})"

    # ----- loading -----

    def _init(self) -> None:
        if self.initialized:
            return
        self.initialized = True

        try:
            text = self._read_saved_text()
            if text is None:
                return
            self._dictionary = SettingsDictionary.from_document(self._backend.loads(text))
        except SettingsLoadError as exc:
            logger.warning("Could not load settings from %s: %s", self._path, exc)
            self._backup_unreadable()
            return
        self._fingerprint = _fingerprint(text)

    def _read_saved_text(self) -> str | None:
        """Return the saved text, ``None`` when there is no file.

        Raises :class:`SettingsLoadError` when the file exists but cannot be
        read or decoded.
        """
        if not self._path.is_file():
            return None
        try:
            return self._path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SettingsLoadError(f"Could not read {self._path}: {exc}") from exc

    def _saved_text_is(self, text: str) -> bool:
        try:
            return self._read_saved_text() == text
        except SettingsLoadError:
            return False

    def _backup_unreadable(self) -> None:
        backup = self._path.with_name(self._path.name + ".bak")
        try:
            shutil.copyfile(self._path, backup)
        except OSError as exc:
            logger.warning("Could not back up %s: %s", self._path, exc)
        else:
            logger.warning("Unreadable settings file copied to %s", backup)

    # ----- saving -----

    def save(self) -> None:
        self._init()

        if not self._path.name:
            logger.error(
                "Settings file %r is saved to an invalid path: %s. Settings will not be saved.",
                self.name,
                self._path,
            )
            return

        text = self._backend.dumps(self._dictionary.to_document())
        fingerprint = _fingerprint(text)

        # A fingerprint match alone is not proof; compare the saved contents too.
        if fingerprint == self._fingerprint and self._saved_text_is(text):
            logger.debug("Settings file %s is up to date", self._path)
            return

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.warning("Could not create directory for %s: %s", self._path, exc)
            return

        vcs = self._version_control
        if vcs is not None and self._path.exists() and not vcs.is_open_for_edit(self._path):
            if not vcs.make_editable(self._path):
                logger.warning("Could not save package settings to %s", self._path)
                return

        try:
            _atomic_write(self._path, text)
        except OSError as exc:
            logger.warning("Could not save package settings to %s: %s", self._path, exc)
            return
        self._fingerprint = fingerprint

    # ----- typed access -----

    def set(self, key: str, value: Any, *, value_type: type | None = None) -> None:
        self._init()
        self._dictionary.set(key, value, value_type)

    def get(self, key: str, value_type: type[T], fallback: T | None = None) -> T | None:
        self._init()
        return self._dictionary.get(key, value_type, fallback)

    def contains_key(self, key: str, value_type: type) -> bool:
        self._init()
        return self._dictionary.contains_key(key, value_type)

    def remove(self, key: str, value_type: type) -> None:
        self._init()
        self._dictionary.remove(key, value_type)


__all__ = ["FileSettingsRepository"]

"""Flat preference stores and the repository that writes through to them."""
from __future__ import annotations

import configparser
import json
import logging
import os
from collections.abc import MutableMapping
from pathlib import Path
from typing import Any, Protocol, TypeVar
from urllib.parse import quote, unquote

from .errors import PreferenceStoreError
from .paths import user_config_dir
from .scopes import SettingsScope
from .values import ValueCodec, find_codec, resolve_codec

logger = logging.getLogger("pkgsettings.preferences")

T = TypeVar("T")

DEFAULT_NAMESPACE = "pkgsettings"
KEY_SEPARATOR = "::"


class PreferenceStore(Protocol):
    """Protocol for host-wide flat key/value preference services."""

    def get_value(self, key: str) -> str | None:
        """Return the raw value under *key*, ``None`` if absent.

        Raises :class:`PreferenceStoreError` when the service cannot be read.
        """

    def set_value(self, key: str, raw: str) -> None:
        """Persist *raw* under *key* or raise :class:`PreferenceStoreError`."""

    def delete_value(self, key: str) -> None:
        """Remove *key*; absent keys are ignored."""


class MemoryPreferenceStore:
    """Preferences held in a dict for the lifetime of the process."""

    def __init__(self, values: MutableMapping[str, str] | None = None) -> None:
        self.values: MutableMapping[str, str] = {} if values is None else values

    def get_value(self, key: str) -> str | None:
        return self.values.get(key)

    def set_value(self, key: str, raw: str) -> None:
        self.values[key] = raw

    def delete_value(self, key: str) -> None:
        self.values.pop(key, None)


class IniPreferenceStore:
    """Preferences kept in one section of an INI file.

    The file is read once on first access and rewritten on every change.
    Keys are percent-quoted so any string survives the INI syntax.
    """

    section = "preferences"

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else user_config_dir() / "preferences.ini"
        self._values: dict[str, str] | None = None

    def _parser(self) -> configparser.ConfigParser:
        parser = configparser.ConfigParser(
            delimiters=("=",), interpolation=None, strict=False
        )
        parser.optionxform = str  # type: ignore[assignment]
        return parser

    def _load(self) -> dict[str, str]:
        if self._values is not None:
            return self._values
        values: dict[str, str] = {}
        if self.path.exists():
            parser = self._parser()
            try:
                parser.read(self.path, encoding="utf-8")
            except (OSError, configparser.Error) as exc:
                logger.warning("Failed to read preferences %s: %s", self.path, exc)
            else:
                if parser.has_section(self.section):
                    for k, v in parser.items(self.section):
                        values[unquote(k)] = v
        self._values = values
        return values

    def _write(self, values: dict[str, str]) -> None:
        parser = self._parser()
        parser.add_section(self.section)
        for key in sorted(values):
            parser.set(self.section, quote(key, safe=":/"), values[key])
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PreferenceStoreError(f"Could not create {self.path.parent}: {exc}") from exc
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            with tmp.open("w", encoding="utf-8") as fh:
                parser.write(fh)
            tmp.replace(self.path)
        except OSError as exc:
            tmp.unlink(missing_ok=True)
            raise PreferenceStoreError(f"Could not write {self.path}: {exc}") from exc

    def get_value(self, key: str) -> str | None:
        return self._load().get(key)

    def set_value(self, key: str, raw: str) -> None:
        values = dict(self._load())
        values[key] = raw
        self._write(values)
        self._values = values

    def delete_value(self, key: str) -> None:
        values = dict(self._load())
        if values.pop(key, None) is None:
            return
        self._write(values)
        self._values = values


class KeyringPreferenceStore:
    """Preferences stored via the system keyring."""

    def __init__(self, service: str = DEFAULT_NAMESPACE) -> None:
        self.service = service
        try:
            import keyring  # type: ignore
            from keyring.backends import fail
            self._keyring = keyring
            self._fail = fail
        except Exception:  # pragma: no cover - keyring missing
            self._keyring = None
            self._fail = None

    def available(self) -> bool:
        if self._keyring is None:
            return False
        return not isinstance(self._keyring.get_keyring(), self._fail.Keyring)

    def get_value(self, key: str) -> str | None:
        if not self.available():
            return None
        try:
            return self._keyring.get_password(self.service, key)
        except Exception as exc:
            raise PreferenceStoreError(str(exc)) from exc

    def set_value(self, key: str, raw: str) -> None:
        if not self.available():
            raise PreferenceStoreError("Keyring backend unavailable")
        try:
            self._keyring.set_password(self.service, key, raw)
        except Exception as exc:
            raise PreferenceStoreError(str(exc)) from exc

    def delete_value(self, key: str) -> None:
        if not self.available() or self.get_value(key) is None:
            return
        try:
            self._keyring.delete_password(self.service, key)
        except Exception as exc:
            raise PreferenceStoreError(str(exc)) from exc


def default_preference_store(app_name: str = DEFAULT_NAMESPACE) -> PreferenceStore:
    """Return the store selected by ``PKGSETTINGS_PREFERENCES``.

    ``ini`` (the default) writes to ``preferences.ini`` in the user config
    directory, ``keyring`` uses the system keyring and ``memory`` keeps
    nothing past the process.
    """

    kind = os.getenv("PKGSETTINGS_PREFERENCES", "ini").strip().lower()
    if kind == "keyring":
        return KeyringPreferenceStore(app_name)
    if kind == "memory":
        return MemoryPreferenceStore()
    if kind != "ini":
        logger.warning("Unknown preference store %r, using ini", kind)
    return IniPreferenceStore(user_config_dir(app_name) / "preferences.ini")


class PreferenceSettingsRepository:
    """User settings written straight through to a flat preference store."""

    def __init__(
        self,
        store: PreferenceStore | None = None,
        *,
        namespace: str = DEFAULT_NAMESPACE,
        name: str = "Preferences",
    ) -> None:
        self.store = store if store is not None else default_preference_store()
        self.namespace = namespace
        self._name = name

    @property
    def scope(self) -> SettingsScope:
        return SettingsScope.USER

    @property
    def name(self) -> str:
        return self._name

    @property
    def path(self) -> None:
        return None

    def __repr__(self) -> str:
        return f"PreferenceSettingsRepository(namespace={self.namespace!r}, name={self._name!r})"

    def _store_key(self, type_key: str, key: str) -> str:
        return KEY_SEPARATOR.join((self.namespace, type_key, key))

    def _read(self, key: str, value_type: type) -> tuple[ValueCodec | None, str | None]:
        codec = find_codec(value_type)
        if codec is None:
            logger.debug("no preference can be stored as %r", value_type)
            return None, None
        try:
            return codec, self.store.get_value(self._store_key(codec.type_key, key))
        except PreferenceStoreError as exc:
            logger.warning("Could not read preference %s: %s", key, exc)
            return codec, None

    def set(self, key: str, value: Any, *, value_type: type | None = None) -> None:
        codec = resolve_codec(value, value_type)
        raw = json.dumps(codec.encode(value), ensure_ascii=False)
        try:
            self.store.set_value(self._store_key(codec.type_key, key), raw)
        except PreferenceStoreError as exc:
            logger.warning("Could not store preference %s: %s", key, exc)

    def get(self, key: str, value_type: type[T], fallback: T | None = None) -> T | None:
        codec, raw = self._read(key, value_type)
        if codec is None or raw is None:
            return fallback
        try:
            return codec.decode(json.loads(raw))
        except (TypeError, ValueError) as exc:
            logger.debug("preference %s:%s could not be decoded: %s", codec.type_key, key, exc)
            return fallback

    def contains_key(self, key: str, value_type: type) -> bool:
        return self._read(key, value_type)[1] is not None

    def remove(self, key: str, value_type: type) -> None:
        codec = find_codec(value_type)
        if codec is None:
            return
        try:
            self.store.delete_value(self._store_key(codec.type_key, key))
        except PreferenceStoreError as exc:
            logger.warning("Could not delete preference %s: %s", key, exc)

    def save(self) -> None:
        # every set is already persisted
        pass


__all__ = [
    "PreferenceStore",
    "MemoryPreferenceStore",
    "IniPreferenceStore",
    "KeyringPreferenceStore",
    "PreferenceSettingsRepository",
    "default_preference_store",
]

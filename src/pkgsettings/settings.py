from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path
from typing import Any, TypeVar

from .file_repository import FileSettingsRepository
from .paths import DEFAULT_SETTINGS_NAME
from .preferences import PreferenceSettingsRepository, PreferenceStore
from .repository import SettingsRepository
from .scopes import SettingsScope
from .vcs import VersionControl

logger = logging.getLogger("pkgsettings")

T = TypeVar("T")

BEFORE_SAVE = "before_save"
AFTER_SAVE = "after_save"
_EVENTS = (BEFORE_SAVE, AFTER_SAVE)


class Settings:
    """Route typed settings operations to a fixed set of repositories.

    Repositories are matched by scope, optionally narrowed by name.  Passing
    ``repository_type`` matches by class instead of scope.  Missing
    repositories and missing keys never raise; they are logged and resolved
    to the fallback, ``False`` or a no-op.

    With ``mirror_to_user=True`` a project scoped :meth:`set` or
    :meth:`delete_key` also reaches the user scoped repositories.
    """

    def __init__(
        self,
        repositories: Iterable[SettingsRepository],
        *,
        mirror_to_user: bool = False,
    ) -> None:
        self._repositories: tuple[SettingsRepository, ...] = tuple(repositories)
        self.mirror_to_user = mirror_to_user
        self._handlers: defaultdict[str, list[Callable[[], Any]]] = defaultdict(list)

    @classmethod
    def for_package(
        cls,
        package: str,
        name: str = DEFAULT_SETTINGS_NAME,
        *,
        root: str | Path | None = None,
        preferences: PreferenceStore | None = None,
        version_control: VersionControl | None = None,
        mirror_to_user: bool = False,
    ) -> Settings:
        """Project settings file for *package* plus user preferences namespaced by *package*."""
        return cls(
            [
                FileSettingsRepository.for_package(
                    package, name, root=root, version_control=version_control
                ),
                PreferenceSettingsRepository(preferences, namespace=package),
            ],
            mirror_to_user=mirror_to_user,
        )

    @property
    def repositories(self) -> tuple[SettingsRepository, ...]:
        return self._repositories

    # ----- notifications -----

    def on(self, event: str, callback: Callable[[], Any]) -> None:
        """Call *callback* before or after every :meth:`save`."""
        if event not in _EVENTS:
            raise ValueError(f"unknown event {event!r}")
        self._handlers[event].append(callback)

    def off(self, event: str, callback: Callable[[], Any]) -> None:
        try:
            self._handlers[event].remove(callback)
        except ValueError:
            pass

    def _emit(self, event: str) -> None:
        for callback in list(self._handlers.get(event, [])):
            callback()

    # ----- repository lookup -----

    def get_repository(
        self, scope: SettingsScope | str, name: str | None = None
    ) -> SettingsRepository | None:
        """Return the first repository with *scope* (and *name*), or ``None``."""
        for repo in self._repositories:
            if repo.scope == scope and (name is None or repo.name == name):
                return repo
        return None

    def _matching(
        self,
        scope: SettingsScope | None,
        repository_name: str | None,
        repository_type: type | None,
    ) -> Iterator[SettingsRepository]:
        for repo in self._repositories:
            if repository_type is not None:
                if not isinstance(repo, repository_type):
                    continue
            elif repo.scope != scope:
                continue
            if repository_name and repo.name != repository_name:
                continue
            yield repo

    def _first(
        self,
        scope: SettingsScope | str,
        repository_name: str | None,
        repository_type: type | None,
    ) -> SettingsRepository | None:
        target = None
        if repository_type is None:
            target = _coerce_scope(scope)
            if target is None:
                return None
        repo = next(self._matching(target, repository_name, repository_type), None)
        if repo is None:
            _warn_missing(target, repository_name, repository_type)
        return repo

    def _targets(
        self,
        scope: SettingsScope | str,
        repository_name: str | None,
        repository_type: type | None,
    ) -> list[SettingsRepository]:
        if repository_type is not None:
            scopes: list[SettingsScope | None] = [None]
        else:
            target = _coerce_scope(scope)
            if target is None:
                return []
            scopes = [target]
            if self.mirror_to_user and target is SettingsScope.PROJECT:
                scopes.append(SettingsScope.USER)
        repos: list[SettingsRepository] = []
        for target in scopes:
            found = list(self._matching(target, repository_name, repository_type))
            if not found:
                _warn_missing(target, repository_name, repository_type)
            repos.extend(r for r in found if r not in repos)
        return repos

    # ----- typed operations -----

    def set(
        self,
        key: str,
        value: Any,
        scope: SettingsScope | str = SettingsScope.PROJECT,
        *,
        value_type: type | None = None,
        repository_name: str | None = None,
        repository_type: type | None = None,
    ) -> None:
        for repo in self._targets(scope, repository_name, repository_type):
            repo.set(key, value, value_type=value_type)

    def get(
        self,
        key: str,
        fallback: T | None = None,
        scope: SettingsScope | str = SettingsScope.PROJECT,
        *,
        value_type: type[T] | None = None,
        repository_name: str | None = None,
        repository_type: type | None = None,
    ) -> T | None:
        if value_type is None:
            if fallback is None:
                raise TypeError("value_type is required when fallback is None")
            value_type = type(fallback)
        repo = self._first(scope, repository_name, repository_type)
        if repo is None:
            return fallback
        return repo.get(key, value_type, fallback)

    def contains_key(
        self,
        key: str,
        value_type: type,
        scope: SettingsScope | str = SettingsScope.PROJECT,
        *,
        repository_name: str | None = None,
        repository_type: type | None = None,
    ) -> bool:
        repo = self._first(scope, repository_name, repository_type)
        if repo is None:
            return False
        return repo.contains_key(key, value_type)

    def delete_key(
        self,
        key: str,
        value_type: type,
        scope: SettingsScope | str = SettingsScope.PROJECT,
        *,
        repository_name: str | None = None,
        repository_type: type | None = None,
    ) -> None:
        for repo in self._targets(scope, repository_name, repository_type):
            repo.remove(key, value_type)

    def save(self) -> None:
        """Save every repository in order, between the save notifications."""
        self._emit(BEFORE_SAVE)
        for repo in self._repositories:
            repo.save()
        self._emit(AFTER_SAVE)


def _coerce_scope(scope: SettingsScope | str) -> SettingsScope | None:
    try:
        return SettingsScope(scope)
    except ValueError:
        logger.warning("Unknown settings scope %r", scope)
        return None


def _warn_missing(
    scope: SettingsScope | None,
    repository_name: str | None,
    repository_type: type | None,
) -> None:
    if repository_type is not None:
        kind = f"type {repository_type.__name__}"
    else:
        kind = f"scope {scope}"
    if repository_name:
        kind += f" and name {repository_name!r}"
    logger.warning("No repository with %s found.", kind)


__all__ = ["Settings", "BEFORE_SAVE", "AFTER_SAVE"]

from __future__ import annotations

import os
import re
from pathlib import Path

from platformdirs import user_config_dir as _uc

from .root import find_project_root

DEFAULT_SETTINGS_NAME = "Settings"
SETTINGS_SUFFIX = ".json"

# Project-relative roots for the two settings trees
PACKAGE_SETTINGS_DIRECTORY = Path("ProjectSettings") / "Packages"
USER_PROJECT_SETTINGS_DIRECTORY = Path("UserSettings") / "Packages"

_VALID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._ -]*$")

# ---------------------------------------------------------------------------
# Names
# ---------------------------------------------------------------------------

def validate_package_id(name: str) -> str:
    """Return *name* stripped, rejecting anything unsafe as a path segment.

    Package ids keep their dots (``com.example.tool``) but must not contain
    path separators or ``..`` segments.
    """

    stripped = name.strip()
    if (
        "/" in stripped
        or "\\" in stripped
        or ".." in stripped
        or not _VALID_RE.fullmatch(stripped)
    ):
        raise ValueError(f"invalid package id: {name!r}")
    return stripped

# ---------------------------------------------------------------------------
# User directories
# ---------------------------------------------------------------------------

def _app_name(default: str) -> str:
    return os.getenv("PKGSETTINGS_APP_NAME", default)

def user_config_dir(app_name: str = "pkgsettings") -> Path:
    app = _app_name(app_name)
    return Path(_uc(appname=app)).resolve()

# ---------------------------------------------------------------------------
# Project directories
# ---------------------------------------------------------------------------

def project_root(start: str | Path | None = None, *, strict: bool = True) -> Path:
    env = os.getenv("PKGSETTINGS_ROOT")
    if env:
        return Path(env).expanduser().resolve()
    return find_project_root(start=start, strict=strict)


def _root_or_cwd(root: str | Path | None) -> Path:
    if root is not None:
        return Path(root)
    return project_root(strict=False)


def package_settings_path(
    package: str,
    name: str = DEFAULT_SETTINGS_NAME,
    *,
    root: str | Path | None = None,
    suffix: str = SETTINGS_SUFFIX,
) -> Path:
    """Return ``<root>/ProjectSettings/Packages/<package>/<name>.json``."""

    return (
        _root_or_cwd(root)
        / PACKAGE_SETTINGS_DIRECTORY
        / validate_package_id(package)
        / f"{validate_package_id(name)}{suffix}"
    )


def project_user_settings_path(
    package: str,
    name: str = DEFAULT_SETTINGS_NAME,
    *,
    root: str | Path | None = None,
    suffix: str = SETTINGS_SUFFIX,
) -> Path:
    """Return ``<root>/UserSettings/Packages/<package>/<name>.json``."""

    return (
        _root_or_cwd(root)
        / USER_PROJECT_SETTINGS_DIRECTORY
        / validate_package_id(package)
        / f"{validate_package_id(name)}{suffix}"
    )

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from .errors import SettingsSerializationError
from .paths import DEFAULT_SETTINGS_NAME, validate_package_id
from .settings import Settings

VALUE_TYPES: dict[str, type] = {
    "bool": bool,
    "int": int,
    "float": float,
    "str": str,
    "list": list,
    "dict": dict,
}

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}


def parse_value(raw: str, value_type: type) -> Any:
    """Convert command line text to *value_type*."""
    if value_type is bool:
        lower = raw.strip().lower()
        if lower in _TRUE:
            return True
        if lower in _FALSE:
            return False
        raise ValueError(f"not a boolean: {raw!r}")
    if value_type in (list, dict):
        value = json.loads(raw)
        if not isinstance(value, value_type):
            raise ValueError(f"expected a JSON {value_type.__name__}")
        return value
    return value_type(raw)


def _settings(args: argparse.Namespace) -> Settings:
    return Settings.for_package(args.package, args.name, root=args.root)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def get_cmd(args: argparse.Namespace) -> int:
    settings = _settings(args)
    value_type = VALUE_TYPES[args.type]
    if not settings.contains_key(args.key, value_type, args.scope):
        return 1
    value = settings.get(args.key, scope=args.scope, value_type=value_type)
    print(json.dumps(value, ensure_ascii=False))
    return 0


def set_cmd(args: argparse.Namespace) -> int:
    value_type = VALUE_TYPES[args.type]
    try:
        value = parse_value(args.value, value_type)
    except ValueError as exc:
        print(f"Invalid {args.type} value: {exc}", file=sys.stderr)
        return 2
    settings = _settings(args)
    try:
        settings.set(args.key, value, args.scope, value_type=value_type)
    except SettingsSerializationError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    settings.save()
    return 0


def delete_cmd(args: argparse.Namespace) -> int:
    settings = _settings(args)
    settings.delete_key(args.key, VALUE_TYPES[args.type], args.scope)
    settings.save()
    return 0


def where_cmd(args: argparse.Namespace) -> int:
    settings = _settings(args)
    for repo in settings.repositories:
        location = str(repo.path) if repo.path is not None else "-"
        print(f"{repo.scope.value}: {repo.name} ({location})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pkgsettings", description="Read and write package settings."
    )
    parser.add_argument("--root", type=Path, default=None, help="Project root directory")
    parser.add_argument("--package", required=True, help="Package id, e.g. com.example.tool")
    parser.add_argument("--name", default=DEFAULT_SETTINGS_NAME, help="Settings file name")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    keyed = argparse.ArgumentParser(add_help=False)
    keyed.add_argument("key")
    keyed.add_argument("--type", choices=sorted(VALUE_TYPES), default="str")
    keyed.add_argument("--scope", choices=["project", "user"], default="project")

    p_get = subparsers.add_parser("get", parents=[keyed], help="Print the value for KEY.")
    p_get.set_defaults(func=get_cmd)

    p_set = subparsers.add_parser("set", parents=[keyed], help="Set KEY to VALUE.")
    p_set.add_argument("value")
    p_set.set_defaults(func=set_cmd)

    p_del = subparsers.add_parser("delete", parents=[keyed], help="Remove KEY.")
    p_del.set_defaults(func=delete_cmd)

    p_where = subparsers.add_parser("where", help="Show repository locations.")
    p_where.set_defaults(func=where_cmd)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        return 1
    try:
        validate_package_id(args.package)
        validate_package_id(args.name)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    try:
        return int(func(args))
    except SystemExit as exc:  # pragma: no cover - argparse may raise
        return int(exc.code)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())

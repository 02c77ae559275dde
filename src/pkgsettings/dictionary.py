from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any, TypeVar

from .errors import SettingsLoadError
from .values import Bucket, ValueCodec, find_codec, resolve_codec

logger = logging.getLogger("pkgsettings.dictionary")

T = TypeVar("T")

EntryKey = tuple[str, str]


@dataclass(frozen=True)
class Entry:
    """A stored value, addressed by ``(type_key, key)``."""

    bucket: Bucket
    type_key: str
    key: str
    data: Any


class SettingsDictionary:
    """In-memory mapping of typed settings.

    Entries are identified by the pair of declared type and key, so the same
    key may hold an ``int`` and a ``str`` side by side.  Values are kept in
    their encoded, JSON-compatible form; decoding happens on :meth:`get`.
    """

    def __init__(self) -> None:
        self._entries: dict[EntryKey, Entry] = {}

    def set(self, key: str, value: Any, value_type: type | None = None) -> None:
        codec = resolve_codec(value, value_type)
        data = codec.encode(value)
        self._entries[(codec.type_key, key)] = Entry(codec.bucket, codec.type_key, key, data)

    def get(self, key: str, value_type: type[T], fallback: T | None = None) -> T | None:
        codec = _lookup_codec(value_type)
        if codec is None:
            return fallback
        entry = self._entries.get((codec.type_key, key))
        if entry is None:
            return fallback
        try:
            return codec.decode(entry.data)
        except (TypeError, ValueError) as exc:
            logger.debug("entry %s:%s could not be decoded: %s", codec.type_key, key, exc)
            return fallback

    def contains_key(self, key: str, value_type: type) -> bool:
        codec = _lookup_codec(value_type)
        return codec is not None and (codec.type_key, key) in self._entries

    def remove(self, key: str, value_type: type) -> None:
        codec = _lookup_codec(value_type)
        if codec is not None:
            self._entries.pop((codec.type_key, key), None)

    def entries(self) -> Iterator[Entry]:
        """Yield entries ordered by type key, then key."""
        for entry_key in sorted(self._entries):
            yield self._entries[entry_key]

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SettingsDictionary):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"SettingsDictionary({len(self)} entries)"

    # ----- document conversion -----

    def to_document(self) -> dict[str, list[dict[str, Any]]]:
        document: dict[str, list[dict[str, Any]]] = {b.value: [] for b in Bucket}
        for entry in self.entries():
            item: dict[str, Any] = {}
            if entry.bucket is not Bucket.STRINGS:
                item["type"] = entry.type_key
            item["key"] = entry.key
            item["value"] = entry.data
            document[entry.bucket.value].append(item)
        return document

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> SettingsDictionary:
        if not isinstance(document, Mapping):
            raise SettingsLoadError("Root of a settings document must be a mapping")
        result = cls()
        for bucket in Bucket:
            items = document.get(bucket.value, [])
            if not isinstance(items, list):
                logger.warning("ignoring malformed %r section", bucket.value)
                continue
            for item in items:
                entry = _entry_from_item(bucket, item)
                if entry is None:
                    logger.warning("skipping malformed %s entry: %r", bucket.value, item)
                    continue
                result._entries[(entry.type_key, entry.key)] = entry
        return result


def _lookup_codec(value_type: type) -> ValueCodec | None:
    codec = find_codec(value_type)
    if codec is None:
        logger.debug("no setting can be stored as %r", value_type)
    return codec


def _entry_from_item(bucket: Bucket, item: Any) -> Entry | None:
    if not isinstance(item, Mapping) or "value" not in item:
        return None
    key = item.get("key")
    if bucket is Bucket.STRINGS:
        kind = item.get("type", "str")
    else:
        kind = item.get("type")
    if not isinstance(key, str) or not isinstance(kind, str) or not kind:
        return None
    return Entry(bucket, kind, key, item["value"])


__all__ = ["Entry", "SettingsDictionary"]

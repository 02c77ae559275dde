"""Typed setting values and their per-type encodings.

Every supported Python type is handled by a :class:`ValueCodec`.  The codec
knows the type key used to address entries, the bucket the entry is filed
under in a settings document, and how to turn a value into JSON-compatible
data and back.  Decoding validates the stored shape so that a lookup with the
wrong type never hands back a coerced value.
"""
from __future__ import annotations

import copy
import dataclasses
import json
import typing
from enum import Enum
from typing import Any

from .errors import SettingsSerializationError

_JSON_SCALARS = (str, int, float, bool, type(None))


class Bucket(str, Enum):
    """Sections of a settings document."""

    PRIMITIVES = "primitives"
    STRINGS = "strings"
    OBJECTS = "objects"


def type_key(value_type: type) -> str:
    """Return the key identifying *value_type* in a settings document."""
    if value_type in _BUILTIN_CODECS:
        return value_type.__name__
    return f"{value_type.__module__}.{value_type.__qualname__}"


def _to_json_data(value: Any) -> Any:
    """Return a JSON copy of *value*, refusing anything that would not read back equal."""
    try:
        data = json.loads(json.dumps(value))
    except (TypeError, ValueError) as exc:
        raise SettingsSerializationError(
            f"value {value!r} cannot be serialized: {exc}"
        ) from exc
    _check_json_data(value, "value")
    return data


def _check_json_data(value: Any, where: str) -> None:
    if type(value) is dict:
        for k, v in value.items():
            if type(k) is not str:
                raise SettingsSerializationError(f"{where} has non-string key {k!r}")
            _check_json_data(v, f"{where}[{k!r}]")
    elif type(value) is list:
        for i, v in enumerate(value):
            _check_json_data(v, f"{where}[{i}]")
    elif type(value) not in _JSON_SCALARS:
        raise SettingsSerializationError(
            f"{where} holds a {type(value).__name__}, which does not read back as itself"
        )


class ValueCodec:
    """Encode and decode values of one declared type."""

    bucket: Bucket = Bucket.OBJECTS

    def __init__(self, value_type: type) -> None:
        self.value_type = value_type
        self.type_key = type_key(value_type)

    def accepts(self, value: Any) -> bool:
        return isinstance(value, self.value_type)

    def encode(self, value: Any) -> Any:
        if not self.accepts(value):
            raise SettingsSerializationError(
                f"value {value!r} is not a {self.type_key}"
            )
        return self._encode(value)

    def decode(self, data: Any) -> Any:
        raise NotImplementedError

    def _encode(self, value: Any) -> Any:
        return value

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.type_key}>"


class BoolCodec(ValueCodec):
    bucket = Bucket.PRIMITIVES

    def decode(self, data: Any) -> bool:
        if not isinstance(data, bool):
            raise TypeError(f"expected bool, got {type(data).__name__}")
        return data


class IntCodec(ValueCodec):
    bucket = Bucket.PRIMITIVES

    def accepts(self, value: Any) -> bool:
        return isinstance(value, int) and not isinstance(value, bool)

    def _encode(self, value: int) -> int:
        return int(value)

    def decode(self, data: Any) -> int:
        if isinstance(data, bool) or not isinstance(data, int):
            raise TypeError(f"expected int, got {type(data).__name__}")
        return data


class FloatCodec(ValueCodec):
    bucket = Bucket.PRIMITIVES

    def accepts(self, value: Any) -> bool:
        return isinstance(value, int | float) and not isinstance(value, bool)

    def _encode(self, value: float) -> float:
        return float(value)

    def decode(self, data: Any) -> float:
        if isinstance(data, bool) or not isinstance(data, int | float):
            raise TypeError(f"expected float, got {type(data).__name__}")
        return float(data)


class StringCodec(ValueCodec):
    bucket = Bucket.STRINGS

    def _encode(self, value: str) -> str:
        return str(value)

    def decode(self, data: Any) -> str:
        if not isinstance(data, str):
            raise TypeError(f"expected str, got {type(data).__name__}")
        return data


class JsonCodec(ValueCodec):
    """Lists, tuples and dicts of JSON-compatible contents."""

    _stored_as = {list: list, tuple: list, dict: dict}

    def _encode(self, value: Any) -> Any:
        if isinstance(value, tuple):
            value = list(value)
        return _to_json_data(value)

    def decode(self, data: Any) -> Any:
        stored = self._stored_as[self.value_type]
        if not isinstance(data, stored):
            raise TypeError(
                f"expected {stored.__name__} for {self.type_key}, "
                f"got {type(data).__name__}"
            )
        return self.value_type(copy.deepcopy(data))


class EnumCodec(ValueCodec):
    def _encode(self, value: Enum) -> Any:
        return _to_json_data(value.value)

    def decode(self, data: Any) -> Enum:
        return self.value_type(data)


class DataclassCodec(ValueCodec):
    """Dataclass instances stored as an object of their init fields.

    A field annotated with a supported type goes through that type's codec,
    so nested dataclasses, enums and tuples come back as themselves.  Any
    other field must hold plain JSON data.
    """

    def __init__(self, value_type: type) -> None:
        super().__init__(value_type)
        self._fields: dict[str, ValueCodec | None] | None = None

    def _field_codecs(self) -> dict[str, ValueCodec | None]:
        # resolved lazily so self-referencing dataclasses hit the codec cache
        if self._fields is None:
            try:
                hints = typing.get_type_hints(self.value_type)
            except (NameError, TypeError):
                hints = {}
            self._fields = {
                f.name: _field_codec(hints.get(f.name))
                for f in dataclasses.fields(self.value_type)
                if f.init
            }
        return self._fields

    def _encode(self, value: Any) -> Any:
        data = {}
        for name, codec in self._field_codecs().items():
            field_value = getattr(value, name)
            data[name] = _to_json_data(field_value) if codec is None else codec.encode(field_value)
        return data

    def decode(self, data: Any) -> Any:
        if not isinstance(data, dict):
            raise TypeError(f"expected object for {self.type_key}")
        codecs = self._field_codecs()
        kwargs = {}
        for name, item in data.items():
            if name not in codecs:
                raise TypeError(f"{self.type_key} has no field {name!r}")
            codec = codecs[name]
            kwargs[name] = copy.deepcopy(item) if codec is None else codec.decode(item)
        return self.value_type(**kwargs)


def _field_codec(hint: Any) -> ValueCodec | None:
    if typing.get_origin(hint) is not None or not isinstance(hint, type):
        return None
    return find_codec(hint)


_BUILTIN_CODECS: dict[type, type[ValueCodec]] = {
    bool: BoolCodec,
    int: IntCodec,
    float: FloatCodec,
    str: StringCodec,
    list: JsonCodec,
    tuple: JsonCodec,
    dict: JsonCodec,
}

_codecs: dict[type, ValueCodec] = {}


def codec_for(value_type: type) -> ValueCodec:
    """Return the codec handling *value_type*.

    Raises :class:`SettingsSerializationError` for types that have no
    representation in a settings document.
    """
    codec = _codecs.get(value_type)
    if codec is not None:
        return codec
    if not isinstance(value_type, type):
        raise SettingsSerializationError(f"not a type: {value_type!r}")
    if issubclass(value_type, Enum):
        codec = EnumCodec(value_type)
    elif value_type in _BUILTIN_CODECS:
        codec = _BUILTIN_CODECS[value_type](value_type)
    elif dataclasses.is_dataclass(value_type):
        codec = DataclassCodec(value_type)
    else:
        raise SettingsSerializationError(
            f"unsupported setting type {value_type.__qualname__!r}"
        )
    _codecs[value_type] = codec
    return codec


def find_codec(value_type: type) -> ValueCodec | None:
    """Return the codec for *value_type*, or ``None`` if it has none."""
    try:
        return codec_for(value_type)
    except SettingsSerializationError:
        return None


def resolve_codec(value: Any, value_type: type | None = None) -> ValueCodec:
    """Return the codec for *value*, declared as *value_type* when given."""
    return codec_for(type(value) if value_type is None else value_type)


__all__ = [
    "Bucket",
    "ValueCodec",
    "codec_for",
    "find_codec",
    "resolve_codec",
    "type_key",
]

"""Binary serializer for RPC payloads.

Encoding rules:

* 8- and 16-bit integers, ``bool``, ``float`` and ``double`` are written as
  fixed-width big-endian values.
* 32- and 64-bit integers are written as varints; signed ones are
  zigzag-encoded first.
* Strings and byte blobs carry their length as an unsigned 64-bit varint,
  followed by the raw bytes.
* Containers carry their element count as an unsigned 64-bit varint,
  followed by the elements.

Values are described by a *spec*:

* a scalar name: ``"bool"``, ``"int8"``, ``"uint8"``, ``"int16"``,
  ``"uint16"``, ``"int32"``, ``"uint32"``, ``"int64"``, ``"uint64"``,
  ``"float"``, ``"double"``, ``"string"`` or ``"bytes"``;
* a Python type standing for a scalar: ``bool``, ``int`` (int64),
  ``float`` (double), ``str`` (string) or ``bytes``;
* a tuple: ``("list", e)``, ``("set", e)``, ``("map", k, v)``,
  ``("multimap", k, v)``, ``("pair", k, v)`` or ``("tuple", *specs)``;
* a class whose instances have ``serialize(serializer)`` and which has a
  ``deserialize(serializer)`` classmethod.

When writing, the spec may be left out and is then inferred from the value.
Writing ``None`` under a spec writes that spec's zero value.
"""

from __future__ import annotations

import struct
from collections.abc import Iterable, Mapping
from typing import Any

_TYPE_ALIASES: dict[type, str] = {
    bool: "bool",
    int: "int64",
    float: "double",
    str: "string",
    bytes: "bytes",
}

_INT_RANGES: dict[str, tuple[int, int]] = {
    "int8": (-(1 << 7), (1 << 7) - 1),
    "uint8": (0, (1 << 8) - 1),
    "int16": (-(1 << 15), (1 << 15) - 1),
    "uint16": (0, (1 << 16) - 1),
    "int32": (-(1 << 31), (1 << 31) - 1),
    "uint32": (0, (1 << 32) - 1),
    "int64": (-(1 << 63), (1 << 63) - 1),
    "uint64": (0, (1 << 64) - 1),
}

_FIXED_FORMATS: dict[str, struct.Struct] = {
    "int8": struct.Struct(">b"),
    "uint8": struct.Struct(">B"),
    "int16": struct.Struct(">h"),
    "uint16": struct.Struct(">H"),
    "float": struct.Struct(">f"),
    "double": struct.Struct(">d"),
}

_SEQUENCE_KINDS = ("list", "set")
_MAPPING_KINDS = ("map", "multimap")


class SerializationError(ValueError):
    """Raised when a value cannot be written or the data cannot be read."""


def _check_int(value: Any, kind: str) -> int:
    if not isinstance(value, int):
        raise SerializationError(f"{kind} value must be an integer, got {type(value).__name__}")
    low, high = _INT_RANGES[kind]
    if not low <= value <= high:
        raise SerializationError(f"value {value} out of range for {kind}")
    return int(value)


def _normalise(spec: Any) -> Any:
    if isinstance(spec, type) and spec in _TYPE_ALIASES:
        return _TYPE_ALIASES[spec]
    return spec


def _is_record_type(spec: Any) -> bool:
    return isinstance(spec, type) and hasattr(spec, "deserialize")


def _infer(value: Any) -> Any:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int64"
    if isinstance(value, float):
        return "double"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "bytes"
    if hasattr(value, "serialize"):
        return type(value)
    if isinstance(value, Mapping):
        return ("map", None, None)
    if isinstance(value, (set, frozenset)):
        return ("set", None)
    if isinstance(value, tuple):
        return ("tuple", *([None] * len(value)))
    if isinstance(value, list):
        return ("list", None)
    raise SerializationError(f"cannot infer a spec for {type(value).__name__}")


def _default(spec: Any) -> Any:
    spec = _normalise(spec)
    if isinstance(spec, str):
        if spec == "bool":
            return False
        if spec in ("float", "double"):
            return 0.0
        if spec == "string":
            return ""
        if spec == "bytes":
            return b""
        if spec in _INT_RANGES:
            return 0
    elif isinstance(spec, tuple) and spec:
        kind = spec[0]
        if kind == "list":
            return []
        if kind == "set":
            return set()
        if kind == "map":
            return {}
        if kind == "multimap":
            return []
        if kind == "pair":
            return (_default(spec[1]), _default(spec[2]))
        if kind == "tuple":
            return tuple(_default(item) for item in spec[1:])
    elif _is_record_type(spec):
        return spec()
    raise SerializationError(f"unknown spec: {spec!r}")


class Serializer:
    """A growable byte buffer with a read/write position."""

    def __init__(self, data: bytes | bytearray | memoryview = b"") -> None:
        self._buffer = bytearray()
        self._position = 0
        if data:
            self.write_raw(data)
            self.reset()

    def size(self) -> int:
        """Total number of bytes held."""
        return len(self._buffer)

    def reset(self) -> None:
        """Move the position back to the start."""
        self._position = 0

    def offset(self, off: int) -> None:
        """Move the position by ``off`` bytes."""
        new_position = self._position + off
        if not 0 <= new_position <= len(self._buffer):
            raise SerializationError(f"position {new_position} out of range")
        self._position = new_position

    def to_bytes(self) -> bytes:
        """The bytes from the current position to the end."""
        return bytes(self._buffer[self._position:])

    def clear(self) -> None:
        """Drop all content."""
        self._buffer.clear()
        self._position = 0

    def write_raw(self, data: bytes | bytearray | memoryview) -> None:
        """Write bytes as they are, with no length prefix."""
        data = bytes(data)
        end = self._position + len(data)
        self._buffer[self._position:end] = data
        self._position = end

    def read_raw(self, length: int) -> bytes:
        """Read exactly ``length`` bytes."""
        if length < 0:
            raise SerializationError("length must be non-negative")
        end = self._position + length
        if end > len(self._buffer):
            raise SerializationError(
                f"need {length} bytes, only {len(self._buffer) - self._position} left"
            )
        data = bytes(self._buffer[self._position:end])
        self._position = end
        return data

    # fixed-width helpers

    def _write_fixed(self, kind: str, value: Any) -> None:
        try:
            self.write_raw(_FIXED_FORMATS[kind].pack(value))
        except (struct.error, OverflowError, TypeError) as exc:
            raise SerializationError(f"cannot write {value!r} as {kind}: {exc}") from None

    def _read_fixed(self, kind: str) -> Any:
        fmt = _FIXED_FORMATS[kind]
        return fmt.unpack(self.read_raw(fmt.size))[0]

    # varint helpers

    def _write_varint(self, value: int) -> None:
        out = bytearray()
        while value >= 0x80:
            out.append((value & 0x7F) | 0x80)
            value >>= 7
        out.append(value)
        self.write_raw(out)

    def _read_varint(self, bits: int) -> int:
        result = 0
        for shift in range(0, bits, 7):
            byte = self.read_raw(1)[0]
            result |= (byte & 0x7F) << shift
            if byte < 0x80:
                return result & ((1 << bits) - 1)
        raise SerializationError(f"varint longer than {bits} bits")

    def _write_zigzag(self, value: int, bits: int) -> None:
        self._write_varint((value << 1) ^ (value >> (bits - 1)))

    def _read_zigzag(self, bits: int) -> int:
        raw = self._read_varint(bits)
        return (raw >> 1) ^ -(raw & 1)

    # scalars

    def write_bool(self, value: bool) -> None:
        self._write_fixed("int8", 1 if value else 0)

    def read_bool(self) -> bool:
        return self._read_fixed("int8") != 0

    def write_int8(self, value: int) -> None:
        self._write_fixed("int8", _check_int(value, "int8"))

    def read_int8(self) -> int:
        return self._read_fixed("int8")

    def write_uint8(self, value: int) -> None:
        self._write_fixed("uint8", _check_int(value, "uint8"))

    def read_uint8(self) -> int:
        return self._read_fixed("uint8")

    def write_int16(self, value: int) -> None:
        self._write_fixed("int16", _check_int(value, "int16"))

    def read_int16(self) -> int:
        return self._read_fixed("int16")

    def write_uint16(self, value: int) -> None:
        self._write_fixed("uint16", _check_int(value, "uint16"))

    def read_uint16(self) -> int:
        return self._read_fixed("uint16")

    def write_int32(self, value: int) -> None:
        self._write_zigzag(_check_int(value, "int32"), 32)

    def read_int32(self) -> int:
        return self._read_zigzag(32)

    def write_uint32(self, value: int) -> None:
        self._write_varint(_check_int(value, "uint32"))

    def read_uint32(self) -> int:
        return self._read_varint(32)

    def write_int64(self, value: int) -> None:
        self._write_zigzag(_check_int(value, "int64"), 64)

    def read_int64(self) -> int:
        return self._read_zigzag(64)

    def write_uint64(self, value: int) -> None:
        self._write_varint(_check_int(value, "uint64"))

    def read_uint64(self) -> int:
        return self._read_varint(64)

    def write_float(self, value: float) -> None:
        self._write_fixed("float", value)

    def read_float(self) -> float:
        return self._read_fixed("float")

    def write_double(self, value: float) -> None:
        self._write_fixed("double", value)

    def read_double(self) -> float:
        return self._read_fixed("double")

    def write_string(self, value: str | bytes) -> None:
        """Write a length-prefixed string; text is encoded as UTF-8."""
        if isinstance(value, str):
            data = value.encode("utf-8")
        elif isinstance(value, (bytes, bytearray, memoryview)):
            data = bytes(value)
        else:
            raise SerializationError(f"string value must be str or bytes, got {type(value).__name__}")
        self._write_varint(len(data))
        self.write_raw(data)

    def _read_blob(self) -> bytes:
        return self.read_raw(self.read_uint64())

    def read_string(self) -> str:
        """Read a length-prefixed UTF-8 string."""
        data = self._read_blob()
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise SerializationError(f"string is not valid UTF-8: {exc}") from None

    # generic values

    def write(self, value: Any, spec: Any = None) -> None:
        """Write ``value`` as described by ``spec``, inferring the spec if omitted."""
        if spec is None:
            if value is None:
                raise SerializationError("cannot write None without a spec")
            spec = _infer(value)
        spec = _normalise(spec)
        if value is None:
            value = _default(spec)

        if isinstance(spec, str):
            writer = _SCALAR_WRITERS.get(spec)
            if writer is None:
                raise SerializationError(f"unknown spec: {spec!r}")
            writer(self, value)
        elif isinstance(spec, tuple) and spec:
            self._write_composite(value, spec)
        elif _is_record_type(spec):
            value.serialize(self)
        else:
            raise SerializationError(f"unknown spec: {spec!r}")

    def _write_composite(self, value: Any, spec: tuple) -> None:
        kind = spec[0]
        if kind in _SEQUENCE_KINDS:
            items: Iterable[Any] = value
            if kind == "set":
                try:
                    items = sorted(value)
                except TypeError:
                    items = list(value)
            items = list(items)
            self._write_varint(len(items))
            for item in items:
                self.write(item, spec[1])
        elif kind in _MAPPING_KINDS:
            pairs = list(value.items()) if isinstance(value, Mapping) else list(value)
            self._write_varint(len(pairs))
            for key, item in pairs:
                self.write(key, spec[1])
                self.write(item, spec[2])
        elif kind == "pair":
            first, second = value
            self.write(first, spec[1])
            self.write(second, spec[2])
        elif kind == "tuple":
            specs = spec[1:]
            values = tuple(value)
            if len(values) != len(specs):
                raise SerializationError(
                    f"tuple has {len(values)} elements, spec expects {len(specs)}"
                )
            for item, item_spec in zip(values, specs):
                self.write(item, item_spec)
        else:
            raise SerializationError(f"unknown spec: {spec!r}")

    def read(self, spec: Any) -> Any:
        """Read a value described by ``spec``."""
        spec = _normalise(spec)
        if isinstance(spec, str):
            reader = _SCALAR_READERS.get(spec)
            if reader is None:
                raise SerializationError(f"unknown spec: {spec!r}")
            return reader(self)
        if isinstance(spec, tuple) and spec:
            return self._read_composite(spec)
        if _is_record_type(spec):
            return spec.deserialize(self)
        raise SerializationError(f"unknown spec: {spec!r}")

    def _read_composite(self, spec: tuple) -> Any:
        kind = spec[0]
        if kind == "list":
            return [self.read(spec[1]) for _ in range(self.read_uint64())]
        if kind == "set":
            return {self.read(spec[1]) for _ in range(self.read_uint64())}
        if kind == "map":
            result: dict[Any, Any] = {}
            for _ in range(self.read_uint64()):
                key = self.read(spec[1])
                item = self.read(spec[2])
                result.setdefault(key, item)
            return result
        if kind == "multimap":
            return [(self.read(spec[1]), self.read(spec[2])) for _ in range(self.read_uint64())]
        if kind == "pair":
            first = self.read(spec[1])
            return (first, self.read(spec[2]))
        if kind == "tuple":
            return tuple(self.read(item_spec) for item_spec in spec[1:])
        raise SerializationError(f"unknown spec: {spec!r}")


_SCALAR_WRITERS = {
    "bool": Serializer.write_bool,
    "int8": Serializer.write_int8,
    "uint8": Serializer.write_uint8,
    "int16": Serializer.write_int16,
    "uint16": Serializer.write_uint16,
    "int32": Serializer.write_int32,
    "uint32": Serializer.write_uint32,
    "int64": Serializer.write_int64,
    "uint64": Serializer.write_uint64,
    "float": Serializer.write_float,
    "double": Serializer.write_double,
    "string": Serializer.write_string,
    "bytes": Serializer.write_string,
}

_SCALAR_READERS = {
    "bool": Serializer.read_bool,
    "int8": Serializer.read_int8,
    "uint8": Serializer.read_uint8,
    "int16": Serializer.read_int16,
    "uint16": Serializer.read_uint16,
    "int32": Serializer.read_int32,
    "uint32": Serializer.read_uint32,
    "int64": Serializer.read_int64,
    "uint64": Serializer.read_uint64,
    "float": Serializer.read_float,
    "double": Serializer.read_double,
    "string": Serializer.read_string,
    "bytes": Serializer._read_blob,
}
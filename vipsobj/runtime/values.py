"""Boxed ``GValue`` storage for property transfer."""
from __future__ import annotations

import ctypes
from enum import IntEnum, IntFlag

from ..constants import (
    G_TYPE_BOOLEAN,
    G_TYPE_DOUBLE,
    G_TYPE_INT,
    G_TYPE_STRING,
    G_TYPE_UINT64,
)
from . import records
from .enums import ENUM_TYPE_SYMBOLS, from_nick


class UInt64(int):
    """Marker value type for unsigned 64-bit properties such as sizes."""


_FUNDAMENTAL = {
    bool: (G_TYPE_BOOLEAN, "boolean"),
    int: (G_TYPE_INT, "int"),
    UInt64: (G_TYPE_UINT64, "uint64"),
    float: (G_TYPE_DOUBLE, "double"),
    str: (G_TYPE_STRING, "string"),
}


def _is_handle_type(value_type) -> bool:
    from .core import ObjectHandle

    return isinstance(value_type, type) and issubclass(value_type, ObjectHandle)


def value_kind(value_type) -> str:
    """The ``g_value_get_*``/``g_value_set_*`` suffix for *value_type*."""

    if value_type in _FUNDAMENTAL:
        return _FUNDAMENTAL[value_type][1]
    if isinstance(value_type, type) and issubclass(value_type, IntFlag):
        return "flags"
    if isinstance(value_type, type) and issubclass(value_type, IntEnum):
        return "enum"
    if _is_handle_type(value_type):
        return "object"
    raise TypeError(f"Unsupported property value type: {value_type!r}")


def gtype_for(value_type, runtime) -> int:
    """Return the GType a ``GValue`` holding *value_type* is initialised with."""

    if value_type in _FUNDAMENTAL:
        return _FUNDAMENTAL[value_type][0]
    kind = value_kind(value_type)
    if kind in ("enum", "flags"):
        try:
            symbol = ENUM_TYPE_SYMBOLS[value_type]
        except KeyError:
            raise TypeError(f"{value_type.__name__} has no registered get_type symbol") from None
        return runtime.type_id_from_symbol(symbol)
    return value_type.gtype(runtime)


def check_value(value_type, value):
    """Coerce *value* to *value_type* or raise ``TypeError``/``ValueError``."""

    kind = value_kind(value_type)
    if kind == "boolean":
        if not isinstance(value, bool):
            raise TypeError(f"Expected bool, got {type(value).__name__}")
        return value
    if kind in ("int", "uint64"):
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"Expected int, got {type(value).__name__}")
        if kind == "uint64" and value < 0:
            raise ValueError("Unsigned value cannot be negative")
        return int(value)
    if kind == "double":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"Expected float, got {type(value).__name__}")
        return float(value)
    if kind == "string":
        if value is not None and not isinstance(value, str):
            raise TypeError(f"Expected str, got {type(value).__name__}")
        return value
    if kind in ("enum", "flags"):
        if isinstance(value, str):
            return from_nick(value_type, value)
        return value_type(value)
    if value is not None and not isinstance(value, value_type):
        raise TypeError(f"Expected {value_type.__name__}, got {type(value).__name__}")
    return value


class BoxedValue:
    """A ``GValue`` on the Python heap, initialised for one value type.

    Use as a context manager so the value is always unset::

        with BoxedValue(runtime, int) as box:
            box.set(3)
    """

    def __init__(self, runtime, value_type):
        self.runtime = runtime
        self.value_type = value_type
        self.kind = value_kind(value_type)
        self.gvalue = records.GValue()
        self._initialised = False

    @property
    def address(self) -> int:
        return ctypes.addressof(self.gvalue)

    def __enter__(self):
        self.runtime.lib.g_value_init(self.address, gtype_for(self.value_type, self.runtime))
        self._initialised = True
        return self

    def __exit__(self, exc_type, exc, tb):
        if self._initialised:
            self.runtime.lib.g_value_unset(self.address)
            self._initialised = False

    def set(self, value) -> None:
        lib = self.runtime.lib
        value = check_value(self.value_type, value)
        if self.kind == "string":
            lib.g_value_set_string(self.address, None if value is None else value.encode("utf-8"))
        elif self.kind == "object":
            lib.g_value_set_object(self.address, None if value is None else value.address)
        elif self.kind in ("enum", "flags", "int", "uint64"):
            getattr(lib, f"g_value_set_{self.kind}")(self.address, int(value))
        else:
            getattr(lib, f"g_value_set_{self.kind}")(self.address, value)

    def get(self):
        lib = self.runtime.lib
        raw = getattr(lib, f"g_value_get_{self.kind}")(self.address)
        if self.kind == "boolean":
            return bool(raw)
        if self.kind == "string":
            return raw.decode("utf-8") if raw else None
        if self.kind in ("enum", "flags"):
            try:
                return self.value_type(raw)
            except ValueError:
                # Newer runtimes may add members this mirror does not list.
                return raw
        if self.kind == "object":
            if not raw:
                return None
            # The GValue keeps its own reference; the handle takes another.
            return self.value_type(raw, runtime=self.runtime, transfer="none")
        return raw


__all__ = [
    "BoxedValue",
    "UInt64",
    "check_value",
    "gtype_for",
    "value_kind",
]

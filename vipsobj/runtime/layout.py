"""Structural helpers over Layout Mirror records."""
from __future__ import annotations

import ctypes
from typing import Iterable


def is_partial(record) -> bool:
    """Return True when *record* mirrors only a prefix of the native struct."""

    return bool(getattr(record, "_partial_", False))


def parent_record(record):
    """Return the record embedded as *record*'s first field, if any."""

    fields = getattr(record, "_fields_", None) or []
    if not fields:
        return None
    first_type = fields[0][1]
    if isinstance(first_type, type) and issubclass(first_type, ctypes.Structure):
        return first_type
    return None


def own_fields(record) -> list[tuple[str, type]]:
    """Fields *record* adds on top of its embedded parent."""

    fields = [(f[0], f[1]) for f in record._fields_]
    if parent_record(record) is not None:
        return fields[1:]
    return fields


def ancestor_chain(record) -> list:
    """Return ``[record, parent, grandparent, ...]`` down to the root record."""

    chain = []
    while record is not None:
        chain.append(record)
        record = parent_record(record)
    return chain


def is_ancestor(ancestor, record) -> bool:
    return ancestor in ancestor_chain(record)


def field_offset(record, name: str) -> int:
    """Byte offset of field *name*, searching the embedded parent chain.

    The nearest declaration wins, so a subtype field that reuses an
    ancestor's name resolves to the subtype's own slot.
    """

    offset = 0
    for rec in ancestor_chain(record):
        for field_name, _ in own_fields(rec):
            if field_name == name:
                return offset + getattr(rec, field_name).offset
        parent = parent_record(rec)
        if parent is not None:
            offset += getattr(rec, rec._fields_[0][0]).offset
    raise AttributeError(f"{record.__name__} has no field {name!r}")


def embedded_offset(record, ancestor) -> int:
    """Byte offset of the *ancestor* sub-record embedded inside *record*."""

    offset = 0
    for rec in ancestor_chain(record):
        if rec is ancestor:
            return offset
        if parent_record(rec) is not None:
            offset += getattr(rec, rec._fields_[0][0]).offset
    raise TypeError(f"{ancestor.__name__} is not embedded in {record.__name__}")


def defining_record(record, name: str):
    """Return the record in *record*'s chain that declares field *name*."""

    for rec in ancestor_chain(record):
        if any(field_name == name for field_name, _ in own_fields(rec)):
            return rec
    raise AttributeError(f"{record.__name__} has no field {name!r}")


def verify_append_only(child, parent) -> list[str]:
    """Check that every field of *parent* sits at the same offset in *child*.

    Each parent field is located through the embedded path: the offset of
    the declaring sub-record plus the field's offset inside it. Returns a
    list of human readable problems; an empty list means the child's
    layout only appends to the parent's.
    """

    problems = []
    if not is_ancestor(parent, child):
        return [f"{parent.__name__} is not embedded in {child.__name__}"]
    for rec in ancestor_chain(parent):
        for name, _ in own_fields(rec):
            inner = getattr(rec, name).offset
            expected = embedded_offset(parent, rec) + inner
            actual = embedded_offset(child, rec) + inner
            if expected != actual:
                problems.append(
                    f"{child.__name__}.{name} at offset {actual}, expected {expected}"
                )
    return problems


def address_of(value) -> int | None:
    """Return the integer address held by a pointer-like value."""

    if value is None:
        return None
    if isinstance(value, int):
        return value
    if hasattr(value, "address") and not isinstance(value, ctypes._SimpleCData):
        return value.address
    if isinstance(value, ctypes.Structure):
        return ctypes.addressof(value)
    return ctypes.cast(value, ctypes.c_void_p).value


def reinterpret(value, record):
    """Reinterpret a pointer-like *value* as ``POINTER(record)``."""

    address = address_of(value)
    return ctypes.cast(ctypes.c_void_p(address), ctypes.POINTER(record))


def upcast(pointer, target, interfaces: Iterable = ()):
    """Reinterpret *pointer* as a pointer to an ancestor or interface record.

    *pointer* must be a typed ``ctypes`` pointer; *target* must appear in its
    record's ancestor chain or among *interfaces*. No native memory is read.
    """

    source = getattr(pointer, "_type_", None)
    if source is None:
        raise TypeError("upcast requires a typed ctypes pointer")
    if not is_ancestor(target, source) and target not in tuple(interfaces):
        raise TypeError(
            f"{target.__name__} is neither an ancestor of {source.__name__} "
            "nor an implemented interface"
        )
    return ctypes.cast(pointer, ctypes.POINTER(target))


def define_record(name: str, parent, fields=(), *, parent_field="parent_instance"):
    """Build a new record embedding *parent* as its first field."""

    if is_partial(parent) and fields:
        raise TypeError(
            f"Cannot extend partial record {parent.__name__}: its full size is unknown"
        )
    namespace = {"_fields_": [(parent_field, parent)] + list(fields)}
    if is_partial(parent):
        namespace["_partial_"] = True
    return type(name, (ctypes.Structure,), namespace)


def check_embedding(record, parent) -> None:
    """Raise ``TypeError`` unless *record* embeds *parent* as its first field."""

    if parent_record(record) is not parent:
        raise TypeError(
            f"{record.__name__} must embed {parent.__name__} as its first field"
        )
    if getattr(record, record._fields_[0][0]).offset != 0:
        raise TypeError(f"{record.__name__} parent field is not at offset 0")
    if is_partial(parent):
        if not is_partial(record):
            raise TypeError(
                f"{record.__name__} extends partial record {parent.__name__} "
                "and must be marked partial"
            )
        if own_fields(record):
            raise TypeError(
                f"{record.__name__} cannot add fields after partial record {parent.__name__}"
            )


def describe_record(record) -> dict:
    return {
        "name": record.__name__,
        "size": ctypes.sizeof(record),
        "partial": is_partial(record),
        "parent": getattr(parent_record(record), "__name__", None),
        "fields": [
            {
                "name": name,
                "offset": field_offset(record, name),
                "size": ctypes.sizeof(ctype),
            }
            for name, ctype in own_fields(record)
        ],
    }


__all__ = [
    "address_of",
    "ancestor_chain",
    "check_embedding",
    "define_record",
    "defining_record",
    "describe_record",
    "embedded_offset",
    "field_offset",
    "is_ancestor",
    "is_partial",
    "own_fields",
    "parent_record",
    "reinterpret",
    "upcast",
    "verify_append_only",
]

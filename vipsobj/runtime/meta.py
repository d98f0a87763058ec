"""Reflection over wrapped types and live handles."""
from __future__ import annotations

import ctypes

from . import layout
from .capabilities import ancestor_types, implemented_interfaces, is_interface
from .core import TYPE_REGISTRY, all_descriptors, find_type, own_descriptors


def _record_size(record):
    if record is None:
        return None
    return ctypes.sizeof(record)


def describe_type(wrapper, inherited=False) -> dict:
    """Return a JSON-safe description of a wrapped type.

    With *inherited* the descriptor lists include members declared by
    ancestors.
    """

    collect = all_descriptors if inherited else own_descriptors
    return {
        "name": wrapper.__name__,
        "type_name": wrapper.type_name,
        "get_type": vars(wrapper).get("get_type_symbol"),
        "interface": is_interface(wrapper),
        "record": layout.describe_record(wrapper.Record),
        "class_record": layout.describe_record(wrapper.ClassRecord),
        "instance_size": _record_size(wrapper.Record),
        "class_size": _record_size(wrapper.ClassRecord),
        "partial": layout.is_partial(wrapper.Record) or layout.is_partial(wrapper.ClassRecord),
        "ancestors": [t.type_name for t in ancestor_types(wrapper)],
        "interfaces": [t.type_name for t in implemented_interfaces(wrapper)],
        "properties": [d.describe() for d in collect(wrapper, "property")],
        "signals": [d.describe() for d in collect(wrapper, "signal")],
        "vfuncs": [d.describe() for d in collect(wrapper, "vfunc")],
    }


def list_types() -> list:
    """Every declared wrapper type, ancestors before descendants."""

    return sorted(TYPE_REGISTRY.values(), key=lambda t: (len(ancestor_types(t)), t.type_name))


def describe_instance(handle) -> dict:
    """Describe a live handle: its static type and the runtime's view of it.

    The reference count stays with the runtime and is not reported.
    """

    return {
        "wrapper": type(handle).__name__,
        "address": hex(handle.address),
        "owned": handle.owned,
        "instance_type": handle.instance_type_name(),
    }


__all__ = ["describe_instance", "describe_type", "find_type", "list_types"]

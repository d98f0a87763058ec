"""Wrapped type declarations and reference-counted object handles."""
from __future__ import annotations

from collections import Counter
import logging
from typing import Type, TypeVar

from . import layout
from . import records
from .capabilities import (
    check_capability_list,
    check_upcast_target,
    declared_parent,
    implemented_interfaces,
    is_interface,
)
from .library import NativeRuntime, get_runtime, varargs_call

logger = logging.getLogger("vipsobj.runtime")

TRANSFER_FULL = "full"
TRANSFER_NONE = "none"
TRANSFER_FLOATING = "floating"
BORROWED = "borrowed"

H = TypeVar("H", bound="ObjectHandle")

TYPE_REGISTRY: dict[str, type] = {}

_LIVE_HANDLES: Counter = Counter()
_LIVE_TYPES: dict[int, str] = {}


def ref(pointer, runtime: NativeRuntime | None = None):
    """Forward to ``g_object_ref``; the caller must balance it with :func:`unref`."""

    runtime = runtime or get_runtime()
    return runtime.lib.g_object_ref(layout.address_of(pointer))


def unref(pointer, runtime: NativeRuntime | None = None) -> None:
    """Forward to ``g_object_unref``."""

    runtime = runtime or get_runtime()
    runtime.lib.g_object_unref(layout.address_of(pointer))


def live_handles() -> dict[int, int]:
    """Owned handle references per instance address that are not yet released."""

    return dict(_LIVE_HANDLES)


def leak_report() -> list[dict]:
    return [
        {"address": hex(address), "type": _LIVE_TYPES.get(address), "references": count}
        for address, count in sorted(_LIVE_HANDLES.items())
    ]


def _track(address: int, type_name: str) -> None:
    _LIVE_HANDLES[address] += 1
    _LIVE_TYPES[address] = type_name


def _untrack(address: int) -> None:
    _LIVE_HANDLES[address] -= 1
    if _LIVE_HANDLES[address] <= 0:
        del _LIVE_HANDLES[address]
        _LIVE_TYPES.pop(address, None)


def _validate_declaration(cls) -> None:
    if not isinstance(getattr(cls, "type_name", None), str) or not cls.type_name:
        raise TypeError(f"{cls.__name__} must declare a native type_name")
    if vars(cls).get("ClassRecord") is None:
        raise TypeError(f"{cls.__name__} must declare a ClassRecord")

    parent = declared_parent(cls)
    if is_interface(cls):
        if layout.parent_record(cls.ClassRecord) is not records.GTypeInterface:
            raise TypeError(
                f"{cls.ClassRecord.__name__} must embed GTypeInterface as its first field"
            )
    elif parent is None:
        layout.check_embedding(cls.Record, records.GTypeInstance)
        layout.check_embedding(cls.ClassRecord, records.GTypeClass)
    else:
        if is_interface(parent):
            raise TypeError(f"{cls.__name__} cannot derive from interface {parent.__name__}")
        layout.check_embedding(cls.Record, parent.Record)
        layout.check_embedding(cls.ClassRecord, parent.ClassRecord)
    check_capability_list(cls)
    for descriptor in own_descriptors(cls):
        bind = getattr(descriptor, "bind", None)
        if bind is not None:
            bind(cls)


def own_descriptors(cls, kind: str | None = None) -> list:
    """Property, signal and virtual method descriptors declared on *cls* itself."""

    return [
        value
        for value in vars(cls).values()
        if getattr(value, "descriptor_kind", None) is not None
        and (kind is None or value.descriptor_kind == kind)
    ]


def all_descriptors(cls, kind: str | None = None) -> list:
    """Descriptors visible on *cls*, including inherited ones, nearest first."""

    seen = set()
    found = []
    for klass in cls.__mro__:
        for name, value in vars(klass).items():
            if name in seen or getattr(value, "descriptor_kind", None) is None:
                continue
            seen.add(name)
            if kind is None or value.descriptor_kind == kind:
                found.append(value)
    return found


class ObjectHandle:
    """An owned (or borrowed) reference to a native object instance.

    Declaring a subclass with ``Record``/``ClassRecord``/``type_name`` validates
    its Layout Mirror against its parent and registers it. Owned handles hold
    one native reference, released by :meth:`release` or when leaving a
    ``with`` block.
    """

    Record = None
    ClassRecord = None
    type_name: str | None = None
    get_type_symbol: str | None = None
    implements: tuple = ()
    is_interface = False
    floating = False

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if vars(cls).get("Record") is None:
            return
        _validate_declaration(cls)
        TYPE_REGISTRY[cls.type_name] = cls

    def __init__(self, pointer, *, runtime=None, transfer=TRANSFER_FULL, owner=None):
        if transfer not in (TRANSFER_FULL, TRANSFER_NONE, TRANSFER_FLOATING, BORROWED):
            raise ValueError(f"Unknown ownership transfer: {transfer!r}")
        address = layout.address_of(pointer)
        if not address:
            raise ValueError(f"Cannot wrap a NULL {type(self).__name__} pointer")
        self._runtime = runtime or get_runtime()
        self._address = address
        self._owner = owner
        self._released = False
        self._owned = transfer != BORROWED
        if transfer == TRANSFER_NONE:
            self._runtime.lib.g_object_ref(address)
        elif transfer == TRANSFER_FLOATING:
            self._runtime.lib.g_object_ref_sink(address)
        if self._owned:
            _track(address, type(self).type_name)

    @classmethod
    def borrow(cls: Type[H], pointer, *, runtime=None, owner=None) -> H:
        """A non-owning view; valid only while its source reference is held."""

        return cls(pointer, runtime=runtime, transfer=BORROWED, owner=owner)

    @classmethod
    def gtype(cls, runtime: NativeRuntime | None = None) -> int:
        return (runtime or get_runtime()).type_id(cls)

    @classmethod
    def new(cls: Type[H], runtime: NativeRuntime | None = None) -> H:
        """Construct a fresh instance through ``g_object_new``."""

        runtime = runtime or get_runtime()
        address = varargs_call(runtime.lib.g_object_new, cls.gtype(runtime))
        transfer = TRANSFER_FLOATING if cls.floating else TRANSFER_FULL
        return cls(address, runtime=runtime, transfer=transfer)

    # -- access -----------------------------------------------------------

    def _check_alive(self):
        if self._released:
            raise RuntimeError(f"{type(self).__name__} handle has been released")
        if self._owner is not None:
            self._owner._check_alive()

    @property
    def runtime(self) -> NativeRuntime:
        return self._runtime

    @property
    def address(self) -> int:
        self._check_alive()
        return self._address

    @property
    def pointer(self):
        """Typed ``ctypes`` pointer to this instance's record."""

        return layout.reinterpret(self.address, type(self).Record)

    @property
    def record(self):
        return self.pointer.contents

    @property
    def released(self) -> bool:
        return self._released

    @property
    def owned(self) -> bool:
        return self._owned

    @property
    def class_address(self) -> int:
        instance = layout.reinterpret(self.address, records.GTypeInstance).contents
        return layout.address_of(instance.g_class)

    def instance_type(self) -> int:
        """The runtime type of the instance, read from its class record."""

        instance = layout.reinterpret(self.address, records.GTypeInstance).contents
        return instance.g_class.contents.g_type

    def instance_type_name(self) -> str | None:
        return self._runtime.type_name(self.instance_type())

    # -- casts ------------------------------------------------------------

    def upcast(self, target: Type[H]) -> H:
        """View this instance as an ancestor type or implemented interface.

        The view shares this handle's reference and address; it becomes
        unusable once this handle is released.
        """

        cls = type(self)
        check_upcast_target(cls, target)
        interfaces = [iface.Record for iface in implemented_interfaces(cls)]
        pointer = layout.upcast(self.pointer, target.Record, interfaces)
        return target.borrow(pointer, runtime=self._runtime, owner=self)

    def downcast(self, target: Type[H]) -> H:
        """Checked cast to a subtype using the runtime's type information."""

        if not self._runtime.lib.g_type_is_a(self.instance_type(), target.gtype(self._runtime)):
            raise TypeError(
                f"{self.instance_type_name()} instance is not a {target.__name__}"
            )
        return target.borrow(self.address, runtime=self._runtime, owner=self)

    # -- ownership --------------------------------------------------------

    def clone(self: H) -> H:
        """A new owned handle holding an extra reference."""

        return type(self)(self.address, runtime=self._runtime, transfer=TRANSFER_NONE)

    def steal(self) -> int:
        """Move the native reference out of this handle and return the address."""

        address = self.address
        if not self._owned:
            raise RuntimeError("Cannot steal from a borrowed handle")
        self._released = True
        _untrack(address)
        return address

    def release(self) -> None:
        """Drop this handle's reference; a second release raises."""

        if self._released:
            raise RuntimeError(f"{type(self).__name__} handle already released")
        self._released = True
        if self._owned:
            _untrack(self._address)
            self._runtime.lib.g_object_unref(self._address)

    def __enter__(self):
        self._check_alive()
        return self

    def __exit__(self, exc_type, exc, tb):
        if not self._released:
            self.release()

    def __del__(self):
        if getattr(self, "_owned", False) and not getattr(self, "_released", True):
            self.release()

    def __repr__(self):  # pragma: no cover - representation helper
        state = "released" if self._released else hex(self._address)
        kind = "" if self._owned else " borrowed"
        return f"<{type(self).__name__}{kind} {state}>"


class Interface(ObjectHandle):
    """Base for interface wrappers; instances share the object's address."""

    is_interface = True


def upcast(handle: ObjectHandle, target: Type[H]) -> H:
    return handle.upcast(target)


def downcast(handle: ObjectHandle, target: Type[H]) -> H:
    return handle.downcast(target)


def find_type(name: str):
    try:
        return TYPE_REGISTRY[name]
    except KeyError:
        raise KeyError(f"No wrapped type named {name}") from None


__all__ = [
    "BORROWED",
    "Interface",
    "ObjectHandle",
    "TRANSFER_FLOATING",
    "TRANSFER_FULL",
    "TRANSFER_NONE",
    "TYPE_REGISTRY",
    "all_descriptors",
    "downcast",
    "find_type",
    "leak_report",
    "live_handles",
    "own_descriptors",
    "ref",
    "unref",
    "upcast",
]

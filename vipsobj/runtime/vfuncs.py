"""Virtual method slots and runtime subtype registration."""
from __future__ import annotations

import ctypes
import functools
import logging

from . import layout
from .capabilities import declared_parent, is_interface
from .library import NativeError, get_runtime

logger = logging.getLogger("vipsobj.runtime")

ClassInitFunc = ctypes.CFUNCTYPE(None, ctypes.c_void_p, ctypes.c_void_p)
InstanceInitFunc = ctypes.CFUNCTYPE(None, ctypes.c_void_p, ctypes.c_void_p)

_IMPLEMENTATIONS: dict[tuple[int, str], object] = {}
_REGISTRATIONS: dict[str, tuple] = {}


class VirtualMethod:
    """A function pointer slot of a wrapped type's Class Record.

    Declared as ``do_<slot>`` on the wrapper class; the slot must be a
    function pointer field introduced by that type's own Class Record.
    Static slots (``static=True``) take no instance argument.
    """

    descriptor_kind = "vfunc"

    def __init__(self, slot: str | None = None, *, static=False, doc=None):
        self.slot = slot
        self.static = static
        self.owner = None
        self.attr = None
        self.prototype = None
        self.__doc__ = doc

    def __set_name__(self, owner, attr):
        self.owner = owner
        self.attr = attr

    def bind(self, owner):
        if not self.attr.startswith("do_"):
            raise TypeError(f"Virtual method {owner.__name__}.{self.attr} must be named do_<slot>")
        self.slot = self.slot or self.attr[3:]
        fields = dict(layout.own_fields(owner.ClassRecord))
        if self.slot not in fields:
            raise TypeError(
                f"{owner.ClassRecord.__name__} introduces no slot named {self.slot!r}"
            )
        prototype = fields[self.slot]
        if not (isinstance(prototype, type) and issubclass(prototype, ctypes._CFuncPtr)):
            raise TypeError(f"{owner.ClassRecord.__name__}.{self.slot} is not a function pointer")
        self.prototype = prototype

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return functools.partial(self.invoke, instance)

    def _table(self, class_ptr):
        return layout.reinterpret(class_ptr, self.owner.ClassRecord).contents

    @property
    def offset(self) -> int:
        return layout.field_offset(self.owner.ClassRecord, self.slot)

    def call(self, class_ptr, *args):
        """Invoke the slot found in the class record at *class_ptr*.

        *class_ptr* may point at a subtype's class. The first argument of a
        non-static slot is the instance, passed as its address. An empty slot
        is not checked.
        """

        function = getattr(self._table(class_ptr), self.slot)
        if not self.static and args:
            args = (layout.address_of(args[0]),) + tuple(args[1:])
        return function(*args)

    def implement(self, class_ptr, function, *, runtime=None):
        """Install *function* in the slot of the class record at *class_ptr*.

        A ctypes function of the slot's prototype is stored as is. Any other
        callable is wrapped; for non-static slots it receives a borrowed view
        of the instance instead of its address.
        """

        if isinstance(function, self.prototype):
            c_function = function
        else:
            c_function = self.prototype(self._wrap(function, runtime))
        setattr(self._table(class_ptr), self.slot, c_function)
        _IMPLEMENTATIONS[(layout.address_of(class_ptr), f"{self.owner.__name__}.{self.slot}")] = c_function
        return c_function

    def _wrap(self, function, runtime):
        if self.static:
            return function
        view_type = self.owner

        def thunk(instance_address, *args):
            view = view_type.borrow(instance_address, runtime=runtime or get_runtime())
            try:
                return function(view, *args)
            finally:
                view.release()

        return thunk

    def is_implemented(self, class_ptr) -> bool:
        return bool(getattr(self._table(class_ptr), self.slot))

    def class_pointer(self, handle) -> int:
        """The class (or interface vtable) of *handle* that holds this slot."""

        if is_interface(self.owner):
            runtime = handle.runtime
            return runtime.lib.g_type_interface_peek(
                handle.class_address, self.owner.gtype(runtime)
            )
        return handle.class_address

    def invoke(self, handle, *args):
        """Dispatch through the runtime class of *handle*."""

        class_ptr = self.class_pointer(handle)
        if self.static:
            return self.call(class_ptr, *args)
        return self.call(class_ptr, handle, *args)

    def describe(self) -> dict:
        return {
            "name": self.attr,
            "slot": self.slot,
            "offset": self.offset if self.prototype is not None else None,
            "static": self.static,
        }


def register_subtype(Type, *, class_init=None, instance_init=None, runtime=None) -> int:
    """Register the wrapper *Type* as a new runtime type under its ``type_name``.

    *class_init* is called with the new class record's address (use
    :meth:`VirtualMethod.implement` there); *instance_init* with a borrowed
    view of each new instance.
    """

    runtime = runtime or get_runtime()
    parent = declared_parent(Type)
    if parent is None or is_interface(Type) or is_interface(parent):
        raise TypeError(f"{Type.__name__} must derive from a wrapped object type")
    if layout.is_partial(Type.Record) or layout.is_partial(Type.ClassRecord):
        raise TypeError(f"{Type.__name__} has a partial record and cannot be registered")

    def class_thunk(klass, data):
        if class_init is not None:
            class_init(klass)

    def instance_thunk(instance, klass):
        if instance_init is not None:
            view = Type.borrow(instance, runtime=runtime)
            try:
                instance_init(view)
            finally:
                view.release()

    c_class_init = ClassInitFunc(class_thunk)
    c_instance_init = InstanceInitFunc(instance_thunk)
    gtype = runtime.lib.g_type_register_static_simple(
        parent.gtype(runtime),
        Type.type_name.encode("utf-8"),
        ctypes.sizeof(Type.ClassRecord),
        c_class_init,
        ctypes.sizeof(Type.Record),
        c_instance_init,
        0,
    )
    if not gtype:
        raise NativeError(f"Failed to register type {Type.type_name}")
    _REGISTRATIONS[Type.type_name] = (c_class_init, c_instance_init)
    runtime.cache_type_id(Type.type_name, gtype)
    logger.debug("registered %s as gtype %d", Type.type_name, gtype)
    return gtype


__all__ = ["ClassInitFunc", "InstanceInitFunc", "VirtualMethod", "register_subtype"]

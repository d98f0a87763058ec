"""Typed property descriptors over ``g_object_get_property``/``set_property``."""
from __future__ import annotations

import logging

from .values import BoxedValue, value_kind

logger = logging.getLogger("vipsobj.runtime")


class Property:
    """A (name, value type) pair declared on a wrapped type.

    Reading or assigning the attribute on a handle goes through a boxed
    ``GValue``; an unknown name is forwarded and reported by the runtime.
    """

    descriptor_kind = "property"

    def __init__(self, name: str, value_type, *, readable=True, writable=True, doc=None):
        self.name = name
        self.value_type = value_type
        self.readable = readable
        self.writable = writable
        self.owner = None
        self.attr = None
        self.__doc__ = doc

    def __set_name__(self, owner, attr):
        self.owner = owner
        self.attr = attr

    def bind(self, owner):
        value_kind(self.value_type)

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return self.get(instance)

    def __set__(self, instance, value):
        self.set(instance, value)

    def get(self, instance):
        if not self.readable:
            raise AttributeError(f"Property {self.name!r} is not readable")
        runtime = instance.runtime
        with BoxedValue(runtime, self.value_type) as box:
            runtime.lib.g_object_get_property(
                instance.address, self.name.encode("utf-8"), box.address
            )
            return box.get()

    def set(self, instance, value) -> None:
        if not self.writable:
            raise AttributeError(f"Property {self.name!r} is read-only")
        runtime = instance.runtime
        with BoxedValue(runtime, self.value_type) as box:
            box.set(value)
            runtime.lib.g_object_set_property(
                instance.address, self.name.encode("utf-8"), box.address
            )
        logger.debug("set %s.%s", type(instance).__name__, self.name)

    def describe(self) -> dict:
        return {
            "name": self.name,
            "attribute": self.attr,
            "type": getattr(self.value_type, "__name__", str(self.value_type)),
            "readable": self.readable,
            "writable": self.writable,
        }


def get_property(instance, prop: Property):
    return prop.get(instance)


def set_property(instance, prop: Property, value) -> None:
    prop.set(instance, value)


__all__ = ["Property", "get_property", "set_property"]

"""Interface (capability) tags of wrapped types.

A wrapped type lists the interfaces it implements in its ``implements``
tuple. The lists are never written to native memory; they only decide which
upcast targets are legal.
"""
from __future__ import annotations


def is_declared(wrapper) -> bool:
    """True for wrapper classes that carry their own Layout Mirror record."""

    return isinstance(wrapper, type) and vars(wrapper).get("Record") is not None


def is_interface(wrapper) -> bool:
    return is_declared(wrapper) and bool(getattr(wrapper, "is_interface", False))


def declared_parent(wrapper):
    """Nearest declared ancestor wrapper of *wrapper*, or None for roots."""

    for base in wrapper.__mro__[1:]:
        if is_declared(base):
            return base
    return None


def ancestor_types(wrapper) -> list:
    """Declared ancestors of *wrapper*, nearest first."""

    chain = []
    parent = declared_parent(wrapper)
    while parent is not None:
        chain.append(parent)
        parent = declared_parent(parent)
    return chain


def implemented_interfaces(wrapper) -> tuple:
    """Interfaces implemented by *wrapper* or any of its ancestors."""

    seen = []
    for cls in [wrapper] + ancestor_types(wrapper):
        for iface in vars(cls).get("implements", ()):
            if iface not in seen:
                seen.append(iface)
    return tuple(seen)


def implements(wrapper, iface) -> bool:
    return iface in implemented_interfaces(wrapper)


def legal_upcast_targets(wrapper) -> list:
    """Every type a *wrapper* handle may be upcast to."""

    return ancestor_types(wrapper) + list(implemented_interfaces(wrapper))


def check_upcast_target(wrapper, target) -> None:
    """Raise ``TypeError`` unless *target* is a legal upcast target of *wrapper*."""

    if target is wrapper:
        return
    if target not in legal_upcast_targets(wrapper):
        raise TypeError(
            f"Cannot upcast {wrapper.__name__} to {getattr(target, '__name__', target)}: "
            "not an ancestor or implemented interface"
        )


def check_capability_list(wrapper) -> None:
    """Validate a wrapper's ``implements`` tuple at declaration time."""

    for iface in vars(wrapper).get("implements", ()):
        if not is_interface(iface):
            raise TypeError(
                f"{wrapper.__name__} lists {iface!r} in implements, which is not an interface"
            )
    if is_interface(wrapper) and vars(wrapper).get("implements"):
        raise TypeError(f"Interface {wrapper.__name__} cannot implement other interfaces")


__all__ = [
    "ancestor_types",
    "check_capability_list",
    "check_upcast_target",
    "declared_parent",
    "implemented_interfaces",
    "implements",
    "is_declared",
    "is_interface",
    "legal_upcast_targets",
]

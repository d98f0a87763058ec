"""Signal subscription through runtime closures.

Each :class:`Signal` names a signal and its callback signature. Connecting
wraps the Python callback in a C thunk, hands it to ``g_cclosure_new`` and
registers the closure with ``g_signal_connect_closure_by_id``. The thunk is
kept alive until the runtime destroys the closure.
"""
from __future__ import annotations

import ctypes
import itertools
import logging

logger = logging.getLogger("vipsobj.runtime")

GClosureNotify = ctypes.CFUNCTYPE(None, ctypes.c_void_p, ctypes.c_void_p)

_CLOSURES: dict[int, tuple] = {}
_TOKENS = itertools.count(1)


def _closure_destroyed(data, closure):
    _CLOSURES.pop(data or 0, None)


_DESTROY_NOTIFY = GClosureNotify(_closure_destroyed)


def live_closures() -> int:
    """Number of connected closures the runtime has not destroyed yet."""

    return len(_CLOSURES)


class Signal:
    """A (name, callback signature) pair declared on a wrapped type.

    Callbacks receive a borrowed view of the emitting instance, the signal
    arguments and the ``user_data`` given to :meth:`connect`.
    """

    descriptor_kind = "signal"

    def __init__(self, name: str, restype=None, argtypes=(), doc=None):
        self.name = name
        self.restype = restype
        self.argtypes = tuple(argtypes)
        self.prototype = ctypes.CFUNCTYPE(
            restype, ctypes.c_void_p, *self.argtypes, ctypes.c_void_p
        )
        self.owner = None
        self.attr = None
        self.__doc__ = doc

    def __set_name__(self, owner, attr):
        self.owner = owner
        self.attr = attr

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return BoundSignal(self, instance)

    def _thunk(self, instance, callback, user_data):
        runtime = instance.runtime
        view_type = self.owner

        def thunk(instance_address, *args):
            values = args[:-1]
            view = view_type.borrow(instance_address, runtime=runtime)
            try:
                result = callback(view, *values, user_data)
            finally:
                view.release()
            if self.restype is None:
                return None
            return 0 if result is None else result

        return self.prototype(thunk)

    def connect(self, instance, callback, user_data=None, *, detail=None, after=False) -> int:
        """Connect *callback* and return the runtime's handler id.

        An unknown signal yields signal id 0; the connect is still forwarded
        and the runtime's warning is the only diagnostic.
        """

        lib = instance.runtime.lib
        signal_id = lib.g_signal_lookup(self.name.encode("utf-8"), instance.instance_type())
        quark = lib.g_quark_from_string(detail.encode("utf-8")) if detail else 0
        token = next(_TOKENS)
        c_callback = self._thunk(instance, callback, user_data)
        _CLOSURES[token] = (c_callback, callback)
        closure = lib.g_cclosure_new(c_callback, token, _DESTROY_NOTIFY)
        handler_id = lib.g_signal_connect_closure_by_id(
            instance.address, signal_id, quark, closure, bool(after)
        )
        if not handler_id:
            logger.debug("connect to %s::%s was not accepted", type(instance).__name__, self.name)
            lib.g_closure_sink(closure)
        return handler_id

    def disconnect(self, instance, handler_id: int) -> None:
        instance.runtime.lib.g_signal_handler_disconnect(instance.address, handler_id)

    def is_connected(self, instance, handler_id: int) -> bool:
        return bool(
            instance.runtime.lib.g_signal_handler_is_connected(instance.address, handler_id)
        )

    def describe(self) -> dict:
        return {
            "name": self.name,
            "attribute": self.attr,
            "returns": getattr(self.restype, "__name__", None),
            "arguments": [t.__name__ for t in self.argtypes],
        }


class BoundSignal:
    """A :class:`Signal` bound to one handle."""

    def __init__(self, signal: Signal, instance):
        self.signal = signal
        self.instance = instance

    @property
    def name(self) -> str:
        return self.signal.name

    def connect(self, callback, user_data=None, *, detail=None, after=False) -> int:
        return self.signal.connect(
            self.instance, callback, user_data, detail=detail, after=after
        )

    def connect_after(self, callback, user_data=None, *, detail=None) -> int:
        return self.connect(callback, user_data, detail=detail, after=True)

    def disconnect(self, handler_id: int) -> None:
        self.signal.disconnect(self.instance, handler_id)

    def is_connected(self, handler_id: int) -> bool:
        return self.signal.is_connected(self.instance, handler_id)


__all__ = ["BoundSignal", "GClosureNotify", "Signal", "live_closures"]

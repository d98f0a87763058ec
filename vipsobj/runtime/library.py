"""Loading and calling into the native GObject/libvips runtime."""
from __future__ import annotations

import ctypes
import ctypes.util
import logging
import os
import sys

from ..constants import (
    DEBUG_ENV_VAR,
    G_LOG_LEVEL_CRITICAL,
    G_LOG_LEVEL_DEBUG,
    G_LOG_LEVEL_ERROR,
    G_LOG_LEVEL_INFO,
    G_LOG_LEVEL_MESSAGE,
    G_LOG_LEVEL_WARNING,
    LIBRARY_ENV_VARS,
    LIBRARY_NAMES,
    LOG_DOMAIN,
    MODULE_LOAD_WARNING,
)
from ..ffi import DEFAULT_DECLARATIONS, NATIVE_REGISTRY, parse_inline_declarations

logger = logging.getLogger("vipsobj.runtime")
native_logger = logging.getLogger("vipsobj.native")

GLogFunc = ctypes.CFUNCTYPE(
    None, ctypes.c_char_p, ctypes.c_int, ctypes.c_char_p, ctypes.c_void_p
)

_GLIB_LEVELS = [
    (G_LOG_LEVEL_ERROR, logging.CRITICAL),
    (G_LOG_LEVEL_CRITICAL, logging.ERROR),
    (G_LOG_LEVEL_WARNING, logging.WARNING),
    (G_LOG_LEVEL_MESSAGE, logging.INFO),
    (G_LOG_LEVEL_INFO, logging.INFO),
    (G_LOG_LEVEL_DEBUG, logging.DEBUG),
]


class NativeError(RuntimeError):
    """A native entry point reported failure."""

    def __init__(self, message, detail=None):
        self.detail = (detail or "").strip()
        if self.detail:
            message = f"{message}\n{self.detail}"
        super().__init__(message)


def glib_level_to_logging(level: int) -> int:
    for glib_level, py_level in _GLIB_LEVELS:
        if level & glib_level:
            return py_level
    return logging.DEBUG


def _open_library(key: str) -> ctypes.CDLL:
    override = os.environ.get(LIBRARY_ENV_VARS[key])
    candidates = [override] if override else []
    for name in LIBRARY_NAMES[key]:
        found = ctypes.util.find_library(name)
        candidates.append(found or name)
    errors = []
    for candidate in candidates:
        if not candidate:
            continue
        try:
            return ctypes.CDLL(candidate)
        except OSError as exc:
            errors.append(f"{candidate}: {exc}")
    raise OSError(f"Unable to load the {key} library; tried " + "; ".join(errors))


class NativeLibrary:
    """Entry points of several shared libraries behind one namespace.

    Symbols are resolved lazily. When a symbol has a registered declaration
    its ``argtypes``/``restype`` are applied, and the libraries named in the
    declaration's ``requires`` list are searched first.
    """

    def __init__(self, libraries: dict, declarations=None):
        self._libraries = dict(libraries)
        if declarations is None:
            declarations = dict(NATIVE_REGISTRY)
            for decl in parse_inline_declarations(DEFAULT_DECLARATIONS):
                declarations.setdefault(decl.name, decl)
        self._declarations = declarations

    @classmethod
    def load(cls, keys=("gobject", "glib", "vips")):
        return cls({key: _open_library(key) for key in keys})

    def declaration(self, name):
        return self._declarations.get(name)

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        decl = self._declarations.get(name)
        order = list(decl.capabilities) if decl else []
        order += [key for key in self._libraries if key not in order]
        for key in order:
            library = self._libraries.get(key)
            if library is None:
                continue
            try:
                function = getattr(library, name)
            except AttributeError:
                continue
            if decl is not None:
                decl.apply(function)
            setattr(self, name, function)
            return function
        raise AttributeError(f"No native entry point named {name!r}")


def varargs_call(function, *args):
    """Call a NULL-terminated variadic entry point."""

    return function(*args, None)


class NativeRuntime:
    """The object runtime every handle forwards to."""

    def __init__(self, lib):
        self.lib = lib
        self._type_ids: dict[str, int] = {}
        self._log_handler = None
        self._log_handler_id = None
        self.debug = os.environ.get(DEBUG_ENV_VAR, "").lower() in ("1", "true", "yes")

    @classmethod
    def load(cls):
        return cls(NativeLibrary.load())

    # -- type identifiers -------------------------------------------------

    def type_id_from_symbol(self, symbol: str) -> int:
        if symbol not in self._type_ids:
            self._type_ids[symbol] = getattr(self.lib, symbol)()
        return self._type_ids[symbol]

    def type_id(self, wrapper) -> int:
        """Return the GType for a wrapped type, cached for this runtime."""

        symbol = vars(wrapper).get("get_type_symbol")
        if symbol:
            return self.type_id_from_symbol(symbol)
        name = wrapper.type_name
        if name not in self._type_ids:
            gtype = self.lib.g_type_from_name(name.encode("utf-8"))
            if not gtype:
                raise TypeError(f"Type {name} is not registered with the runtime")
            self._type_ids[name] = gtype
        return self._type_ids[name]

    def cache_type_id(self, name: str, gtype: int) -> None:
        self._type_ids[name] = gtype

    def type_name(self, gtype: int) -> str | None:
        name = self.lib.g_type_name(gtype)
        return name.decode("utf-8") if name else None

    # -- library lifecycle ------------------------------------------------

    def init(self, argv0: str | None = None) -> None:
        """Start libvips; in debug mode also turn on leak checking."""

        argv0 = argv0 or (sys.argv[0] if sys.argv and sys.argv[0] else "vipsobj")
        if self.lib.vips_init(argv0.encode("utf-8")) != 0:
            raise NativeError("Failed to start libvips", self.error_buffer())
        if self.debug:
            os.environ["G_MESSAGES_DEBUG"] = LOG_DOMAIN
            self.leak_set(True)
        logger.debug("libvips started as %s", argv0)

    def shutdown(self) -> None:
        self.lib.vips_shutdown()
        logger.debug("libvips shut down")

    def leak_set(self, leak: bool) -> None:
        """Make libvips print a table of reference leaks at exit."""

        self.lib.vips_leak_set(1 if leak else 0)

    def error_buffer(self, clear: bool = True) -> str:
        text = self.lib.vips_error_buffer()
        if clear:
            self.lib.vips_error_clear()
        return text.decode("utf-8", "replace") if text else ""

    def error_exit(self, message: str):
        """Report *message* plus the libvips error buffer and exit."""

        detail = self.error_buffer()
        print(message, file=sys.stderr)
        if detail:
            print(detail.rstrip(), file=sys.stderr)
        self.shutdown()
        raise SystemExit(1)

    def prgname(self) -> str | None:
        name = self.lib.vips_get_prgname()
        return name.decode("utf-8") if name else None

    # -- GLib log routing -------------------------------------------------

    def install_log_handler(self, domain: str = LOG_DOMAIN) -> int:
        """Route GLib warnings for *domain* into :mod:`logging`.

        "unable to load" module warnings are dropped. Call before :meth:`init`
        so startup warnings are routed too.
        """

        def handler(log_domain, level, message, user_data):
            text = message.decode("utf-8", "replace") if message else ""
            if MODULE_LOAD_WARNING in text:
                return
            origin = log_domain.decode("utf-8") if log_domain else domain
            native_logger.log(glib_level_to_logging(level), "%s: %s", origin, text)

        self._log_handler = GLogFunc(handler)
        self._log_handler_id = self.lib.g_log_set_handler(
            domain.encode("utf-8"), G_LOG_LEVEL_WARNING, self._log_handler, None
        )
        return self._log_handler_id

    def remove_log_handler(self, domain: str = LOG_DOMAIN) -> None:
        if self._log_handler_id is None:
            return
        self.lib.g_log_remove_handler(domain.encode("utf-8"), self._log_handler_id)
        self._log_handler_id = None
        self._log_handler = None


_DEFAULT_RUNTIME: NativeRuntime | None = None


def get_runtime() -> NativeRuntime:
    """Return the process-wide runtime, loading the native libraries on first use."""

    global _DEFAULT_RUNTIME
    if _DEFAULT_RUNTIME is None:
        _DEFAULT_RUNTIME = NativeRuntime.load()
    return _DEFAULT_RUNTIME


def set_runtime(runtime: NativeRuntime | None) -> NativeRuntime | None:
    """Replace the process-wide runtime and return the previous one."""

    global _DEFAULT_RUNTIME
    previous = _DEFAULT_RUNTIME
    _DEFAULT_RUNTIME = runtime
    return previous


__all__ = [
    "GLogFunc",
    "NativeError",
    "NativeLibrary",
    "NativeRuntime",
    "get_runtime",
    "glib_level_to_logging",
    "set_runtime",
    "varargs_call",
]

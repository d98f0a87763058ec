"""Shared constant values for the vipsobj runtime."""

TRANSFER_MODES = ["none", "container", "full", "floating"]

# Fundamental GType ids (G_TYPE_MAKE_FUNDAMENTAL(x) == x << 2).
G_TYPE_FUNDAMENTAL_SHIFT = 2
G_TYPE_INVALID = 0 << G_TYPE_FUNDAMENTAL_SHIFT
G_TYPE_NONE = 1 << G_TYPE_FUNDAMENTAL_SHIFT
G_TYPE_INTERFACE = 2 << G_TYPE_FUNDAMENTAL_SHIFT
G_TYPE_CHAR = 3 << G_TYPE_FUNDAMENTAL_SHIFT
G_TYPE_UCHAR = 4 << G_TYPE_FUNDAMENTAL_SHIFT
G_TYPE_BOOLEAN = 5 << G_TYPE_FUNDAMENTAL_SHIFT
G_TYPE_INT = 6 << G_TYPE_FUNDAMENTAL_SHIFT
G_TYPE_UINT = 7 << G_TYPE_FUNDAMENTAL_SHIFT
G_TYPE_LONG = 8 << G_TYPE_FUNDAMENTAL_SHIFT
G_TYPE_ULONG = 9 << G_TYPE_FUNDAMENTAL_SHIFT
G_TYPE_INT64 = 10 << G_TYPE_FUNDAMENTAL_SHIFT
G_TYPE_UINT64 = 11 << G_TYPE_FUNDAMENTAL_SHIFT
G_TYPE_ENUM = 12 << G_TYPE_FUNDAMENTAL_SHIFT
G_TYPE_FLAGS = 13 << G_TYPE_FUNDAMENTAL_SHIFT
G_TYPE_FLOAT = 14 << G_TYPE_FUNDAMENTAL_SHIFT
G_TYPE_DOUBLE = 15 << G_TYPE_FUNDAMENTAL_SHIFT
G_TYPE_STRING = 16 << G_TYPE_FUNDAMENTAL_SHIFT
G_TYPE_POINTER = 17 << G_TYPE_FUNDAMENTAL_SHIFT
G_TYPE_BOXED = 18 << G_TYPE_FUNDAMENTAL_SHIFT
G_TYPE_PARAM = 19 << G_TYPE_FUNDAMENTAL_SHIFT
G_TYPE_OBJECT = 20 << G_TYPE_FUNDAMENTAL_SHIFT

G_CONNECT_AFTER = 1 << 0
G_CONNECT_SWAPPED = 1 << 1

G_LOG_LEVEL_ERROR = 1 << 2
G_LOG_LEVEL_CRITICAL = 1 << 3
G_LOG_LEVEL_WARNING = 1 << 4
G_LOG_LEVEL_MESSAGE = 1 << 5
G_LOG_LEVEL_INFO = 1 << 6
G_LOG_LEVEL_DEBUG = 1 << 7

LOG_DOMAIN = "VIPS"
MODULE_LOAD_WARNING = "unable to load"

LIBRARY_NAMES = {
    "vips": ["vips", "libvips.so.42", "libvips-42.dll", "libvips.42.dylib"],
    "gobject": ["gobject-2.0", "libgobject-2.0.so.0", "libgobject-2.0-0.dll"],
    "glib": ["glib-2.0", "libglib-2.0.so.0", "libglib-2.0-0.dll"],
}

LIBRARY_ENV_VARS = {
    "vips": "VIPSOBJ_LIBVIPS",
    "gobject": "VIPSOBJ_LIBGOBJECT",
    "glib": "VIPSOBJ_LIBGLIB",
}

DEBUG_ENV_VAR = "VIPSOBJ_DEBUG"

LEDGER_FILE = "vipsobj.ledger.jsonl"
KEY_FILE = "vipsobj_private_key.pem"
PUB_FILE = "vipsobj_public_key.pem"
MANIFEST_VERSION = "1.0"

TYPE_COLORS = {
    "object": "#90CAF9",
    "interface": "#C5E1A5",
    "subtype": "#FFE082",
}

__all__ = [
    "TRANSFER_MODES",
    "G_TYPE_FUNDAMENTAL_SHIFT",
    "G_TYPE_INVALID",
    "G_TYPE_NONE",
    "G_TYPE_INTERFACE",
    "G_TYPE_CHAR",
    "G_TYPE_UCHAR",
    "G_TYPE_BOOLEAN",
    "G_TYPE_INT",
    "G_TYPE_UINT",
    "G_TYPE_LONG",
    "G_TYPE_ULONG",
    "G_TYPE_INT64",
    "G_TYPE_UINT64",
    "G_TYPE_ENUM",
    "G_TYPE_FLAGS",
    "G_TYPE_FLOAT",
    "G_TYPE_DOUBLE",
    "G_TYPE_STRING",
    "G_TYPE_POINTER",
    "G_TYPE_BOXED",
    "G_TYPE_PARAM",
    "G_TYPE_OBJECT",
    "G_CONNECT_AFTER",
    "G_CONNECT_SWAPPED",
    "G_LOG_LEVEL_ERROR",
    "G_LOG_LEVEL_CRITICAL",
    "G_LOG_LEVEL_WARNING",
    "G_LOG_LEVEL_MESSAGE",
    "G_LOG_LEVEL_INFO",
    "G_LOG_LEVEL_DEBUG",
    "LOG_DOMAIN",
    "MODULE_LOAD_WARNING",
    "LIBRARY_NAMES",
    "LIBRARY_ENV_VARS",
    "DEBUG_ENV_VAR",
    "LEDGER_FILE",
    "KEY_FILE",
    "PUB_FILE",
    "MANIFEST_VERSION",
    "TYPE_COLORS",
]

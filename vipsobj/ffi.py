"""Native entry point declarations and registry."""

from dataclasses import dataclass
import ctypes
import json
import re

from .constants import TRANSFER_MODES

VARIADIC = "..."

CTYPE_NAMES = {
    "void": None,
    "gpointer": ctypes.c_void_p,
    "gconstpointer": ctypes.c_void_p,
    "GCallback": ctypes.c_void_p,
    "GType": ctypes.c_size_t,
    "gsize": ctypes.c_size_t,
    "GQuark": ctypes.c_uint32,
    "gint": ctypes.c_int,
    "guint": ctypes.c_uint,
    "glong": ctypes.c_long,
    "gulong": ctypes.c_ulong,
    "gint64": ctypes.c_int64,
    "guint64": ctypes.c_uint64,
    "gboolean": ctypes.c_int,
    "gfloat": ctypes.c_float,
    "gdouble": ctypes.c_double,
    "utf8": ctypes.c_char_p,
}


def ctype_for(name):
    """Return the ctypes type for a declared C type name."""

    try:
        return CTYPE_NAMES[name]
    except KeyError:
        raise TypeError(f"Unknown native type name: {name!r}") from None


@dataclass
class NativeDeclaration:
    """Metadata describing a native entry point of the object runtime."""

    name: str
    transfer: str
    arg_types: list
    return_type: str
    capabilities: list | None = None

    def __post_init__(self):
        self.name = (self.name or "").strip()
        if not self.name:
            raise ValueError("Native declaration requires a name")
        self.transfer = (self.transfer or "").strip().lower() or "none"
        if self.transfer not in TRANSFER_MODES:
            raise ValueError(
                f"Native declaration {self.name} has unknown transfer mode: {self.transfer}"
            )
        self.arg_types = [a.strip() for a in (self.arg_types or []) if a.strip()]
        if VARIADIC in self.arg_types[:-1]:
            raise ValueError(
                f"Native declaration {self.name} may only end with '{VARIADIC}'"
            )
        self.return_type = (self.return_type or "").strip() or "void"
        for type_name in self.fixed_arg_types + [self.return_type]:
            ctype_for(type_name)
        caps = self.capabilities or []
        self.capabilities = [c.strip() for c in caps if c.strip()]

    @property
    def variadic(self):
        return bool(self.arg_types) and self.arg_types[-1] == VARIADIC

    @property
    def fixed_arg_types(self):
        if self.variadic:
            return self.arg_types[:-1]
        return list(self.arg_types)

    @property
    def arity(self):
        return len(self.fixed_arg_types)

    def apply(self, function):
        """Set ``argtypes``/``restype`` on a ctypes function object."""

        function.argtypes = [ctype_for(t) for t in self.fixed_arg_types]
        function.restype = ctype_for(self.return_type)
        return function

    def to_dict(self):
        return {
            "name": self.name,
            "transfer": self.transfer,
            "arg_types": list(self.arg_types),
            "return_type": self.return_type,
            "capabilities": list(self.capabilities),
        }

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise TypeError("Native declaration must be built from a mapping")
        name = data.get("name")
        transfer = data.get("transfer")
        arg_types = data.get("arg_types") or data.get("args") or []
        return_type = data.get("return_type") or data.get("returns")
        capabilities = data.get("capabilities") or data.get("requires") or []
        return cls(name, transfer, arg_types, return_type, capabilities)


NATIVE_REGISTRY = {}


INLINE_DECLARATION_PATTERN = re.compile(
    r"^\s*(?P<name>[A-Za-z_][A-Za-z0-9_]*)\s*:\s*(?P<transfer>[a-z]+)\s*"
    r"\((?P<args>[^)]*)\)\s*->\s*(?P<ret>[^|]+?)\s*"
    r"(?:\|\s*requires\s*(?P<caps>.+))?$"
)


def parse_inline_declarations(schema):
    """Parse the one-line-per-symbol declaration schema."""

    if not schema:
        return []

    declarations = []
    for line in schema.splitlines():
        entry = line.strip()
        if not entry or entry.startswith("#"):
            continue
        match = INLINE_DECLARATION_PATTERN.match(entry)
        if not match:
            raise ValueError(f"Invalid inline native declaration: {entry}")
        args = match.group("args").strip()
        arg_types = [a.strip() for a in args.split(",") if a.strip()] if args else []
        caps_text = match.group("caps")
        caps = []
        if caps_text:
            caps = [c.strip() for c in caps_text.split(",") if c.strip()]
        declarations.append(
            NativeDeclaration(
                name=match.group("name"),
                transfer=match.group("transfer"),
                arg_types=arg_types,
                return_type=match.group("ret").strip(),
                capabilities=caps,
            )
        )
    return declarations


def _normalize_declarations(spec):
    """Normalize any supported declaration spec into NativeDeclaration objects."""

    if spec is None:
        return []
    if isinstance(spec, NativeDeclaration):
        return [spec]
    if isinstance(spec, str):
        trimmed = spec.strip()
        if not trimmed:
            return []
        if trimmed[0] in "[{":
            return _normalize_declarations(json.loads(trimmed))
        return parse_inline_declarations(trimmed)
    if isinstance(spec, dict):
        if "declarations" in spec and isinstance(spec["declarations"], list):
            return _normalize_declarations(spec["declarations"])
        return [NativeDeclaration.from_dict(spec)]
    if isinstance(spec, (list, tuple)):
        decls = []
        for item in spec:
            decls.extend(_normalize_declarations(item))
        return decls
    raise TypeError(f"Unsupported native declaration spec type: {type(spec)!r}")


def register_native_declarations(spec, *, reset=False):
    """Register one or more native declarations in the global registry."""

    if reset:
        NATIVE_REGISTRY.clear()
    for decl in _normalize_declarations(spec):
        if decl.name in NATIVE_REGISTRY:
            raise ValueError(f"Duplicate native declaration for {decl.name}")
        NATIVE_REGISTRY[decl.name] = decl


def clear_native_registry():
    """Remove all registered native declarations."""

    NATIVE_REGISTRY.clear()


def get_registered_native_declarations():
    """Return a snapshot of the currently registered declarations."""

    return {name: decl for name, decl in NATIVE_REGISTRY.items()}


DEFAULT_DECLARATIONS = """
# type system
g_type_from_name:none(utf8)->GType|requires gobject
g_type_name:none(GType)->utf8|requires gobject
g_type_parent:none(GType)->GType|requires gobject
g_type_is_a:none(GType,GType)->gboolean|requires gobject
g_type_query:none(GType,gpointer)->void|requires gobject
g_type_class_ref:none(GType)->gpointer|requires gobject
g_type_class_peek:none(GType)->gpointer|requires gobject
g_type_class_unref:none(gpointer)->void|requires gobject
g_type_interface_peek:none(gpointer,GType)->gpointer|requires gobject
g_type_register_static_simple:none(GType,utf8,guint,GCallback,guint,GCallback,guint)->GType|requires gobject
g_object_get_type:none()->GType|requires gobject
g_initially_unowned_get_type:none()->GType|requires gobject
g_type_module_get_type:none()->GType|requires gobject
g_type_plugin_get_type:none()->GType|requires gobject

# lifetime
g_object_new:full(GType,...)->gpointer|requires gobject
g_object_ref:full(gpointer)->gpointer|requires gobject
g_object_unref:none(gpointer)->void|requires gobject
g_object_ref_sink:full(gpointer)->gpointer|requires gobject

# properties
g_object_get_property:none(gpointer,utf8,gpointer)->void|requires gobject
g_object_set_property:none(gpointer,utf8,gpointer)->void|requires gobject
g_value_init:none(gpointer,GType)->gpointer|requires gobject
g_value_unset:none(gpointer)->void|requires gobject
g_value_set_boolean:none(gpointer,gboolean)->void|requires gobject
g_value_get_boolean:none(gpointer)->gboolean|requires gobject
g_value_set_int:none(gpointer,gint)->void|requires gobject
g_value_get_int:none(gpointer)->gint|requires gobject
g_value_set_uint64:none(gpointer,guint64)->void|requires gobject
g_value_get_uint64:none(gpointer)->guint64|requires gobject
g_value_set_double:none(gpointer,gdouble)->void|requires gobject
g_value_get_double:none(gpointer)->gdouble|requires gobject
g_value_set_string:none(gpointer,utf8)->void|requires gobject
g_value_get_string:none(gpointer)->utf8|requires gobject
g_value_set_enum:none(gpointer,gint)->void|requires gobject
g_value_get_enum:none(gpointer)->gint|requires gobject
g_value_set_flags:none(gpointer,guint)->void|requires gobject
g_value_get_flags:none(gpointer)->guint|requires gobject
g_value_set_object:none(gpointer,gpointer)->void|requires gobject
g_value_get_object:none(gpointer)->gpointer|requires gobject

# signals
g_signal_lookup:none(utf8,GType)->guint|requires gobject
g_quark_from_string:none(utf8)->GQuark|requires glib
g_cclosure_new:floating(GCallback,gpointer,GCallback)->gpointer|requires gobject
g_closure_sink:none(gpointer)->void|requires gobject
g_signal_connect_closure_by_id:none(gpointer,guint,GQuark,gpointer,gboolean)->gulong|requires gobject
g_signal_handler_disconnect:none(gpointer,gulong)->void|requires gobject
g_signal_handler_is_connected:none(gpointer,gulong)->gboolean|requires gobject

# logging
g_log_set_handler:none(utf8,guint,GCallback,gpointer)->guint|requires glib
g_log_remove_handler:none(utf8,guint)->void|requires glib

# libvips
vips_init:none(utf8)->gint|requires vips
vips_shutdown:none()->void|requires vips
vips_leak_set:none(gboolean)->void|requires vips
vips_error_buffer:none()->utf8|requires vips
vips_error_clear:none()->void|requires vips
vips_get_prgname:none()->utf8|requires vips
vips_object_get_type:none()->GType|requires vips
vips_image_get_type:none()->GType|requires vips
vips_operation_get_type:none()->GType|requires vips
vips_foreign_get_type:none()->GType|requires vips
vips_foreign_load_get_type:none()->GType|requires vips
vips_foreign_save_get_type:none()->GType|requires vips
vips_connection_get_type:none()->GType|requires vips
vips_source_get_type:none()->GType|requires vips
vips_source_custom_get_type:none()->GType|requires vips
vips_target_get_type:none()->GType|requires vips
vips_target_custom_get_type:none()->GType|requires vips
vips_region_get_type:none()->GType|requires vips
vips_interpolate_get_type:none()->GType|requires vips
vips_access_get_type:none()->GType|requires vips
vips_fail_on_get_type:none()->GType|requires vips
vips_band_format_get_type:none()->GType|requires vips
vips_coding_get_type:none()->GType|requires vips
vips_interpretation_get_type:none()->GType|requires vips
vips_demand_style_get_type:none()->GType|requires vips
vips_foreign_keep_get_type:none()->GType|requires vips
vips_foreign_heif_compression_get_type:none()->GType|requires vips
vips_foreign_heif_encoder_get_type:none()->GType|requires vips
vips_foreign_subsample_get_type:none()->GType|requires vips
vips_image_new_from_file:full(utf8,...)->gpointer|requires vips
vips_image_write_to_file:none(gpointer,utf8,...)->gint|requires vips
vips_avg:none(gpointer,gpointer,...)->gint|requires vips
vips_interpolate_new:full(utf8)->gpointer|requires vips
vips_source_new_from_file:full(utf8)->gpointer|requires vips
vips_source_custom_new:full()->gpointer|requires vips
vips_target_new_to_file:full(utf8)->gpointer|requires vips
vips_target_custom_new:full()->gpointer|requires vips
"""


__all__ = [
    "CTYPE_NAMES",
    "DEFAULT_DECLARATIONS",
    "NATIVE_REGISTRY",
    "NativeDeclaration",
    "VARIADIC",
    "clear_native_registry",
    "ctype_for",
    "get_registered_native_declarations",
    "parse_inline_declarations",
    "register_native_declarations",
]

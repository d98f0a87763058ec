"""Layout Mirror records for GObject and libvips instance and class structs.

Every record embeds its parent record as its first field, so a pointer to a
subtype record is a valid pointer to each ancestor record. Records marked
``_partial_`` mirror only the leading, public fields of the native struct:
they may be read through a pointer but never sized, allocated or extended.
"""
from __future__ import annotations

from ctypes import (
    CFUNCTYPE,
    POINTER,
    Structure,
    Union,
    c_char_p,
    c_double,
    c_float,
    c_int,
    c_int64,
    c_long,
    c_short,
    c_size_t,
    c_uint,
    c_uint32,
    c_uint64,
    c_ulong,
    c_void_p,
)

gpointer = c_void_p
GType = c_size_t

# GLib / GObject function pointer prototypes.
VoidFunc = CFUNCTYPE(None)
ObjectFunc = CFUNCTYPE(None, gpointer)
ObjectIntFunc = CFUNCTYPE(c_int, gpointer)
ObjectDataFunc = CFUNCTYPE(None, gpointer, gpointer)
ObjectDataIntFunc = CFUNCTYPE(c_int, gpointer, gpointer)
ConstructorFunc = CFUNCTYPE(gpointer, GType, c_uint, gpointer)
PropertyFunc = CFUNCTYPE(None, gpointer, c_uint, gpointer, gpointer)
DispatchPropertiesChangedFunc = CFUNCTYPE(None, gpointer, c_uint, gpointer)
CompleteTypeInfoFunc = CFUNCTYPE(None, gpointer, GType, gpointer, gpointer)
CompleteInterfaceInfoFunc = CFUNCTYPE(None, gpointer, GType, GType, gpointer)

# libvips prototypes.
NewFromStringFunc = CFUNCTYPE(gpointer, c_char_p)
OutputToArgFunc = CFUNCTYPE(c_int, gpointer, c_char_p)
ProgressFunc = CFUNCTYPE(None, gpointer, gpointer, gpointer)
FilenameIntFunc = CFUNCTYPE(c_int, c_char_p)
BufferIsAFunc = CFUNCTYPE(c_int, gpointer, c_size_t)
SourceReadFunc = CFUNCTYPE(c_int64, gpointer, gpointer, c_size_t)
SourceSeekFunc = CFUNCTYPE(c_int64, gpointer, c_int64, c_int)
CustomReadFunc = CFUNCTYPE(c_int64, gpointer, gpointer, c_int64)
InterpolateFunc = CFUNCTYPE(None, gpointer, gpointer, gpointer, c_double, c_double)


# --- type system roots -----------------------------------------------------

class GTypeClass(Structure):
    _fields_ = [("g_type", GType)]


class GTypeInstance(Structure):
    _fields_ = [("g_class", POINTER(GTypeClass))]


class GTypeInterface(Structure):
    _fields_ = [("g_type", GType), ("g_instance_type", GType)]


class GTypeQuery(Structure):
    _fields_ = [
        ("type", GType),
        ("type_name", c_char_p),
        ("class_size", c_uint),
        ("instance_size", c_uint),
    ]


class _GValueData(Union):
    _fields_ = [
        ("v_int", c_int),
        ("v_uint", c_uint),
        ("v_long", c_long),
        ("v_ulong", c_ulong),
        ("v_int64", c_int64),
        ("v_uint64", c_uint64),
        ("v_float", c_float),
        ("v_double", c_double),
        ("v_pointer", gpointer),
    ]


class GValue(Structure):
    _fields_ = [("g_type", GType), ("data", _GValueData * 2)]


# --- GObject ---------------------------------------------------------------

class GObject(Structure):
    _fields_ = [
        ("g_type_instance", GTypeInstance),
        ("ref_count", c_uint),
        ("qdata", gpointer),
    ]


class GObjectClass(Structure):
    _fields_ = [
        ("g_type_class", GTypeClass),
        ("construct_properties", gpointer),
        ("constructor", ConstructorFunc),
        ("set_property", PropertyFunc),
        ("get_property", PropertyFunc),
        ("dispose", ObjectFunc),
        ("finalize", ObjectFunc),
        ("dispatch_properties_changed", DispatchPropertiesChangedFunc),
        ("notify", ObjectDataFunc),
        ("constructed", ObjectFunc),
        ("flags", c_size_t),
        ("n_construct_properties", c_size_t),
        ("pspecs", gpointer),
        ("n_pspecs", c_size_t),
        ("pdummy", gpointer * 3),
    ]


class GInitiallyUnowned(Structure):
    _fields_ = [("parent_instance", GObject)]


class GInitiallyUnownedClass(Structure):
    _fields_ = [("parent_class", GObjectClass)]


class GTypeModule(Structure):
    _fields_ = [
        ("parent_instance", GObject),
        ("use_count", c_uint),
        ("type_infos", gpointer),
        ("interface_infos", gpointer),
        ("name", c_char_p),
    ]


class GTypeModuleClass(Structure):
    _fields_ = [
        ("parent_class", GObjectClass),
        ("load", ObjectIntFunc),
        ("unload", ObjectFunc),
        ("reserved1", VoidFunc),
        ("reserved2", VoidFunc),
        ("reserved3", VoidFunc),
        ("reserved4", VoidFunc),
    ]


class GTypePlugin(Structure):
    """Opaque interface instance; never read through."""

    _fields_ = []


class GTypePluginClass(Structure):
    _fields_ = [
        ("base_iface", GTypeInterface),
        ("use_plugin", ObjectFunc),
        ("unuse_plugin", ObjectFunc),
        ("complete_type_info", CompleteTypeInfoFunc),
        ("complete_interface_info", CompleteInterfaceInfoFunc),
    ]


# --- libvips ---------------------------------------------------------------

class VipsRect(Structure):
    _fields_ = [
        ("left", c_int),
        ("top", c_int),
        ("width", c_int),
        ("height", c_int),
    ]


class VipsObject(Structure):
    _fields_ = [
        ("parent_instance", GObject),
        ("constructed", c_int),
        ("static_object", c_int),
        ("argument_table", gpointer),
        ("nickname", c_char_p),
        ("description", c_char_p),
        ("preclose", c_int),
        ("close", c_int),
        ("postclose", c_int),
        ("local_memory", c_size_t),
    ]


class VipsObjectClass(Structure):
    _fields_ = [
        ("parent_class", GObjectClass),
        ("build", ObjectIntFunc),
        ("postbuild", ObjectDataIntFunc),
        ("summary_class", ObjectDataFunc),
        ("summary", ObjectDataFunc),
        ("dump", ObjectDataFunc),
        ("sanity", ObjectDataFunc),
        ("rewind", ObjectFunc),
        ("preclose", ObjectFunc),
        ("close", ObjectFunc),
        ("postclose", ObjectFunc),
        ("new_from_string", NewFromStringFunc),
        ("to_string", ObjectDataFunc),
        ("output_needs_arg", c_int),
        ("output_to_arg", OutputToArgFunc),
        ("nickname", c_char_p),
        ("description", c_char_p),
        ("argument_table", gpointer),
        ("argument_table_traverse", gpointer),
        ("argument_table_traverse_gtype", GType),
        ("deprecated", c_int),
        ("_vips_reserved1", VoidFunc),
        ("_vips_reserved2", VoidFunc),
        ("_vips_reserved3", VoidFunc),
        ("_vips_reserved4", VoidFunc),
    ]


class VipsImage(Structure):
    _partial_ = True
    _fields_ = [
        ("parent_instance", VipsObject),
        ("Xsize", c_int),
        ("Ysize", c_int),
        ("Bands", c_int),
        ("BandFmt", c_int),
        ("Coding", c_int),
        ("Type", c_int),
        ("Xres", c_double),
        ("Yres", c_double),
        ("Xoffset", c_int),
        ("Yoffset", c_int),
        ("Length", c_int),
        ("Compression", c_short),
        ("Level", c_short),
        ("Bbits", c_int),
        ("time_info", gpointer),
        ("Hist", c_char_p),
        ("filename", c_char_p),
        ("data", gpointer),
        ("kill", c_int),
    ]


class VipsImageClass(Structure):
    _fields_ = [
        ("parent_class", VipsObjectClass),
        ("preeval", ProgressFunc),
        ("eval", ProgressFunc),
        ("posteval", ProgressFunc),
        ("written", ProgressFunc),
        ("invalidate", ObjectDataFunc),
        ("minimise", ObjectDataFunc),
    ]


class VipsOperation(Structure):
    _fields_ = [
        ("parent_instance", VipsObject),
        ("hash", c_uint),
        ("found_hash", c_int),
        ("pixels", c_int),
    ]


class VipsOperationClass(Structure):
    _fields_ = [
        ("parent_class", VipsObjectClass),
        ("usage", ObjectDataFunc),
        ("get_flags", ObjectIntFunc),
        ("flags", c_int),
        ("invalidate", ObjectFunc),
    ]


class VipsForeign(Structure):
    _fields_ = [("parent_object", VipsOperation)]


class VipsForeignClass(Structure):
    _fields_ = [
        ("parent_class", VipsOperationClass),
        ("priority", c_int),
        ("suffs", POINTER(c_char_p)),
    ]


class VipsForeignLoad(Structure):
    _partial_ = True
    _fields_ = [
        ("parent_object", VipsForeign),
        ("memory", c_int),
        ("access", c_int),
        ("flags", c_int),
        ("fail_on", c_int),
        ("fail", c_int),
        ("sequential", c_int),
        ("out", gpointer),
    ]


class VipsForeignLoadClass(Structure):
    _fields_ = [
        ("parent_class", VipsForeignClass),
        ("is_a", FilenameIntFunc),
        ("is_a_buffer", BufferIsAFunc),
        ("is_a_source", ObjectIntFunc),
        ("get_flags_filename", FilenameIntFunc),
        ("get_flags", ObjectIntFunc),
        ("header", ObjectIntFunc),
        ("load", ObjectIntFunc),
    ]


class VipsForeignSave(Structure):
    _partial_ = True
    _fields_ = [("parent_object", VipsForeign)]


class VipsForeignSaveClass(Structure):
    _partial_ = True
    _fields_ = [("parent_class", VipsForeignClass)]


class VipsConnection(Structure):
    _fields_ = [
        ("parent_object", VipsObject),
        ("descriptor", c_int),
        ("tracked_descriptor", c_int),
        ("close_descriptor", c_int),
        ("filename", c_char_p),
    ]


class VipsConnectionClass(Structure):
    _fields_ = [("parent_class", VipsObjectClass)]


class VipsSource(Structure):
    _partial_ = True
    _fields_ = [
        ("parent_object", VipsConnection),
        ("decode", c_int),
        ("have_tested_seek", c_int),
        ("is_pipe", c_int),
        ("read_position", c_int64),
        ("length", c_int64),
    ]


class VipsSourceClass(Structure):
    _fields_ = [
        ("parent_class", VipsConnectionClass),
        ("read", SourceReadFunc),
        ("seek", SourceSeekFunc),
    ]


class VipsSourceCustom(Structure):
    _partial_ = True
    _fields_ = [("parent_object", VipsSource)]


class VipsSourceCustomClass(Structure):
    _fields_ = [
        ("parent_class", VipsSourceClass),
        ("read", CustomReadFunc),
        ("seek", SourceSeekFunc),
    ]


class VipsTarget(Structure):
    _partial_ = True
    _fields_ = [
        ("parent_object", VipsConnection),
        ("memory", c_int),
        ("ended", c_int),
    ]


class VipsTargetClass(Structure):
    _partial_ = True
    _fields_ = [("parent_class", VipsConnectionClass)]


class VipsTargetCustom(Structure):
    _partial_ = True
    _fields_ = [("parent_object", VipsTarget)]


class VipsTargetCustomClass(Structure):
    _partial_ = True
    _fields_ = [("parent_class", VipsTargetClass)]


class VipsRegion(Structure):
    _partial_ = True
    _fields_ = [
        ("parent_object", VipsObject),
        ("im", gpointer),
        ("valid", VipsRect),
    ]


class VipsRegionClass(Structure):
    _fields_ = [("parent_class", VipsObjectClass)]


class VipsInterpolate(Structure):
    _fields_ = [("parent_object", VipsObject)]


class VipsInterpolateClass(Structure):
    _fields_ = [
        ("parent_class", VipsObjectClass),
        ("interpolate", InterpolateFunc),
        ("get_window_size", ObjectIntFunc),
        ("window_size", c_int),
        ("get_window_offset", ObjectIntFunc),
        ("window_offset", c_int),
    ]


__all__ = [
    "GInitiallyUnowned",
    "GInitiallyUnownedClass",
    "GObject",
    "GObjectClass",
    "GType",
    "GTypeClass",
    "GTypeInstance",
    "GTypeInterface",
    "GTypeModule",
    "GTypeModuleClass",
    "GTypePlugin",
    "GTypePluginClass",
    "GTypeQuery",
    "GValue",
    "VipsConnection",
    "VipsConnectionClass",
    "VipsForeign",
    "VipsForeignClass",
    "VipsForeignLoad",
    "VipsForeignLoadClass",
    "VipsForeignSave",
    "VipsForeignSaveClass",
    "VipsImage",
    "VipsImageClass",
    "VipsInterpolate",
    "VipsInterpolateClass",
    "VipsObject",
    "VipsObjectClass",
    "VipsOperation",
    "VipsOperationClass",
    "VipsRect",
    "VipsRegion",
    "VipsRegionClass",
    "VipsSource",
    "VipsSourceClass",
    "VipsSourceCustom",
    "VipsSourceCustomClass",
    "VipsTarget",
    "VipsTargetClass",
    "VipsTargetCustom",
    "VipsTargetCustomClass",
    "gpointer",
]

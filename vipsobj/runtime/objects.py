"""Wrapped GObject and libvips types.

Each class pairs a Layout Mirror instance record with its class record and
declares the properties, signals and virtual method slots the native type
introduces. Inherited members come from the Python base class.
"""
from __future__ import annotations

from ctypes import c_int, c_int64, c_void_p

from . import records
from .core import Interface, ObjectHandle
from .enums import Access, FailOn, ForeignKeep
from .library import NativeError, get_runtime
from .properties import Property
from .signals import Signal
from .vfuncs import VirtualMethod


def _wrap_new(cls, runtime, address, what):
    if not address:
        raise NativeError(f"Failed to create {what}", runtime.error_buffer())
    return cls(address, runtime=runtime)


# --- GObject ---------------------------------------------------------------

class Object(ObjectHandle):
    Record = records.GObject
    ClassRecord = records.GObjectClass
    type_name = "GObject"
    get_type_symbol = "g_object_get_type"

    notify = Signal("notify", argtypes=(c_void_p,), doc="A property changed; detail is its name.")

    do_constructor = VirtualMethod(static=True)
    do_set_property = VirtualMethod()
    do_get_property = VirtualMethod()
    do_dispose = VirtualMethod()
    do_finalize = VirtualMethod()
    do_dispatch_properties_changed = VirtualMethod()
    do_notify = VirtualMethod()
    do_constructed = VirtualMethod()


class InitiallyUnowned(Object):
    """Objects created with a floating reference that the first owner sinks."""

    Record = records.GInitiallyUnowned
    ClassRecord = records.GInitiallyUnownedClass
    type_name = "GInitiallyUnowned"
    get_type_symbol = "g_initially_unowned_get_type"
    floating = True


class TypePlugin(Interface):
    Record = records.GTypePlugin
    ClassRecord = records.GTypePluginClass
    type_name = "GTypePlugin"
    get_type_symbol = "g_type_plugin_get_type"

    do_use_plugin = VirtualMethod()
    do_unuse_plugin = VirtualMethod()
    do_complete_type_info = VirtualMethod()
    do_complete_interface_info = VirtualMethod()


class TypeModule(Object):
    Record = records.GTypeModule
    ClassRecord = records.GTypeModuleClass
    type_name = "GTypeModule"
    get_type_symbol = "g_type_module_get_type"
    implements = (TypePlugin,)

    do_load = VirtualMethod()
    do_unload = VirtualMethod()


# --- libvips ---------------------------------------------------------------

class VipsObject(Object):
    """Base of every libvips object."""

    Record = records.VipsObject
    ClassRecord = records.VipsObjectClass
    type_name = "VipsObject"
    get_type_symbol = "vips_object_get_type"

    nickname = Property("nickname", str, doc="Class nickname")
    description = Property("description", str, doc="Class description")

    postbuild = Signal("postbuild", restype=c_int)
    preclose = Signal("preclose")
    close = Signal("close")
    postclose = Signal("postclose")

    do_build = VirtualMethod()
    do_postbuild = VirtualMethod()
    do_summary_class = VirtualMethod(static=True)
    do_summary = VirtualMethod()
    do_dump = VirtualMethod()
    do_sanity = VirtualMethod()
    do_rewind = VirtualMethod()
    do_preclose = VirtualMethod()
    do_close = VirtualMethod()
    do_postclose = VirtualMethod()
    do_new_from_string = VirtualMethod(static=True)
    do_to_string = VirtualMethod()
    do_output_to_arg = VirtualMethod()


class Operation(VipsObject):
    Record = records.VipsOperation
    ClassRecord = records.VipsOperationClass
    type_name = "VipsOperation"
    get_type_symbol = "vips_operation_get_type"

    invalidate = Signal("invalidate")

    do_usage = VirtualMethod()
    do_get_flags = VirtualMethod()
    do_invalidate = VirtualMethod()


class Foreign(Operation):
    Record = records.VipsForeign
    ClassRecord = records.VipsForeignClass
    type_name = "VipsForeign"
    get_type_symbol = "vips_foreign_get_type"


class ForeignLoad(Foreign):
    Record = records.VipsForeignLoad
    ClassRecord = records.VipsForeignLoadClass
    type_name = "VipsForeignLoad"
    get_type_symbol = "vips_foreign_load_get_type"

    memory = Property("memory", bool)
    access = Property("access", Access)
    fail_on = Property("fail-on", FailOn)
    revalidate = Property("revalidate", bool)
    sequential = Property("sequential", bool)
    disc = Property("disc", bool)

    do_is_a = VirtualMethod(static=True)
    do_is_a_buffer = VirtualMethod(static=True)
    do_is_a_source = VirtualMethod(static=True)
    do_get_flags_filename = VirtualMethod(static=True)
    do_get_flags = VirtualMethod()
    do_header = VirtualMethod()
    do_load = VirtualMethod()


class ForeignSave(Foreign):
    Record = records.VipsForeignSave
    ClassRecord = records.VipsForeignSaveClass
    type_name = "VipsForeignSave"
    get_type_symbol = "vips_foreign_save_get_type"

    keep = Property("keep", ForeignKeep)
    page_height = Property("page-height", int)
    profile = Property("profile", str)


class Connection(VipsObject):
    Record = records.VipsConnection
    ClassRecord = records.VipsConnectionClass
    type_name = "VipsConnection"
    get_type_symbol = "vips_connection_get_type"

    filename = Property("filename", str, writable=False)
    descriptor = Property("descriptor", int, writable=False)


class Source(Connection):
    Record = records.VipsSource
    ClassRecord = records.VipsSourceClass
    type_name = "VipsSource"
    get_type_symbol = "vips_source_get_type"

    do_read = VirtualMethod()
    do_seek = VirtualMethod()

    @classmethod
    def new_from_file(cls, path: str, runtime=None):
        runtime = runtime or get_runtime()
        address = runtime.lib.vips_source_new_from_file(path.encode("utf-8"))
        return _wrap_new(cls, runtime, address, f"source from {path}")


class SourceCustom(Source):
    """A source whose reads and seeks are answered by signal handlers."""

    Record = records.VipsSourceCustom
    ClassRecord = records.VipsSourceCustomClass
    type_name = "VipsSourceCustom"
    get_type_symbol = "vips_source_custom_get_type"

    read = Signal("read", restype=c_int64, argtypes=(c_void_p, c_int64))
    seek = Signal("seek", restype=c_int64, argtypes=(c_int64, c_int))

    do_read = VirtualMethod()
    do_seek = VirtualMethod()

    @classmethod
    def new(cls, runtime=None):
        runtime = runtime or get_runtime()
        return _wrap_new(cls, runtime, runtime.lib.vips_source_custom_new(), "custom source")


class Target(Connection):
    Record = records.VipsTarget
    ClassRecord = records.VipsTargetClass
    type_name = "VipsTarget"
    get_type_symbol = "vips_target_get_type"

    @classmethod
    def new_to_file(cls, path: str, runtime=None):
        runtime = runtime or get_runtime()
        address = runtime.lib.vips_target_new_to_file(path.encode("utf-8"))
        return _wrap_new(cls, runtime, address, f"target to {path}")


class TargetCustom(Target):
    Record = records.VipsTargetCustom
    ClassRecord = records.VipsTargetCustomClass
    type_name = "VipsTargetCustom"
    get_type_symbol = "vips_target_custom_get_type"

    write = Signal("write", restype=c_int64, argtypes=(c_void_p, c_int64))
    finish = Signal("finish")
    end = Signal("end", restype=c_int)
    read = Signal("read", restype=c_int64, argtypes=(c_void_p, c_int64))
    seek = Signal("seek", restype=c_int64, argtypes=(c_int64, c_int))

    @classmethod
    def new(cls, runtime=None):
        runtime = runtime or get_runtime()
        return _wrap_new(cls, runtime, runtime.lib.vips_target_custom_new(), "custom target")


class Region(VipsObject):
    Record = records.VipsRegion
    ClassRecord = records.VipsRegionClass
    type_name = "VipsRegion"
    get_type_symbol = "vips_region_get_type"


class Interpolate(VipsObject):
    Record = records.VipsInterpolate
    ClassRecord = records.VipsInterpolateClass
    type_name = "VipsInterpolate"
    get_type_symbol = "vips_interpolate_get_type"

    do_interpolate = VirtualMethod()
    do_get_window_size = VirtualMethod()
    do_get_window_offset = VirtualMethod()

    @classmethod
    def new(cls, name: str, runtime=None):
        """Look up an interpolator by nickname, e.g. ``"bilinear"``."""

        runtime = runtime or get_runtime()
        address = runtime.lib.vips_interpolate_new(name.encode("utf-8"))
        return _wrap_new(cls, runtime, address, f"interpolator {name}")


__all__ = [
    "Connection",
    "Foreign",
    "ForeignLoad",
    "ForeignSave",
    "InitiallyUnowned",
    "Interpolate",
    "Object",
    "Operation",
    "Region",
    "Source",
    "SourceCustom",
    "Target",
    "TargetCustom",
    "TypeModule",
    "TypePlugin",
    "VipsObject",
]

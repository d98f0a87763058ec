"""A fake GObject/libvips library for exercising the bindings without libvips.

``FakeGObject`` answers the same entry points ``NativeRuntime`` calls, over
real ``ctypes`` memory: instances and class records are byte buffers laid out
by the Layout Mirror records, so addresses, vtable slots and ``ref_count``
fields behave as they would natively.
"""

from __future__ import annotations

import ctypes
from enum import IntFlag
import itertools

import pytest

from vipsobj.constants import (
    G_TYPE_BOOLEAN,
    G_TYPE_DOUBLE,
    G_TYPE_INT,
    G_TYPE_STRING,
    G_TYPE_UINT64,
)
from vipsobj.runtime import core, layout, records
from vipsobj.runtime.capabilities import declared_parent, is_interface
from vipsobj.runtime.core import all_descriptors
from vipsobj.runtime.enums import ENUM_TYPE_SYMBOLS
from vipsobj.runtime.library import NativeRuntime, set_runtime
from vipsobj.runtime.meta import list_types
from vipsobj.runtime.objects import InitiallyUnowned, Interpolate

# Native structs are larger than the prefix a partial record mirrors.
PARTIAL_PADDING = 64


class FakeType:
    def __init__(self, gtype, name, parent, class_size, instance_size, interfaces=()):
        self.gtype = gtype
        self.name = name
        self.name_bytes = name.encode("utf-8")
        self.parent = parent
        self.class_size = class_size
        self.instance_size = instance_size
        self.interfaces = list(interfaces)
        self.class_buffer = ctypes.create_string_buffer(max(class_size, 16))
        self.signals = {}
        self.instance_init = None
        self.floating = False

    @property
    def class_address(self):
        return ctypes.addressof(self.class_buffer)


class FakeInstance:
    def __init__(self, gtype, buffer, floating=False):
        self.gtype = gtype
        self.buffer = buffer
        self.props = {}
        self.handlers = {}
        self.alive = True
        self.floating = floating
        self.avg = 0.0

    @property
    def address(self):
        return ctypes.addressof(self.buffer)

    @property
    def ref_count(self):
        return records.GObject.from_address(self.address).ref_count


class FakeClosure:
    def __init__(self, callback, data, destroy):
        self.callback = callback
        self.data = data
        self.destroy = destroy
        self.floating = True
        self.refs = 1
        self.destroyed = False


class FakeGObject:
    """Just enough of libgobject, libglib and libvips for the bindings."""

    def __init__(self):
        self._ids = itertools.count(0x400, 4)
        self.types = {}
        self.by_name = {}
        self.by_class = {}
        self.symbols = {}
        self.enum_kinds = {}
        self.iface_tables = {}
        self.instances = {}
        self.graveyard = []
        self.finalized = []
        self.closures = {}
        self._closure_ids = itertools.count(0x7000)
        self._handler_ids = itertools.count(1)
        self._signal_ids = itertools.count(1)
        self.quarks = {}
        self.strings = {}
        self.warnings = []
        self.trace = []
        self.log_handlers = {}
        self.error_text = b""
        self.files = {}
        self.opened = []
        self.written = []
        self.calls = []
        self.leak = None
        self.started = None
        self.fail_init = False
        self.shutdowns = 0
        for wrapper in list_types():
            if vars(wrapper).get("get_type_symbol"):
                self._add_wrapper(wrapper)
        for enum_cls, symbol in ENUM_TYPE_SYMBOLS.items():
            gtype = next(self._ids)
            self.symbols[symbol] = gtype
            self.enum_kinds[gtype] = "flags" if issubclass(enum_cls, IntFlag) else "enum"

    # -- type table -------------------------------------------------------

    def _add_type(self, name, parent, class_size, instance_size, interfaces=()):
        gtype = next(self._ids)
        fake_type = FakeType(gtype, name, parent, class_size, instance_size, interfaces)
        if parent:
            parent_type = self.types[parent]
            ctypes.memmove(
                fake_type.class_buffer,
                parent_type.class_buffer,
                min(parent_type.class_size, class_size),
            )
            fake_type.floating = parent_type.floating
        records.GTypeClass.from_address(fake_type.class_address).g_type = gtype
        self.types[gtype] = fake_type
        self.by_name[name] = gtype
        self.by_class[fake_type.class_address] = fake_type
        for iface in interfaces:
            table = ctypes.create_string_buffer(self.types[iface].class_size)
            header = records.GTypeInterface.from_buffer(table)
            header.g_type = iface
            header.g_instance_type = gtype
            self.iface_tables[(gtype, iface)] = table
        return fake_type

    def _add_wrapper(self, wrapper):
        def size(record):
            extra = PARTIAL_PADDING if layout.is_partial(record) else 0
            return ctypes.sizeof(record) + extra

        parent = declared_parent(wrapper)
        fake_type = self._add_type(
            wrapper.type_name,
            self.by_name[parent.type_name] if parent else 0,
            size(wrapper.ClassRecord),
            0 if is_interface(wrapper) else size(wrapper.Record),
            [self.by_name[i.type_name] for i in vars(wrapper).get("implements", ())],
        )
        if wrapper is InitiallyUnowned:
            fake_type.floating = True
        for signal in all_descriptors(wrapper, "signal"):
            if signal.owner is wrapper:
                fake_type.signals[signal.name] = next(self._signal_ids)
        self.symbols[vars(wrapper)["get_type_symbol"]] = fake_type.gtype

    def resize(self, type_name, *, class_size=None, instance_size=None):
        fake_type = self.types[self.by_name[type_name]]
        if class_size is not None:
            fake_type.class_size = class_size
        if instance_size is not None:
            fake_type.instance_size = instance_size

    def __getattr__(self, name):
        symbols = self.__dict__.get("symbols", {})
        if name in symbols:
            gtype = symbols[name]
            return lambda: gtype
        raise AttributeError(name)

    def _ancestry(self, gtype):
        while gtype:
            yield self.types[gtype]
            gtype = self.types[gtype].parent

    def g_type_from_name(self, name):
        return self.by_name.get(name.decode("utf-8"), 0)

    def g_type_name(self, gtype):
        fake_type = self.types.get(gtype)
        return fake_type.name_bytes if fake_type else None

    def g_type_parent(self, gtype):
        return self.types[gtype].parent

    def g_type_is_a(self, gtype, other):
        for fake_type in self._ancestry(gtype):
            if fake_type.gtype == other or other in fake_type.interfaces:
                return True
        return False

    def g_type_query(self, gtype, address):
        query = records.GTypeQuery.from_address(address)
        fake_type = self.types.get(gtype)
        if fake_type is None:
            query.type = 0
            return
        query.type = gtype
        query.type_name = fake_type.name_bytes
        query.class_size = fake_type.class_size
        query.instance_size = fake_type.instance_size

    def g_type_interface_peek(self, class_address, iface):
        for fake_type in self._ancestry(self.by_class[class_address].gtype):
            table = self.iface_tables.get((fake_type.gtype, iface))
            if table is not None:
                return ctypes.addressof(table)
        return None

    def g_type_register_static_simple(
        self, parent, name, class_size, class_init, instance_size, instance_init, flags
    ):
        fake_type = self._add_type(name.decode("utf-8"), parent, class_size, instance_size)
        fake_type.instance_init = instance_init
        class_init(fake_type.class_address, None)
        return fake_type.gtype

    # -- instances --------------------------------------------------------

    def new_instance(self, type_name, **props):
        """Allocate an instance with one reference, as a constructor would."""

        fake_type = self.types[self.by_name[type_name]]
        buffer = ctypes.create_string_buffer(max(fake_type.instance_size, 32))
        instance = FakeInstance(fake_type.gtype, buffer, floating=fake_type.floating)
        header = records.GObject.from_buffer(buffer)
        header.g_type_instance.g_class = ctypes.cast(
            fake_type.class_address, ctypes.POINTER(records.GTypeClass)
        )
        header.ref_count = 1
        instance.props.update(props)
        self.instances[instance.address] = instance
        self.graveyard.append(buffer)
        for ancestor in reversed(list(self._ancestry(fake_type.gtype))):
            if ancestor.instance_init is not None:
                ancestor.instance_init(instance.address, fake_type.class_address)
        return instance.address

    def _live(self, address):
        instance = self.instances.get(address)
        if instance is None or not instance.alive:
            raise AssertionError(f"use of dead or unknown instance {address:#x}")
        return instance

    def ref_count(self, address):
        return records.GObject.from_address(address).ref_count

    def is_alive(self, address):
        return address in self.instances and self.instances[address].alive

    def g_object_new(self, gtype, terminator):
        assert terminator is None
        self.calls.append(("g_object_new", gtype))
        return self.new_instance(self.types[gtype].name)

    def g_object_ref(self, address):
        self._live(address)
        records.GObject.from_address(address).ref_count += 1
        return address

    def g_object_ref_sink(self, address):
        instance = self._live(address)
        if instance.floating:
            instance.floating = False
        else:
            records.GObject.from_address(address).ref_count += 1
        return address

    def g_object_unref(self, address):
        self._live(address)
        header = records.GObject.from_address(address)
        header.ref_count -= 1
        if header.ref_count == 0:
            self._finalize(address)

    def _finalize(self, address):
        instance = self.instances[address]
        klass = records.GObjectClass.from_address(
            self.types[instance.gtype].class_address
        )
        for slot in ("dispose", "finalize"):
            function = getattr(klass, slot)
            if function:
                function(address)
        for handler_id in list(instance.handlers):
            self._drop_handler(instance, handler_id)
        instance.alive = False
        self.finalized.append(address)

    # -- GValue -----------------------------------------------------------

    def _gvalue(self, address):
        return records.GValue.from_address(address)

    def g_value_init(self, address, gtype):
        value = self._gvalue(address)
        assert value.g_type == 0, "GValue initialised twice"
        value.g_type = gtype
        return address

    def g_value_unset(self, address):
        value = self._gvalue(address)
        if value.g_type in self.types and value.data[0].v_pointer:
            self.g_object_unref(value.data[0].v_pointer)
        self.strings.pop(address, None)
        ctypes.memset(address, 0, ctypes.sizeof(records.GValue))

    def g_value_set_boolean(self, address, flag):
        self._gvalue(address).data[0].v_int = 1 if flag else 0

    def g_value_get_boolean(self, address):
        return self._gvalue(address).data[0].v_int

    def g_value_set_int(self, address, number):
        self._gvalue(address).data[0].v_int = number

    def g_value_get_int(self, address):
        return self._gvalue(address).data[0].v_int

    def g_value_set_uint64(self, address, number):
        self._gvalue(address).data[0].v_uint64 = number

    def g_value_get_uint64(self, address):
        return self._gvalue(address).data[0].v_uint64

    def g_value_set_double(self, address, number):
        self._gvalue(address).data[0].v_double = number

    def g_value_get_double(self, address):
        return self._gvalue(address).data[0].v_double

    def g_value_set_enum(self, address, number):
        self._gvalue(address).data[0].v_long = number

    def g_value_get_enum(self, address):
        return self._gvalue(address).data[0].v_long

    def g_value_set_flags(self, address, number):
        self._gvalue(address).data[0].v_ulong = number

    def g_value_get_flags(self, address):
        return self._gvalue(address).data[0].v_ulong

    def g_value_set_string(self, address, text):
        self.strings[address] = None if text is None else bytes(text)

    def g_value_get_string(self, address):
        return self.strings.get(address)

    def g_value_set_object(self, address, obj):
        if obj:
            self.g_object_ref(obj)
        self._gvalue(address).data[0].v_pointer = obj

    def g_value_get_object(self, address):
        return self._gvalue(address).data[0].v_pointer

    def _load(self, address):
        gtype = self._gvalue(address).g_type
        if gtype == G_TYPE_BOOLEAN:
            return bool(self.g_value_get_boolean(address))
        if gtype == G_TYPE_INT:
            return self.g_value_get_int(address)
        if gtype == G_TYPE_UINT64:
            return self.g_value_get_uint64(address)
        if gtype == G_TYPE_DOUBLE:
            return self.g_value_get_double(address)
        if gtype == G_TYPE_STRING:
            text = self.g_value_get_string(address)
            return text.decode("utf-8") if text is not None else None
        if self.enum_kinds.get(gtype) == "enum":
            return self.g_value_get_enum(address)
        if self.enum_kinds.get(gtype) == "flags":
            return self.g_value_get_flags(address)
        return self.g_value_get_object(address)

    def _store(self, address, stored):
        gtype = self._gvalue(address).g_type
        if gtype == G_TYPE_BOOLEAN:
            self.g_value_set_boolean(address, stored)
        elif gtype == G_TYPE_INT:
            self.g_value_set_int(address, stored)
        elif gtype == G_TYPE_UINT64:
            self.g_value_set_uint64(address, stored)
        elif gtype == G_TYPE_DOUBLE:
            self.g_value_set_double(address, stored)
        elif gtype == G_TYPE_STRING:
            self.g_value_set_string(address, None if stored is None else stored.encode("utf-8"))
        elif self.enum_kinds.get(gtype) == "enum":
            self.g_value_set_enum(address, stored)
        elif self.enum_kinds.get(gtype) == "flags":
            self.g_value_set_flags(address, stored)
        else:
            self.g_value_set_object(address, stored)

    def g_object_get_property(self, address, name, value_address):
        instance = self._live(address)
        key = name.decode("utf-8")
        if key not in instance.props:
            self.warnings.append(f"object has no property named '{key}'")
            return
        self._store(value_address, instance.props[key])

    def g_object_set_property(self, address, name, value_address):
        instance = self._live(address)
        key = name.decode("utf-8")
        stored = self._load(value_address)
        if self._gvalue(value_address).g_type in self.types and stored:
            self.g_object_ref(stored)
        instance.props[key] = stored
        self.emit(address, "notify", None, detail=key)

    # -- signals ----------------------------------------------------------

    def g_signal_lookup(self, name, gtype):
        key = name.decode("utf-8")
        for fake_type in self._ancestry(gtype):
            if key in fake_type.signals:
                return fake_type.signals[key]
            for iface in fake_type.interfaces:
                if key in self.types[iface].signals:
                    return self.types[iface].signals[key]
        return 0

    def g_quark_from_string(self, text):
        return self.quarks.setdefault(text, len(self.quarks) + 1)

    def g_cclosure_new(self, callback, data, destroy):
        closure_id = next(self._closure_ids)
        self.closures[closure_id] = FakeClosure(callback, data, destroy)
        return closure_id

    def _closure_unref(self, closure_id):
        closure = self.closures[closure_id]
        closure.refs -= 1
        if closure.refs == 0:
            closure.destroyed = True
            closure.destroy(closure.data, closure_id)

    def g_closure_sink(self, closure_id):
        closure = self.closures[closure_id]
        if closure.floating:
            closure.floating = False
            self._closure_unref(closure_id)

    def g_signal_connect_closure_by_id(self, address, signal_id, quark, closure_id, after):
        instance = self._live(address)
        if not signal_id:
            self.warnings.append(f"invalid signal id '{signal_id}'")
            return 0
        closure = self.closures[closure_id]
        if closure.floating:
            closure.floating = False
        else:
            closure.refs += 1
        handler_id = next(self._handler_ids)
        instance.handlers[handler_id] = (signal_id, quark, closure_id, bool(after))
        return handler_id

    def _drop_handler(self, instance, handler_id):
        _, _, closure_id, _ = instance.handlers.pop(handler_id)
        self._closure_unref(closure_id)

    def g_signal_handler_disconnect(self, address, handler_id):
        instance = self._live(address)
        if handler_id not in instance.handlers:
            self.warnings.append(f"no handler with id '{handler_id}'")
            return
        self._drop_handler(instance, handler_id)

    def g_signal_handler_is_connected(self, address, handler_id):
        return handler_id in self._live(address).handlers

    def emit(self, address, name, *args, detail=None):
        """Emit *name* on an instance: handlers, default handler, after-handlers."""

        instance = self._live(address)
        signal_id = self.g_signal_lookup(name.encode("utf-8"), instance.gtype)
        assert signal_id, f"unknown signal {name}"
        quark = self.quarks.get(detail.encode("utf-8")) if detail else None
        matching = [
            (handler_id, closure_id, after)
            for handler_id, (sid, q, closure_id, after) in instance.handlers.items()
            if sid == signal_id and (q == 0 or q == quark)
        ]
        result = None
        for phase in (False, True):
            if phase:
                self.trace.append(("default", name))
            for handler_id, closure_id, after in matching:
                if after != phase:
                    continue
                closure = self.closures[closure_id]
                self.trace.append(("handler", handler_id))
                value = closure.callback(address, *args, closure.data)
                if value is not None:
                    result = value
        return result

    # -- logging ----------------------------------------------------------

    def g_log_set_handler(self, domain, levels, function, data):
        handler_id = len(self.log_handlers) + 1
        self.log_handlers[handler_id] = (domain, levels, function)
        return handler_id

    def g_log_remove_handler(self, domain, handler_id):
        self.log_handlers.pop(handler_id)

    def log(self, domain, level, message):
        for handler_domain, levels, function in self.log_handlers.values():
            if handler_domain == domain.encode("utf-8") and levels & level:
                function(domain.encode("utf-8"), level, message.encode("utf-8"), None)

    # -- libvips ----------------------------------------------------------

    def vips_init(self, argv0):
        self.started = argv0.decode("utf-8")
        return -1 if self.fail_init else 0

    def vips_shutdown(self):
        self.shutdowns += 1

    def vips_leak_set(self, flag):
        self.leak = bool(flag)

    def vips_error_buffer(self):
        return self.error_text

    def vips_error_clear(self):
        self.error_text = b""

    def vips_get_prgname(self):
        return b"vipsobj-tests"

    def add_file(self, path, *, width=64, height=32, bands=3, avg=0.0, **props):
        self.files[path] = dict(width=width, height=height, bands=bands, avg=avg, **props)

    def vips_image_new_from_file(self, name, terminator):
        assert terminator is None
        text = name.decode("utf-8")
        self.opened.append(text)
        path = text.split("[", 1)[0]
        info = self.files.get(path)
        if info is None:
            self.error_text = f"VipsForeignLoad: file \"{path}\" not found\n".encode("utf-8")
            return None
        info = dict(info)
        avg = info.pop("avg")
        address = self.new_instance(
            "VipsImage", filename=path, nickname="image", description="image class", **info
        )
        self.instances[address].avg = avg
        image = records.VipsImage.from_address(address)
        image.Xsize = info["width"]
        image.Ysize = info["height"]
        image.Bands = info["bands"]
        return address

    def vips_image_write_to_file(self, address, name, terminator):
        assert terminator is None
        self._live(address)
        text = name.decode("utf-8")
        self.written.append(text)
        if "fail" in text:
            self.error_text = b"VipsForeignSave: unable to write\n"
            return -1
        return 0

    def vips_avg(self, address, out, terminator):
        assert terminator is None
        out.contents.value = self._live(address).avg
        return 0

    def vips_source_new_from_file(self, name):
        path = name.decode("utf-8")
        if path not in self.files:
            self.error_text = b"VipsSource: unable to open\n"
            return None
        return self.new_instance("VipsSource", filename=path, descriptor=3)

    def vips_source_custom_new(self):
        return self.new_instance("VipsSourceCustom", descriptor=-1)

    def vips_target_new_to_file(self, name):
        return self.new_instance("VipsTarget", filename=name.decode("utf-8"))

    def vips_target_custom_new(self):
        return self.new_instance("VipsTargetCustom")

    def vips_interpolate_new(self, name):
        if name not in (b"nearest", b"bilinear", b"bicubic"):
            self.error_text = b"VipsInterpolate: class not found\n"
            return None
        return self.new_instance(Interpolate.type_name, nickname=name.decode("utf-8"))


@pytest.fixture
def fake():
    return FakeGObject()


@pytest.fixture
def runtime(fake):
    rt = NativeRuntime(fake)
    previous = set_runtime(rt)
    yield rt
    set_runtime(previous)


@pytest.fixture(autouse=True)
def isolate_registries():
    """Forget handles and test-declared types between tests."""

    declared = dict(core.TYPE_REGISTRY)
    yield
    core._LIVE_HANDLES.clear()
    core._LIVE_TYPES.clear()
    core.TYPE_REGISTRY.clear()
    core.TYPE_REGISTRY.update(declared)

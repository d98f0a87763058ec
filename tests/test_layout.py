"""Tests for the record helpers in ``vipsobj.runtime.layout``."""

from __future__ import annotations

import ctypes

import pytest

from vipsobj.runtime import layout, records


def test_every_record_embeds_its_parent_at_offset_zero():
    chain = layout.ancestor_chain(records.VipsImage)
    assert chain == [
        records.VipsImage,
        records.VipsObject,
        records.GObject,
        records.GTypeInstance,
    ]
    for child, parent in zip(chain, chain[1:]):
        layout.check_embedding(child, parent)
        assert layout.verify_append_only(child, parent) == []


def test_field_offsets_are_shared_along_the_chain():
    ref_count = layout.field_offset(records.GObject, "ref_count")
    assert layout.field_offset(records.VipsImage, "ref_count") == ref_count
    assert layout.field_offset(records.VipsObjectClass, "dispose") == layout.field_offset(
        records.GObjectClass, "dispose"
    )
    assert layout.defining_record(records.VipsForeignLoadClass, "dispose") is records.GObjectClass
    with pytest.raises(AttributeError, match="no field 'nope'"):
        layout.field_offset(records.GObject, "nope")


def test_own_fields_skip_the_embedded_parent():
    names = [name for name, _ in layout.own_fields(records.GTypeModuleClass)]
    assert names[:2] == ["load", "unload"]
    assert layout.own_fields(records.GTypeClass) == [("g_type", records.GType)]


def test_partial_records_cannot_be_extended():
    assert layout.is_partial(records.VipsImage)
    assert not layout.is_partial(records.VipsObject)

    with pytest.raises(TypeError, match="Cannot extend partial record VipsImage"):
        layout.define_record("MyImage", records.VipsImage, [("extra", ctypes.c_int)])

    view = layout.define_record("ImageView", records.VipsImage)
    assert layout.is_partial(view)
    assert layout.parent_record(view) is records.VipsImage


def test_check_embedding_rejects_wrong_parent_and_fields_after_partial():
    with pytest.raises(TypeError, match="must embed GObject"):
        layout.check_embedding(records.VipsOperation, records.GObject)

    class Extended(ctypes.Structure):
        _partial_ = True
        _fields_ = [("parent_instance", records.VipsImage), ("extra", ctypes.c_int)]

    with pytest.raises(TypeError, match="cannot add fields"):
        layout.check_embedding(Extended, records.VipsImage)

    class Unmarked(ctypes.Structure):
        _fields_ = [("parent_instance", records.VipsImage)]

    with pytest.raises(TypeError, match="must be marked partial"):
        layout.check_embedding(Unmarked, records.VipsImage)


def test_verify_append_only_reports_unrelated_records():
    problems = layout.verify_append_only(records.VipsImage, records.GTypeModule)
    assert problems == ["GTypeModule is not embedded in VipsImage"]


def test_verify_append_only_follows_the_embedded_path_for_shadowed_names():
    # Both subtypes declare a field named like an ancestor's slot.
    assert layout.verify_append_only(records.VipsOperationClass, records.VipsObjectClass) == []
    assert layout.verify_append_only(records.VipsOperationClass, records.GObjectClass) == []
    assert layout.verify_append_only(records.VipsSourceCustomClass, records.VipsSourceClass) == []

    base = layout.embedded_offset(records.VipsSourceCustomClass, records.VipsSourceClass)
    assert base == 0
    assert layout.field_offset(records.VipsSourceCustomClass, "read") >= ctypes.sizeof(
        records.VipsSourceClass
    )
    assert layout.field_offset(records.VipsSourceClass, "read") == records.VipsSourceClass.read.offset


def test_verify_append_only_with_a_locally_shadowing_record():
    class Base(ctypes.Structure):
        _fields_ = [("tag", ctypes.c_int), ("value", ctypes.c_double)]

    class Derived(ctypes.Structure):
        _fields_ = [("parent_instance", Base), ("value", ctypes.c_int)]

    class Grandchild(ctypes.Structure):
        _fields_ = [("parent_instance", Derived), ("tag", ctypes.c_char)]

    assert layout.verify_append_only(Derived, Base) == []
    assert layout.verify_append_only(Grandchild, Base) == []
    assert layout.verify_append_only(Grandchild, Derived) == []
    assert layout.embedded_offset(Grandchild, Base) == 0
    with pytest.raises(TypeError, match="Derived is not embedded in Base"):
        layout.embedded_offset(Base, Derived)


def test_upcast_reinterprets_without_reading():
    image = records.VipsImage()
    image.parent_instance.parent_instance.ref_count = 7
    pointer = ctypes.pointer(image)

    as_object = layout.upcast(pointer, records.GObject)
    assert as_object.contents.ref_count == 7
    assert layout.address_of(as_object) == ctypes.addressof(image)

    with pytest.raises(TypeError, match="neither an ancestor"):
        layout.upcast(pointer, records.GTypeModule)
    with pytest.raises(TypeError, match="typed ctypes pointer"):
        layout.upcast(ctypes.addressof(image), records.GObject)

    as_plugin = layout.upcast(pointer, records.GTypePlugin, [records.GTypePlugin])
    assert layout.address_of(as_plugin) == ctypes.addressof(image)


def test_address_of_accepts_pointer_like_values():
    value = records.GObject()
    address = ctypes.addressof(value)
    assert layout.address_of(None) is None
    assert layout.address_of(address) == address
    assert layout.address_of(value) == address
    assert layout.address_of(ctypes.pointer(value)) == address
    assert layout.address_of(ctypes.c_void_p(address)) == address
    assert layout.reinterpret(address, records.GObject).contents.ref_count == 0


def test_describe_record_lists_own_fields_with_absolute_offsets():
    doc = layout.describe_record(records.GObject)
    assert doc["name"] == "GObject"
    assert doc["parent"] == "GTypeInstance"
    assert doc["size"] == ctypes.sizeof(records.GObject)
    assert [f["name"] for f in doc["fields"]] == ["ref_count", "qdata"]
    assert doc["fields"][0]["offset"] == ctypes.sizeof(ctypes.c_void_p)

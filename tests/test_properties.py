"""Tests for property descriptors and boxed values."""

from __future__ import annotations

import pytest

from vipsobj.constants import G_TYPE_BOOLEAN, G_TYPE_STRING, G_TYPE_UINT64
from vipsobj.runtime.enums import Access, BandFormat, FailOn, ForeignKeep, Interpretation
from vipsobj.runtime.image import Image
from vipsobj.runtime.objects import ForeignLoad, ForeignSave, Source, VipsObject
from vipsobj.runtime.properties import Property, get_property, set_property
from vipsobj.runtime.values import BoxedValue, UInt64, check_value, gtype_for, value_kind


def test_value_kinds():
    assert value_kind(bool) == "boolean"
    assert value_kind(int) == "int"
    assert value_kind(UInt64) == "uint64"
    assert value_kind(float) == "double"
    assert value_kind(str) == "string"
    assert value_kind(Access) == "enum"
    assert value_kind(ForeignKeep) == "flags"
    assert value_kind(Image) == "object"
    with pytest.raises(TypeError, match="Unsupported property value type"):
        value_kind(bytes)


def test_gtype_for_fundamental_enum_and_object_types(fake, runtime):
    assert gtype_for(bool, runtime) == G_TYPE_BOOLEAN
    assert gtype_for(UInt64, runtime) == G_TYPE_UINT64
    assert gtype_for(str, runtime) == G_TYPE_STRING
    assert gtype_for(Access, runtime) == fake.symbols["vips_access_get_type"]
    assert gtype_for(Image, runtime) == Image.gtype(runtime)


def test_check_value_coerces_and_rejects():
    assert check_value(float, 2) == 2.0
    assert check_value(FailOn, "warning") is FailOn.WARNING
    assert check_value(Access, 1) is Access.SEQUENTIAL
    assert check_value(str, None) is None
    with pytest.raises(TypeError, match="Expected bool"):
        check_value(bool, 1)
    with pytest.raises(TypeError, match="Expected int"):
        check_value(int, True)
    with pytest.raises(ValueError, match="cannot be negative"):
        check_value(UInt64, -1)
    with pytest.raises(ValueError, match="not a FailOn nickname"):
        check_value(FailOn, "sometimes")
    with pytest.raises(TypeError, match="Expected Image"):
        check_value(Image, object())


def test_boxed_value_is_unset_on_exit(fake, runtime):
    with BoxedValue(runtime, str) as box:
        box.set("hello")
        assert box.get() == "hello"
        address = box.address
    assert address not in fake.strings
    assert box.gvalue.g_type == 0


def test_string_property_round_trips_through_the_runtime(fake, runtime):
    address = fake.new_instance("VipsObject", nickname="image", description="image class")
    with VipsObject(address) as obj:
        assert obj.nickname == "image"
        obj.nickname = "thumbnail"
        assert fake.instances[address].props["nickname"] == "thumbnail"
        assert obj.nickname == "thumbnail"
        assert get_property(obj, VipsObject.description) == "image class"


def test_enum_properties_accept_members_and_nicknames(fake, runtime):
    address = fake.new_instance("VipsForeignLoad", access=0, **{"fail-on": 0})
    with ForeignLoad(address) as load:
        assert load.access is Access.RANDOM
        load.access = Access.SEQUENTIAL
        load.fail_on = "truncated"
        assert fake.instances[address].props["access"] == 1
        assert fake.instances[address].props["fail-on"] == 1
        assert load.fail_on is FailOn.TRUNCATED


def test_flags_and_int_properties(fake, runtime):
    address = fake.new_instance("VipsForeignSave", keep=int(ForeignKeep.ALL))
    with ForeignSave(address) as save:
        assert save.keep == ForeignKeep.ALL
        save.keep = ForeignKeep.EXIF | ForeignKeep.ICC
        save.page_height = 256
        set_property(save, ForeignSave.profile, "srgb")
        props = fake.instances[address].props
        assert props["keep"] == 9
        assert props["page-height"] == 256
        assert props["profile"] == "srgb"


def test_flags_property_accepts_colon_joined_nicknames(fake, runtime):
    address = fake.new_instance("VipsForeignSave", keep=0)
    with ForeignSave(address) as save:
        save.keep = "exif:icc"
        assert fake.instances[address].props["keep"] == 9
        assert save.keep == ForeignKeep.EXIF | ForeignKeep.ICC
    assert check_value(ForeignKeep, "xmp:iptc") == ForeignKeep.XMP | ForeignKeep.IPTC


def test_enum_values_missing_from_the_mirror_read_as_plain_ints(fake, runtime):
    address = fake.new_instance("VipsImage", interpretation=30)
    with Image(address) as image:
        value = image.interpretation
        assert value == 30
        assert not isinstance(value, Interpretation)


def test_boolean_and_double_properties(fake, runtime):
    address = fake.new_instance("VipsImage", kill=False, xres=2.5)
    with Image(address) as image:
        assert image.kill is False
        image.kill = True
        assert image.kill is True
        assert image.xres == 2.5


def test_read_only_property_refuses_assignment(fake, runtime):
    address = fake.new_instance("VipsImage", width=10)
    with Image(address) as image:
        with pytest.raises(AttributeError, match="'width' is read-only"):
            image.width = 20
        assert image.width == 10


def test_write_only_property_refuses_reads(fake, runtime):
    prop = Property("secret", str, readable=False)
    address = fake.new_instance("VipsObject")
    with VipsObject(address) as obj:
        with pytest.raises(AttributeError, match="not readable"):
            prop.get(obj)


def test_unknown_property_is_forwarded_and_reported_by_the_runtime(fake, runtime):
    prop = Property("no-such-thing", int)
    address = fake.new_instance("VipsObject")
    with VipsObject(address) as obj:
        assert prop.get(obj) == 0
    assert fake.warnings == ["object has no property named 'no-such-thing'"]


def test_object_properties_hold_their_own_reference(fake, runtime):
    input_prop = Property("input", Source)
    holder = fake.new_instance("VipsObject")
    source_address = fake.new_instance("VipsSource")

    with VipsObject(holder) as obj, Source(source_address) as source:
        input_prop.set(obj, source)
        assert fake.ref_count(source_address) == 2
        with input_prop.get(obj) as fetched:
            assert isinstance(fetched, Source)
            assert fetched.address == source_address
            assert fake.ref_count(source_address) == 3
        assert fake.ref_count(source_address) == 2


def test_descriptor_metadata():
    assert Image.width.describe() == {
        "name": "width",
        "attribute": "width",
        "type": "int",
        "readable": True,
        "writable": False,
    }
    assert ForeignLoad.fail_on.name == "fail-on"
    assert Image.interpretation.value_type is Interpretation
    assert Image.format.value_type is BandFormat

"""libvips enumerations and flags used by wrapped properties and options."""
from __future__ import annotations

from enum import IntEnum, IntFlag


class Access(IntEnum):
    RANDOM = 0
    SEQUENTIAL = 1
    SEQUENTIAL_UNBUFFERED = 2


class FailOn(IntEnum):
    """How sensitive loaders are to errors in the source image."""

    NONE = 0
    TRUNCATED = 1
    ERROR = 2
    WARNING = 3


class BandFormat(IntEnum):
    NOTSET = -1
    UCHAR = 0
    CHAR = 1
    USHORT = 2
    SHORT = 3
    UINT = 4
    INT = 5
    FLOAT = 6
    COMPLEX = 7
    DOUBLE = 8
    DPCOMPLEX = 9


class Coding(IntEnum):
    ERROR = -1
    NONE = 0
    LABQ = 2
    RAD = 6


class Interpretation(IntEnum):
    ERROR = -1
    MULTIBAND = 0
    B_W = 1
    HISTOGRAM = 10
    XYZ = 12
    LAB = 13
    CMYK = 15
    LABQ = 16
    RGB = 17
    CMC = 18
    LCH = 19
    LABS = 21
    SRGB = 22
    YXY = 23
    FOURIER = 24
    RGB16 = 25
    GREY16 = 26
    MATRIX = 27
    SCRGB = 28
    HSV = 29


class DemandStyle(IntEnum):
    ERROR = -1
    SMALLTILE = 0
    FATSTRIP = 1
    THINSTRIP = 2
    ANY = 3


class ForeignHeifCompression(IntEnum):
    HEVC = 1
    AVC = 2
    JPEG = 3
    AV1 = 4


class ForeignSubsample(IntEnum):
    AUTO = 0
    ON = 1
    OFF = 2


class ForeignHeifEncoder(IntEnum):
    AUTO = 0
    AOM = 1
    RAV1E = 2
    SVT = 3
    X265 = 4


class ForeignKeep(IntFlag):
    """Which metadata savers keep."""

    NONE = 0
    EXIF = 1 << 0
    XMP = 1 << 1
    IPTC = 1 << 2
    ICC = 1 << 3
    OTHER = 1 << 4
    ALL = EXIF | XMP | IPTC | ICC | OTHER


ENUM_TYPE_SYMBOLS = {
    Access: "vips_access_get_type",
    FailOn: "vips_fail_on_get_type",
    BandFormat: "vips_band_format_get_type",
    Coding: "vips_coding_get_type",
    Interpretation: "vips_interpretation_get_type",
    DemandStyle: "vips_demand_style_get_type",
    ForeignHeifCompression: "vips_foreign_heif_compression_get_type",
    ForeignSubsample: "vips_foreign_subsample_get_type",
    ForeignHeifEncoder: "vips_foreign_heif_encoder_get_type",
    ForeignKeep: "vips_foreign_keep_get_type",
}


def _member_nick(name: str) -> str:
    return name.lower().replace("_", "-")


def nick(member) -> str:
    """The libvips nickname of an enum member or flag combination.

    Flag combinations without a member of their own are joined with ``:``.
    """

    cls = type(member)
    for name, value in cls.__members__.items():
        if value == member:
            return _member_nick(name)
    if isinstance(member, IntFlag):
        return ":".join(
            _member_nick(name)
            for name, value in cls.__members__.items()
            if value and (value & (value - 1)) == 0 and value & member
        )
    raise ValueError(f"{member!r} has no nickname")


def from_nick(cls, text: str):
    """Inverse of :func:`nick`; flag types also accept ``:``-joined names."""

    for name, value in cls.__members__.items():
        if _member_nick(name) == text:
            return value
    if issubclass(cls, IntFlag) and ":" in text:
        combined = cls(0)
        for part in text.split(":"):
            combined |= from_nick(cls, part)
        return combined
    raise ValueError(f"{text!r} is not a {cls.__name__} nickname")


__all__ = [
    "Access",
    "BandFormat",
    "Coding",
    "DemandStyle",
    "ENUM_TYPE_SYMBOLS",
    "FailOn",
    "ForeignHeifCompression",
    "ForeignHeifEncoder",
    "ForeignKeep",
    "ForeignSubsample",
    "Interpretation",
    "from_nick",
    "nick",
]

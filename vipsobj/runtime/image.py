"""The libvips image type and file helpers."""
from __future__ import annotations

import ctypes
import logging

from . import records
from .enums import BandFormat, Coding, DemandStyle, FailOn, Interpretation
from .library import NativeError, get_runtime, varargs_call
from .objects import VipsObject
from .options import HeifLoadOptions, filename_with_options
from .properties import Property
from .signals import Signal
from .vfuncs import VirtualMethod

logger = logging.getLogger("vipsobj.runtime")


class Image(VipsObject):
    """A libvips image.

    Open one with :meth:`new_from_file`; the handle owns the reference the
    loader returns.
    """

    Record = records.VipsImage
    ClassRecord = records.VipsImageClass
    type_name = "VipsImage"
    get_type_symbol = "vips_image_get_type"

    width = Property("width", int, writable=False)
    height = Property("height", int, writable=False)
    bands = Property("bands", int, writable=False)
    format = Property("format", BandFormat, writable=False)
    coding = Property("coding", Coding, writable=False)
    interpretation = Property("interpretation", Interpretation, writable=False)
    xres = Property("xres", float, writable=False)
    yres = Property("yres", float, writable=False)
    xoffset = Property("xoffset", int, writable=False)
    yoffset = Property("yoffset", int, writable=False)
    filename = Property("filename", str, writable=False)
    mode = Property("mode", str, writable=False)
    kill = Property("kill", bool)
    demand = Property("demand", DemandStyle, writable=False)

    preeval = Signal("preeval", argtypes=(ctypes.c_void_p,), doc="Evaluation is starting.")
    eval = Signal("eval", argtypes=(ctypes.c_void_p,), doc="Evaluation progress.")
    posteval = Signal("posteval", argtypes=(ctypes.c_void_p,), doc="Evaluation has ended.")
    written = Signal("written", argtypes=(ctypes.c_void_p,))
    invalidate = Signal("invalidate")
    minimise = Signal("minimise")

    do_preeval = VirtualMethod()
    do_eval = VirtualMethod()
    do_posteval = VirtualMethod()
    do_written = VirtualMethod()
    do_invalidate = VirtualMethod()
    do_minimise = VirtualMethod()

    @classmethod
    def new_from_file(cls, path: str, options=None, runtime=None):
        """Open *path*; returns None when libvips cannot load it.

        The reason stays in the libvips error buffer.
        """

        runtime = runtime or get_runtime()
        name = filename_with_options(path, options)
        address = varargs_call(runtime.lib.vips_image_new_from_file, name.encode("utf-8"))
        if not address:
            logger.debug("unable to load %s", name)
            return None
        logger.debug(
            "Created a new image from file %s with options %s", path, name[len(path):]
        )
        return cls(address, runtime=runtime)

    def write_to_file(self, path: str, options=None) -> None:
        name = filename_with_options(path, options)
        status = varargs_call(
            self.runtime.lib.vips_image_write_to_file, self.address, name.encode("utf-8")
        )
        if status != 0:
            raise NativeError(f"Failed to write image to {name}", self.runtime.error_buffer())
        logger.debug("Converted image to %s", name)

    def avg(self) -> float:
        """Pixel average over every band."""

        out = ctypes.c_double()
        status = varargs_call(self.runtime.lib.vips_avg, self.address, ctypes.pointer(out))
        if status != 0:
            raise NativeError("Failed to compute the average", self.runtime.error_buffer())
        return out.value

    def dimensions(self) -> tuple[int, int, int]:
        """``(width, height, bands)`` read straight from the instance record."""

        record = self.record
        return record.Xsize, record.Ysize, record.Bands


def convert_image(source: str, destination: str, options=None, runtime=None) -> None:
    """Load *source* with the default HEIF options and save it as *destination*."""

    runtime = runtime or get_runtime()
    image = Image.new_from_file(source, HeifLoadOptions(), runtime=runtime)
    if image is None:
        raise NativeError(f"unable to open file {source}", runtime.error_buffer())
    with image:
        image.write_to_file(destination, options)


def open_for_average(path: str, runtime=None):
    """Open *path* failing on warnings, the way the average example does."""

    return Image.new_from_file(path, HeifLoadOptions(fail_on=FailOn.WARNING), runtime=runtime)


__all__ = ["Image", "convert_image", "open_for_average"]

"""Loader and saver options rendered into libvips' filename suffix."""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Optional

from .enums import (
    Access,
    FailOn,
    ForeignHeifCompression,
    ForeignHeifEncoder,
    ForeignKeep,
    ForeignSubsample,
    nick,
)


def _option(name: str | None = None, minimum=None, maximum=None):
    return field(default=None, metadata={"name": name, "min": minimum, "max": maximum})


def _render(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return nick(value)
    if isinstance(value, (list, tuple)):
        return " ".join(_render(v) for v in value)
    return str(value)


class _Options:
    """Shared rendering and range checks for option dataclasses."""

    def __post_init__(self):
        for spec in fields(self):
            value = getattr(self, spec.name)
            if value is None:
                continue
            minimum, maximum = spec.metadata.get("min"), spec.metadata.get("max")
            if minimum is not None and value < minimum:
                raise ValueError(f"{self.option_name(spec)} must be >= {minimum}, got {value}")
            if maximum is not None and value > maximum:
                raise ValueError(f"{self.option_name(spec)} must be <= {maximum}, got {value}")

    @staticmethod
    def option_name(spec) -> str:
        return spec.metadata.get("name") or spec.name

    def items(self) -> list[tuple[str, object]]:
        """Set options as ``(libvips name, value)`` pairs, in declaration order."""

        return [
            (self.option_name(spec), getattr(self, spec.name))
            for spec in fields(self)
            if getattr(self, spec.name) is not None
        ]

    def to_string(self) -> str:
        """Render ``[name=value,...]``; no set options renders ``""``."""

        items = self.items()
        if not items:
            return ""
        return "[" + ",".join(f"{name}={_render(value)}" for name, value in items) + "]"


@dataclass
class ForeignLoadOptions(_Options):
    memory: Optional[bool] = _option()
    access: Optional[Access] = _option()
    fail_on: Optional[FailOn] = _option("fail-on")
    revalidate: Optional[bool] = _option()


@dataclass
class HeifLoadOptions(ForeignLoadOptions):
    page: Optional[int] = _option(minimum=0, maximum=100000)
    n: Optional[int] = _option(minimum=-1, maximum=100000)
    thumbnail: Optional[bool] = _option()
    unlimited: Optional[bool] = _option()


@dataclass
class ForeignSaveOptions(_Options):
    keep: Optional[ForeignKeep] = _option()
    background: Optional[list] = _option()
    page_height: Optional[int] = _option("page-height", 0, 100000000)
    profile: Optional[str] = _option()


@dataclass
class HeifSaveOptions(ForeignSaveOptions):
    Q: Optional[int] = _option(minimum=1, maximum=100)
    bitdepth: Optional[int] = _option(minimum=8, maximum=12)
    lossless: Optional[bool] = _option()
    compression: Optional[ForeignHeifCompression] = _option()
    effort: Optional[int] = _option(minimum=0, maximum=9)
    subsample_mode: Optional[ForeignSubsample] = _option("subsample-mode")
    encoder: Optional[ForeignHeifEncoder] = _option()


def filename_with_options(path: str, options=None) -> str:
    """Append the rendered *options* to *path*."""

    if options is None:
        return path
    return path + options.to_string()


__all__ = [
    "ForeignLoadOptions",
    "ForeignSaveOptions",
    "HeifLoadOptions",
    "HeifSaveOptions",
    "filename_with_options",
]

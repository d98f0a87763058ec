"""ctypes bindings to the GObject object model and libvips."""

from . import constants as _constants
from . import ffi as _ffi
from . import runtime as _runtime
from .constants import *  # noqa: F401,F403
from .ffi import *  # noqa: F401,F403
from .runtime import *  # noqa: F401,F403

__all__ = []
__all__ += getattr(_constants, "__all__", [])
__all__ += getattr(_ffi, "__all__", [])
__all__ += getattr(_runtime, "__all__", [])

"""
vipsobj runtime: the GObject/libvips object model seen from Python.

| Layer                        | Module         |
<----------------------------- + -------------- >
| **Layout Mirror records**    | `records`      |
| **Record structure checks**  | `layout`       |
| **Native entry points**      | `library`      |
| **Handles and lifetimes**    | `core`         |
| **Interface tags**           | `capabilities` |
| **Properties**               | `properties`   |
| **Signals**                  | `signals`      |
| **Virtual method slots**     | `vfuncs`       |
| **Wrapped types**            | `objects`      |
| **Images and options**       | `image`        |
| **Reflection & analysis**    | `meta`         |
| **Manifests & ledger**       | `manifest`     |
"""

from . import records
from . import layout
from . import library as _library
from . import capabilities as _capabilities
from . import core as _core
from . import enums as _enums
from . import values as _values
from . import properties as _properties
from . import signals as _signals
from . import vfuncs as _vfuncs
from . import objects as _objects
from . import options as _options
from . import image as _image
from . import meta as _meta
from . import analysis as _analysis
from . import manifest as _manifest
from . import crypto as _crypto
from .cli import main, parse_args, run_average
from ..constants import KEY_FILE, LEDGER_FILE, PUB_FILE

from .library import *
from .capabilities import *
from .core import *
from .enums import *
from .values import *
from .properties import *
from .signals import *
from .vfuncs import *
from .objects import *
from .options import *
from .image import *
from .meta import *
from .analysis import *
from .manifest import *
from .crypto import *

__all__ = []
for module in (
    _library,
    _capabilities,
    _core,
    _enums,
    _values,
    _properties,
    _signals,
    _vfuncs,
    _objects,
    _options,
    _image,
    _meta,
    _analysis,
    _manifest,
    _crypto,
):
    __all__.extend(getattr(module, "__all__", []))
__all__ += ["main", "parse_args", "run_average", "records", "layout", "KEY_FILE", "LEDGER_FILE", "PUB_FILE"]
__all__ = list(dict.fromkeys(__all__))

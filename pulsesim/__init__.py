"""PULSE SIMulation: pulsar profiles and integrated time samples."""

# flake8: noqa

__version__ = "0.1.0"

from . import core
from .core import *

from . import profiles
from .profiles import *

from . import pulsar
from .pulsar import *

from . import utils
from . import simulate
from .simulate import simulate_pulsar


__all__ = [
    "utils",
    "simulate_pulsar",
]

__all__.extend(core.__all__)
__all__.extend(profiles.__all__)
__all__.extend(pulsar.__all__)

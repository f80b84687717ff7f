"""Pulse profiles and their integration engine."""

# flake8: noqa

from . import harmonics
from . import integration
from . import snr

from . import von_mises
from .von_mises import *

__all__ = von_mises.__all__.copy()

"""Pulsar phase models."""

# flake8: noqa

from .phase_models import PhaseModel, ConstantAccelerationPhaseModel
from .predictor import PolycoEntry, PhasePredictor, PolycoPhaseModel

__all__ = [
    "PhaseModel",
    "ConstantAccelerationPhaseModel",
    "PolycoEntry",
    "PhasePredictor",
    "PolycoPhaseModel",
]

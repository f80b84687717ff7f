"""Phase models: maps from time to pulse phase."""

import abc
import numpy as np
from ..core import InvalidConfiguration, verify_positive

__all__ = ["PhaseModel", "ConstantAccelerationPhaseModel"]


class PhaseModel(abc.ABC):
    """Base class for phase models.

    A phase model maps time (in seconds) to pulse phase (in cycles). It
    must be finite and non-decreasing over any time range it is queried
    on. Subclasses implement `eval_phi`, which must accept scalars as
    well as numpy arrays of times.
    """

    @abc.abstractmethod
    def eval_phi(self, t):
        """Pulse phase at time(s) ``t``."""
        pass

    def eval_omega(self, t):
        """Pulse frequency (cycles per second) at time(s) ``t``.

        The default implementation is a central finite difference of
        `eval_phi`.
        """
        t = np.asarray(t, dtype=np.float64)
        h = 1e-6 * np.maximum(1.0, np.abs(t))
        return (self.eval_phi(t + h) - self.eval_phi(t - h)) / (2 * h)

    def __call__(self, t):
        return self.eval_phi(t)


class ConstantAccelerationPhaseModel(PhaseModel):
    """Phase model with constant rate of change of pulse frequency.

    .. math::

        \\phi(t) = \\phi_0 + \\omega_0 (t - t_0)
                   + \\frac{1}{2} \\dot\\omega (t - t_0)^2

    The phase is non-decreasing only while :math:`\\omega(t) \\geq 0`; for
    ``omega_dot < 0`` this limits the valid time range to
    :math:`t \\leq t_0 - \\omega_0 / \\dot\\omega`.

    Parameters
    ----------
    phi0 : float
        Pulse phase at the reference time ``t0``.
    omega0 : float
        Pulse frequency at ``t0`` in cycles per second. Must be positive.
    omega_dot : float
        Time derivative of the pulse frequency.
    t0 : float
        Reference time in seconds.
    """

    def __init__(self, phi0, omega0, omega_dot, t0):
        self.omega0 = verify_positive(omega0, "omega0", exc=InvalidConfiguration)
        self.phi0, self.omega_dot, self.t0 = map(float, (phi0, omega_dot, t0))

        if not np.all(np.isfinite([self.phi0, self.omega_dot, self.t0])):
            raise InvalidConfiguration("phi0, omega_dot and t0 must be finite.")

    def __repr__(self):
        return (
            f"pulsesim.{self.__class__.__name__}(phi0={self.phi0}, "
            f"omega0={self.omega0}, omega_dot={self.omega_dot}, t0={self.t0})"
        )

    def eval_phi(self, t):
        dt = np.asarray(t, dtype=np.float64) - self.t0
        return self.phi0 + dt * (self.omega0 + 0.5 * self.omega_dot * dt)

    def eval_omega(self, t):
        dt = np.asarray(t, dtype=np.float64) - self.t0
        return self.omega0 + self.omega_dot * dt

"""Von Mises pulse profile."""

import math
import logging
import numpy as np
from ..core import (
    InvalidArgument,
    InvalidConfiguration,
    verify_positive,
    verify_nonnegative_int,
)
from ..utils import next_fast_len
from . import harmonics as _harmonics
from . import integration as _integration
from . import snr as _snr

__all__ = ["VonMisesProfile"]

logger = logging.getLogger(__name__)

MIN_CELLS_PER_FWHM = 64
MIN_INTERNAL_NPHI = 64


def _readonly(x):
    x.flags.writeable = False
    return x


def get_kappa(duty_cycle):
    """Narrowness parameter of a von Mises profile with given duty cycle."""
    return math.log(2) / (2 * math.sin(math.pi * duty_cycle / 2) ** 2)


def get_internal_nphi(duty_cycle, min_internal_nphi=0):
    """Number of phase bins used to represent a profile internally.

    If ``min_internal_nphi`` is positive it is used as given. Otherwise
    the grid is chosen so that the pulse FWHM spans at least
    ``MIN_CELLS_PER_FWHM`` cells, rounded up to a 7-smooth length. This
    grows monotonically with ``1 / duty_cycle`` (equivalently, with
    ``sqrt(kappa)`` for narrow pulses).
    """
    if min_internal_nphi > 0:
        return min_internal_nphi

    n = math.ceil(MIN_CELLS_PER_FWHM / duty_cycle)
    return next_fast_len(max(MIN_INTERNAL_NPHI, n))


class VonMisesProfile:
    """Von Mises pulse profile, for simulating pulsars.

    The profile is the periodic function of pulse phase

    .. math:: \\rho(\\phi) = \\exp[-2\\kappa \\sin^2(\\pi\\phi)]

    which peaks at integer phases with peak flux 1 (before detrending).
    The narrowness parameter is related to the duty cycle ``D`` by
    :math:`\\kappa = \\log 2 / (2 \\sin^2(\\pi D / 2))`.

    Internally, the profile is sampled on a uniform phase grid with a
    wraparound point, together with its running integral and its
    Fourier coefficients. The object is immutable after construction
    and holds no scratch state, so it can be shared between threads.

    Parameters
    ----------
    duty_cycle : float
        Pulse full width at half maximum divided by the period. Must be
        in the open interval (0, 1). A reasonable choice is 0.1 or so.
    detrend : bool
        Whether to subtract the mean flux from the profile.
    min_internal_nphi : int, optional
        Number of phase bins used internally. If 0 (default), a value is
        chosen from the duty cycle.

    Raises
    ------
    InvalidConfiguration
        If ``duty_cycle`` is not in (0, 1) or ``min_internal_nphi < 0``.

    Examples
    --------
    >>> p = VonMisesProfile(0.1, detrend=False)
    >>> pm = ConstantAccelerationPhaseModel(0.0, 30.0, 0.0, 0.0)
    >>> x = p.eval_integrated_samples(0.0, 1.0, 1024, pm)
    """

    def __init__(self, duty_cycle, detrend, min_internal_nphi=0):
        duty_cycle = verify_positive(
            duty_cycle, "duty_cycle", exc=InvalidConfiguration
        )
        if duty_cycle >= 1:
            raise InvalidConfiguration(
                f"Invalid duty_cycle. Must be in (0, 1), got {duty_cycle}."
            )
        min_internal_nphi = verify_nonnegative_int(
            min_internal_nphi, "min_internal_nphi", exc=InvalidConfiguration
        )

        self._duty_cycle = duty_cycle
        self._detrend = bool(detrend)
        self._kappa = get_kappa(duty_cycle)
        self._internal_nphi = get_internal_nphi(duty_cycle, min_internal_nphi)

        nphi = self._internal_nphi
        phi = np.arange(nphi + 1, dtype=np.float64) / nphi

        raw = self._eval_template(phi)
        raw[-1] = raw[0]

        antider = _integration.build_antiderivative(raw)
        self._mean_flux = float(antider[-1])
        self._harmonics = _readonly(_harmonics.profile_harmonics(raw[:-1]))

        if self._detrend:
            # Stored total is exactly zero
            raw -= self._mean_flux
            antider -= self._mean_flux * phi

        self._profile = _readonly(raw)
        self._antider = _readonly(antider)

        logger.debug(
            "Built %r: kappa=%.6g, internal_nphi=%d, mean_flux=%.6g",
            self,
            self._kappa,
            nphi,
            self._mean_flux,
        )

    def _eval_template(self, phi):
        return np.exp(-2 * self._kappa * np.sin(np.pi * phi) ** 2)

    def __repr__(self):
        return (
            f"pulsesim.{self.__class__.__name__}(duty_cycle={self.duty_cycle}, "
            f"detrend={self.detrend}, min_internal_nphi={self.internal_nphi})"
        )

    def __eq__(self, other):
        if not isinstance(other, VonMisesProfile):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def _key(self):
        return (self.duty_cycle, self.detrend, self.internal_nphi)

    def __reduce__(self):
        return (type(self), self._key())

    @property
    def duty_cycle(self):
        """Pulse FWHM divided by the pulse period."""
        return self._duty_cycle

    @property
    def detrend(self):
        """Whether the mean flux is subtracted from the profile."""
        return self._detrend

    @property
    def kappa(self):
        """Narrowness parameter."""
        return self._kappa

    @property
    def internal_nphi(self):
        """Number of phase bins used internally."""
        return self._internal_nphi

    @property
    def mean_flux(self):
        """Mean flux of the profile before detrending."""
        return self._mean_flux

    @property
    def profile_grid(self):
        """Profile sampled at ``internal_nphi + 1`` phases in [0, 1]."""
        return self._profile

    @property
    def profile_antiderivative(self):
        """Running integral of `profile_grid` from phase 0."""
        return self._antider

    @property
    def harmonics(self):
        """Fourier coefficients of the un-detrended profile, normalized to 1."""
        return self._harmonics

    def get_mean_flux(self):
        """Mean flux over one period (0 if detrended)."""
        return float(self._antider[-1])

    def point_eval(self, phi, amplitude=1.0):
        """Instantaneous flux at pulse phase(s) ``phi``.

        Reminder: if ``detrend=True`` was specified at construction, the
        returned flux is detrended.
        """
        return amplitude * _integration.interp_profile(self._profile, phi)

    def eval_integrated_sample(self, phi0, phi1, amplitude=1.0):
        """Average flux over phase interval ``[phi0, phi1]``.

        Requires ``0 <= phi1 - phi0 <= 1``. A zero-width interval returns
        ``point_eval(phi0)``.
        """
        avg = _integration.average_phase_interval(
            self._profile, self._antider, phi0, phi1
        )
        return amplitude * avg

    interval_average = eval_integrated_sample

    def eval_integrated_sample_slow(self, phi0, phi1, amplitude=1.0):
        """Average flux over phase interval ``[phi0, phi1]``, the slow way.

        Integrates the analytic profile directly. Intended for debugging
        `eval_integrated_sample`, which agrees to within the grid
        discretization error.
        """
        offset = self._mean_flux if self._detrend else 0.0

        def f(phi):
            return self._eval_template(phi) - offset

        return amplitude * _integration.average_phase_interval_slow(f, phi0, phi1)

    def eval_integrated_samples(
        self,
        t0,
        t1,
        nt,
        phase_model,
        amplitude=1.0,
        out=None,
        block_size=_integration.PHI_BLOCK_SIZE,
    ):
        """Simulate a pulsar in a regularly spaced sequence of time samples.

        The ``t0`` argument is the *beginning* of the first time sample,
        and ``t1`` the *end* of the last, so ``t1 = t0 + nt * dt``.

        Parameters
        ----------
        t0, t1 : float
            Time range in seconds, with ``t1 >= t0``.
        nt : int
            Number of time samples.
        phase_model : PhaseModel or callable
            Non-decreasing, vectorized map from time to pulse phase.
        amplitude : float, optional
            Flux normalization. Default is 1.
        out : `~numpy.ndarray`, optional
            Array of shape ``(nt,)`` to overwrite with the result.
        block_size : int, optional
            Number of samples evaluated at a time.

        Returns
        -------
        out : `~numpy.ndarray`
            Average flux in each time sample.
        """
        return _integration.eval_integrated_samples(
            self._profile,
            self._antider,
            t0,
            t1,
            nt,
            phase_model,
            amplitude=amplitude,
            out=out,
            block_size=block_size,
        )

    def add_integrated_samples(
        self,
        out,
        t0,
        t1,
        nt,
        phase_model,
        amplitude=1.0,
        block_size=_integration.PHI_BLOCK_SIZE,
    ):
        """Like `eval_integrated_samples`, but adds to ``out``."""
        return _integration.eval_integrated_samples(
            self._profile,
            self._antider,
            t0,
            t1,
            nt,
            phase_model,
            amplitude=amplitude,
            out=out,
            accumulate=True,
            block_size=block_size,
        )

    def get_profile_fft(self, nout=0, out=None):
        """Fourier transform of the profile.

        Returns :math:`\\rho_m = \\int_0^1 d\\phi\\, \\rho(\\phi) e^{2\\pi i m\\phi}`,
        which is real and symmetric in ``m``. The DC mode equals
        `mean_flux` if ``detrend=False``, or 0 if ``detrend=True``.

        Parameters
        ----------
        nout : int, optional
            Number of coefficients. If 0 (default), the length of ``out``
            is used if given, else the number of coefficients computed
            internally (``internal_nphi // 2 + 10``). Longer outputs are
            zero-padded.
        out : `~numpy.ndarray`, optional
            1D array to write the coefficients into.
        """
        if out is not None and nout == 0:
            nout = len(out)

        dc = 0.0 if self._detrend else None
        rho = self._mean_flux * _harmonics.get_fourier(self._harmonics, nout, dc)

        if out is None:
            return rho

        if np.shape(out) != rho.shape:
            raise InvalidArgument(
                f"Expected output array with shape {rho.shape}."
            )
        out[...] = rho
        return out

    def get_single_pulse_signal_to_noise(self, dt_sample, pulse_freq, sample_rms=1.0):
        """SNR of a single pulse with unit amplitude.

        Accounts for finite time resolution and detrending. This is an
        approximation which may slightly depend on exact arrival times.
        """
        return _snr.single_pulse_snr(
            self._mean_flux * self._harmonics,
            dt_sample,
            pulse_freq,
            sample_rms,
            self._detrend,
        )

    def get_multi_pulse_signal_to_noise(
        self, total_time, dt_sample, pulse_freq, sample_rms=1.0
    ):
        """SNR of a pulse train of duration ``total_time`` with unit amplitude."""
        return _snr.multi_pulse_snr(
            self._mean_flux * self._harmonics,
            total_time,
            dt_sample,
            pulse_freq,
            sample_rms,
            self._detrend,
        )

"""Signal-to-noise of periodic pulses in finite-resolution time samples."""

import numpy as np
import astropy.units as u
from ..core import InvalidArgument, verify_positive

__all__ = [
    "smoothed_mean_square",
    "single_pulse_snr",
    "multi_pulse_snr",
]


def smoothed_mean_square(rho, x, detrend=False):
    """Mean square flux of a profile smoothed by a boxcar of width ``x``.

    By Parseval's theorem, the mean over phase of the squared,
    boxcar-smoothed profile is

    .. math:: \\sum_{m=-\\infty}^{\\infty} |\\rho_m|^2 \\mathrm{sinc}^2(m x)

    where ``x`` is the boxcar width in pulse phase and ``sinc`` is the
    normalized sinc function. The profile is assumed symmetric, so
    :math:`\\rho_{-m} = \\rho_m`.

    Parameters
    ----------
    rho : array-like
        Fourier coefficients ``rho_m`` for ``m >= 0`` (not normalized).
    x : float
        Sample width in units of pulse period (``pulse_freq * dt_sample``).
    detrend : bool, optional
        Whether to exclude the DC term.
    """
    rho = np.asarray(rho, dtype=np.float64)
    m = np.arange(len(rho))
    terms = 2 * (rho * np.sinc(m * x)) ** 2
    terms[0] = 0.0 if detrend else rho[0] ** 2
    return float(np.sum(terms))


def single_pulse_snr(rho, dt_sample, pulse_freq, sample_rms=1.0, detrend=False):
    """Approximate SNR of a single pulse with unit amplitude.

    A pulse spans ``1 / (pulse_freq * dt_sample)`` samples; the
    matched-filter SNR is the root of their summed squared means divided
    by the per-sample noise.

    Parameters
    ----------
    rho : array-like
        Fourier coefficients of the profile.
    dt_sample : float or Quantity
        Length of each time sample (seconds).
    pulse_freq : float or Quantity
        Pulse frequency (Hz).
    sample_rms : float, optional
        RMS noise in each time sample. Default is 1.
    detrend : bool, optional
        Whether the profile mean is subtracted.
    """
    dt_sample = verify_positive(dt_sample, "dt_sample", u.s)
    pulse_freq = verify_positive(pulse_freq, "pulse_freq", u.Hz)
    sample_rms = verify_positive(sample_rms, "sample_rms")

    x = pulse_freq * dt_sample
    s2 = smoothed_mean_square(rho, x, detrend)
    return np.sqrt(s2 / x) / sample_rms


def multi_pulse_snr(
    rho, total_time, dt_sample, pulse_freq, sample_rms=1.0, detrend=False
):
    """Approximate SNR of a pulse train with unit amplitude.

    Noise is independent between the ``total_time / dt_sample`` samples,
    so the squared SNR adds over samples. Equivalent to the single-pulse
    SNR scaled by ``sqrt(total_time * pulse_freq)``.

    Parameters
    ----------
    rho : array-like
        Fourier coefficients of the profile.
    total_time : float or Quantity
        Total duration of the pulse train (seconds). Must be at least
        ``dt_sample``.
    dt_sample : float or Quantity
        Length of each time sample (seconds).
    pulse_freq : float or Quantity
        Pulse frequency (Hz).
    sample_rms : float, optional
        RMS noise in each time sample. Default is 1.
    detrend : bool, optional
        Whether the profile mean is subtracted.
    """
    total_time = verify_positive(total_time, "total_time", u.s)
    dt_sample = verify_positive(dt_sample, "dt_sample", u.s)
    pulse_freq = verify_positive(pulse_freq, "pulse_freq", u.Hz)
    sample_rms = verify_positive(sample_rms, "sample_rms")

    if total_time < dt_sample:
        raise InvalidArgument(
            f"Expected total_time >= dt_sample, got {total_time} < {dt_sample}."
        )

    s2 = smoothed_mean_square(rho, pulse_freq * dt_sample, detrend)
    return np.sqrt(s2 * total_time / dt_sample) / sample_rms

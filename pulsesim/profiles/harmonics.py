"""Harmonic (Fourier) analysis of sampled pulse profiles."""

import numpy as np
import scipy.fft
from ..core import InvalidArgument, verify_nonnegative_int

__all__ = [
    "NUM_EXTRA_HARMONICS",
    "profile_harmonics",
    "get_fourier",
]


NUM_EXTRA_HARMONICS = 10


def profile_harmonics(samples, nout=None):
    """Normalized cosine Fourier coefficients of a periodic profile.

    Computes the discrete approximation of

    .. math:: \\rho_m = \\int_0^1 d\\phi\\, \\rho(\\phi) e^{2\\pi i m \\phi}

    for a profile that is even about phase 0, in which case the
    coefficients are real and :math:`\\rho_m = \\rho_{-m}`. The result is
    divided by :math:`\\rho_0`, so the zeroth entry is exactly 1.

    Parameters
    ----------
    samples : array-like
        Profile sampled at ``nphi`` equally spaced phases ``j / nphi``
        covering exactly one period (no wraparound point). Must not be
        detrended, since the normalization divides by the mean.
    nout : int, optional
        Length of the output. Entries above the Nyquist harmonic are
        zero. Default is ``nphi // 2 + NUM_EXTRA_HARMONICS``.

    Returns
    -------
    harmonics : `~numpy.ndarray`
        Normalized coefficients of length ``nout``.
    """
    samples = np.asarray(samples, dtype=np.float64)
    if samples.ndim != 1 or len(samples) == 0:
        raise InvalidArgument("Expected a non-empty 1D array of samples.")

    if nout is None:
        nout = len(samples) // 2 + NUM_EXTRA_HARMONICS
    nout = verify_nonnegative_int(nout, "nout")

    # Imaginary parts vanish (up to roundoff) for an even profile
    coeffs = scipy.fft.rfft(samples).real
    if coeffs[0] <= 0:
        raise InvalidArgument("Profile must have positive mean to normalize.")

    out = np.zeros(nout, dtype=np.float64)
    m = min(nout, len(coeffs))
    out[:m] = coeffs[:m] / coeffs[0]
    out[0] = 1.0
    return out


def get_fourier(harmonics, count=0, dc=None):
    """Returns ``count`` Fourier coefficients, zero-padded as needed.

    Parameters
    ----------
    harmonics : array-like
        Internally retained coefficients.
    count : int, optional
        Number of coefficients to return. If 0 (default), the internal
        length is used. Coefficients beyond the internal length are zero.
    dc : float, optional
        If given, replaces the zeroth coefficient in the returned array
        (e.g. 0 for a detrended profile). The input is never modified.

    Returns
    -------
    out : `~numpy.ndarray`
    """
    count = verify_nonnegative_int(count, "count")
    harmonics = np.asarray(harmonics, dtype=np.float64)

    if count == 0:
        count = len(harmonics)

    out = np.zeros(count, dtype=np.float64)
    m = min(count, len(harmonics))
    out[:m] = harmonics[:m]

    if dc is not None and count > 0:
        out[0] = dc
    return out

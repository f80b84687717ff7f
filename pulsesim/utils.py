"""Collection of handy utilities."""

import numpy as np
from functools import lru_cache


__all__ = [
    "split_phase",
    "next_fast_len",
]


def split_phase(phi):
    """Split phase(s) into integer and fractional parts.

    Parameters
    ----------
    phi : float or array-like
        Pulse phase(s) in cycles.

    Returns
    -------
    ip : float or `~numpy.ndarray`
        ``floor(phi)``.
    fp : float or `~numpy.ndarray`
        ``phi - floor(phi)``, guaranteed to lie in ``[0, 1)``.
    """
    phi = np.asarray(phi, dtype=np.float64)
    ip = np.floor(phi)
    fp = phi - ip

    # phi slightly below an integer can round up to fp == 1.0
    edge = fp >= 1.0
    if np.any(edge):
        ip = np.where(edge, ip + 1, ip)
        fp = np.where(edge, 0.0, fp)

    if phi.ndim == 0:
        return float(ip), float(fp)
    return ip, fp


@lru_cache(maxsize=1024)
def next_fast_len(N):
    """Returns smallest 7-smooth number >= N.

    Phase grids with 7-smooth lengths keep the harmonic analysis FFT fast.
    """
    if N <= 10:
        return N

    f7, guess = 1, 2 * N
    while f7 < guess:
        f75 = f7
        while f75 < guess:
            x = f75

            while x < N:
                x *= 2

            while 1:
                if x < N:
                    x *= 3
                elif x > N:
                    if x < guess:
                        guess = x
                    if x & 1:
                        break
                    x >>= 1
                else:
                    return N

            f75 *= 5
        f7 *= 7
    return guess

"""Point, interval and batch evaluation of gridded periodic profiles.

A profile is represented by two arrays of length ``nphi + 1``: the flux
sampled at phases ``j / nphi`` (including the wraparound point) and its
running integral from phase 0. Within a grid cell the flux is linearly
interpolated, and the antiderivative is the exact integral of that
interpolant, so interval averages are consistent with point evaluation.
"""

import logging
import numpy as np
from scipy import integrate
from ..core import InvalidArgument, verify_nonnegative_int
from ..utils import split_phase

__all__ = [
    "PHI_BLOCK_SIZE",
    "build_antiderivative",
    "interp_profile",
    "interp_antiderivative",
    "integrate_phase_interval",
    "average_phase_interval",
    "average_phase_interval_slow",
    "eval_integrated_samples",
]

logger = logging.getLogger(__name__)

PHI_BLOCK_SIZE = 1024


def build_antiderivative(grid):
    """Trapezoid-rule running integral of a profile grid.

    ``grid`` covers one period with ``nphi + 1`` points; the result has
    the same length, starts at 0, and ends at the mean over one period.
    """
    grid = np.asarray(grid, dtype=np.float64)
    nphi = len(grid) - 1

    out = np.zeros(nphi + 1, dtype=np.float64)
    np.cumsum(0.5 * (grid[:-1] + grid[1:]) / nphi, out=out[1:])
    return out


def _locate(nphi, fp):
    x = np.asarray(fp) * nphi
    j = np.minimum(np.floor(x).astype(np.int64), nphi - 1)
    return j, x - j


def interp_profile(grid, phi):
    """Linearly interpolate a profile grid at (unwrapped) phase(s)."""
    phi = np.asarray(phi, dtype=np.float64)
    if not np.all(np.isfinite(phi)):
        raise InvalidArgument("Phases must be finite.")

    nphi = len(grid) - 1
    _, fp = split_phase(phi)
    j, w = _locate(nphi, fp)
    res = (1 - w) * grid[j] + w * grid[j + 1]
    return float(res) if np.ndim(res) == 0 else res


def interp_antiderivative(grid, antider, fp):
    """Antiderivative at fractional phase(s) ``fp`` in ``[0, 1)``.

    Inside cell ``j`` the integral of the linear interpolant is
    quadratic in the cell offset.
    """
    nphi = len(grid) - 1
    j, w = _locate(nphi, fp)
    g0 = grid[j]
    dg = grid[j + 1] - g0
    return antider[j] + w * (g0 + 0.5 * w * dg) / nphi


def integrate_phase_interval(grid, antider, phi0, phi1):
    """Integral of the profile over ``[phi0, phi1]``, with ``phi1 >= phi0``.

    The interval is split into a partial period at the start, ``k - 1``
    full periods and a partial period at the end, where ``k`` is the
    number of period boundaries crossed. Each full period contributes
    ``antider[-1]`` regardless of phase offset. Vectorized.
    """
    ip0, fp0 = split_phase(phi0)
    ip1, fp1 = split_phase(phi1)

    # k = 0: A(fp1) - A(fp0)
    # k >= 1: [A(1) - A(fp0)] + (k - 1) A(1) + [A(fp1) - A(0)]
    k = ip1 - ip0
    a0 = interp_antiderivative(grid, antider, fp0)
    a1 = interp_antiderivative(grid, antider, fp1)
    return k * antider[-1] + (a1 - a0)


def average_phase_interval(grid, antider, phi0, phi1):
    """Average flux over a phase interval no longer than one period.

    A zero-width interval returns the point value at ``phi0``.

    Raises
    ------
    InvalidArgument
        If ``phi1 - phi0`` is negative, larger than 1, or not finite.
    """
    phi0, phi1 = float(phi0), float(phi1)
    dphi = phi1 - phi0

    if not (np.isfinite(phi0) and np.isfinite(phi1)):
        raise InvalidArgument("Phases must be finite.")
    if not (0 <= dphi <= 1):
        raise InvalidArgument(
            f"Expected 0 <= phi1 - phi0 <= 1, got phi0={phi0}, phi1={phi1}. "
            "Longer intervals must be split by the caller."
        )

    if dphi == 0:
        return interp_profile(grid, phi0)

    return float(integrate_phase_interval(grid, antider, phi0, phi1)) / dphi


def average_phase_interval_slow(func, phi0, phi1):
    """Average of ``func`` over ``[phi0, phi1]`` by direct quadrature.

    ``func`` is a periodic function of phase peaking at integer phases.
    The interval is split at every integer phase so that no peak falls
    inside a quadrature segment. Intended for debugging only.
    """
    phi0, phi1 = float(phi0), float(phi1)
    if not (np.isfinite(phi0) and np.isfinite(phi1)) or phi1 < phi0:
        raise InvalidArgument(f"Invalid phase interval [{phi0}, {phi1}].")

    if phi1 == phi0:
        return float(func(phi0))

    edges = np.arange(np.floor(phi0) + 1, np.ceil(phi1))
    edges = np.concatenate([[phi0], edges, [phi1]])

    total = 0.0
    for a, b in zip(edges[:-1], edges[1:]):
        if b > a:
            total += integrate.quad(func, a, b, limit=200, epsabs=1e-13)[0]

    return total / (phi1 - phi0)


def _phase_function(phase_model):
    if hasattr(phase_model, "eval_phi"):
        return phase_model.eval_phi
    if callable(phase_model):
        return phase_model
    raise InvalidArgument("phase_model must be callable or define eval_phi().")


def _blocks(start, stop, block_size):
    for i0 in range(start, stop, block_size):
        yield i0, min(i0 + block_size, stop)


def eval_integrated_samples(
    grid,
    antider,
    t0,
    t1,
    nt,
    phase_model,
    amplitude=1.0,
    out=None,
    accumulate=False,
    block_size=PHI_BLOCK_SIZE,
    start=0,
    stop=None,
):
    """Average flux in each of ``nt`` equally spaced time bins.

    Bin ``i`` covers ``[t0 + i*dt, t0 + (i+1)*dt)`` with
    ``dt = (t1 - t0) / nt``. Its phase interval is obtained from
    ``phase_model`` and may span any number of periods.

    Parameters
    ----------
    grid, antider : `~numpy.ndarray`
        Profile grid and its antiderivative (see `build_antiderivative`).
    t0, t1 : float
        Start of the first bin and end of the last bin.
    nt : int
        Number of time bins.
    phase_model : PhaseModel or callable
        Vectorized, non-decreasing map from times to phases (cycles).
    amplitude : float, optional
        Scale factor for the flux. Default is 1.
    out : `~numpy.ndarray`, optional
        Output array of shape ``(stop - start,)``. Allocated if not given.
    accumulate : bool, optional
        Whether to add to ``out`` instead of overwriting it.
    block_size : int, optional
        Number of bins processed at a time. Does not change the result.
    start, stop : int, optional
        Only evaluate bins ``start <= i < stop`` (default: all bins).
        The bins are the same as in a call over the full range.

    Returns
    -------
    out : `~numpy.ndarray`

    Raises
    ------
    InvalidArgument
        For invalid arguments, or if the phase model output is not
        finite and non-decreasing. ``out`` is not modified in that case.
    """
    t0, t1, amplitude = float(t0), float(t1), float(amplitude)
    nt = verify_nonnegative_int(nt, "nt")
    block_size = verify_nonnegative_int(block_size, "block_size")
    start = verify_nonnegative_int(start, "start")
    stop = nt if stop is None else verify_nonnegative_int(stop, "stop")
    phase_fn = _phase_function(phase_model)

    if not (np.isfinite(t0) and np.isfinite(t1)):
        raise InvalidArgument("t0 and t1 must be finite.")
    if t1 < t0:
        raise InvalidArgument(f"Expected t1 >= t0, got t0={t0}, t1={t1}.")
    if not np.isfinite(amplitude):
        raise InvalidArgument("amplitude must be finite.")
    if block_size == 0:
        raise InvalidArgument("block_size must be positive.")
    if not start <= stop <= nt:
        raise InvalidArgument(f"Invalid bin range [{start}, {stop}) for nt={nt}.")

    n = stop - start
    if out is None:
        out = np.zeros(n, dtype=np.float64)
    elif not isinstance(out, np.ndarray) or out.shape != (n,):
        raise InvalidArgument(f"Expected output array with shape ({n},).")

    if n == 0:
        return out

    dt = (t1 - t0) / nt
    index = np.arange(block_size + 1, dtype=np.float64)
    tbuf = np.empty(block_size + 1, dtype=np.float64)

    def block_phases(i0, i1):
        t = tbuf[: i1 - i0 + 1]
        np.add(index[: i1 - i0 + 1], i0, out=t)
        t *= dt
        t += t0
        if i1 == nt:
            t[-1] = t1

        ph = np.asarray(phase_fn(t), dtype=np.float64)
        if ph.shape != t.shape:
            raise InvalidArgument(
                f"Phase model returned shape {ph.shape}, expected {t.shape}."
            )
        return ph

    nblocks = -(n // -block_size)
    logger.debug("Evaluating %d samples in %d block(s)", n, nblocks)

    # Validate everything before the first write
    for i0, i1 in _blocks(start, stop, block_size):
        ph = block_phases(i0, i1)
        if not np.all(np.isfinite(ph)):
            raise InvalidArgument(
                f"Phase model returned non-finite phases in bins [{i0}, {i1})."
            )
        bad = np.flatnonzero(ph[1:] < ph[:-1])
        if len(bad):
            i = i0 + bad[0]
            raise InvalidArgument(
                f"Phase model is not monotonic in bin {i}: "
                f"phi0 = {ph[bad[0]]} > phi1 = {ph[bad[0] + 1]}."
            )

    for i0, i1 in _blocks(start, stop, block_size):
        ph = block_phases(i0, i1)
        phi0, phi1 = ph[:-1], ph[1:]
        dphi = phi1 - phi0
        nonzero = dphi > 0

        res = integrate_phase_interval(grid, antider, phi0, phi1)
        res = np.where(nonzero, res / np.where(nonzero, dphi, 1.0), 0.0)
        if not np.all(nonzero):
            res = np.where(nonzero, res, interp_profile(grid, phi0))

        s = slice(i0 - start, i1 - start)
        if accumulate:
            out[s] += amplitude * res
        else:
            out[s] = amplitude * res

    return out

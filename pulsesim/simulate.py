"""Chunked and lazy simulation of pulsar time series."""

import logging
import numpy as np
import dask
import dask.array as da
from .core import verify_nonnegative_int
from .profiles import integration

__all__ = ["simulate_pulsar"]

logger = logging.getLogger(__name__)


def _chunk_bounds(chunks):
    edges = np.cumsum((0,) + tuple(chunks))
    return list(zip(edges[:-1].tolist(), edges[1:].tolist()))


def _eval_chunk(profile, phase_model, t0, t1, nt, i0, i1, amplitude):
    return integration.eval_integrated_samples(
        profile.profile_grid,
        profile.profile_antiderivative,
        t0,
        t1,
        nt,
        phase_model,
        amplitude=amplitude,
        start=i0,
        stop=i1,
    )


def simulate_pulsar(profile, phase_model, t0, t1, nt, amplitude=1.0, chunks=None):
    """Simulate a noiseless pulsar in ``nt`` time samples spanning ``[t0, t1)``.

    Parameters
    ----------
    profile : VonMisesProfile
        Pulse profile.
    phase_model : PhaseModel or callable
        Non-decreasing, vectorized map from time to pulse phase.
    t0, t1 : float
        Start of the first sample and end of the last sample (seconds).
    nt : int
        Number of time samples.
    amplitude : float, optional
        Flux normalization. Default is 1.
    chunks : int or tuple of int, optional
        If given, returns a lazy dask array with these chunks along
        time, where each chunk is evaluated independently on compute.
        Large simulations can then be computed (or abandoned) piecewise.

    Returns
    -------
    out : `~numpy.ndarray` or `~dask.array.Array`
        Average flux in each time sample. Chunked and unchunked results
        are identical.
    """
    nt = verify_nonnegative_int(nt, "nt")

    if chunks is None:
        return profile.eval_integrated_samples(t0, t1, nt, phase_model, amplitude)

    # Check arguments eagerly; phases are only checked on compute
    integration.eval_integrated_samples(
        profile.profile_grid,
        profile.profile_antiderivative,
        t0,
        t1,
        nt,
        phase_model,
        amplitude=amplitude,
        stop=0,
    )

    chunks = da.core.normalize_chunks((chunks,), shape=(nt,), dtype=np.float64)[0]
    logger.debug("Simulating %d samples lazily in %d chunk(s)", nt, len(chunks))

    delayed_eval = dask.delayed(_eval_chunk)
    blocks = [
        da.from_delayed(
            delayed_eval(profile, phase_model, t0, t1, nt, i0, i1, amplitude),
            shape=(i1 - i0,),
            dtype=np.float64,
        )
        for i0, i1 in _chunk_bounds(chunks)
    ]
    if not blocks:
        return da.zeros((0,), dtype=np.float64)
    return da.concatenate(blocks)

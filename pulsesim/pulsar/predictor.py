"""Phase models driven by tempo1-style polycos."""

from dataclasses import dataclass
import numpy as np
from numpy.polynomial import Polynomial
from astropy import units as u
from astropy.time import Time
from ..core import InvalidArgument, InvalidConfiguration
from ..utils import split_phase
from .phase_models import PhaseModel

__all__ = ["PolycoEntry", "PhasePredictor", "PolycoPhaseModel"]


@dataclass
class PolycoEntry:
    """A single polyco block.

    Parameters
    ----------
    psr : str
        Pulsar name.
    obs : str
        Observatory code.
    freq : Quantity
        Observing frequency.
    tmid : Time
        Midpoint of the block's validity range.
    span : Quantity
        Length of the validity range.
    rphase : int
        Integer pulse number at ``tmid``.
    poly : numpy.polynomial.Polynomial
        Phase in cycles, relative to ``rphase``, as a function of
        seconds since ``tmid``.
    """

    psr: str
    obs: str
    freq: u.Quantity
    tmid: Time
    span: u.Quantity
    rphase: int
    poly: Polynomial


def _read_entry(header, f):
    d2e = str.maketrans("Dd", "ee")

    psr, _, _, mjd_mid, *_ = header.split()
    rphase, f0, obs, span, ncoeff, freq, *_ = f.readline().split()
    ncoeff = int(ncoeff)

    coeffs = []
    while len(coeffs) < ncoeff:
        line = f.readline()
        if not line.strip():
            raise InvalidArgument(f"Polyco entry for {psr} is truncated.")
        coeffs += line.translate(d2e).split()

    # Coefficients are per power of minutes since tmid; the reference
    # phase is split so that its integer part stays exact
    r_int, _, r_frac = rphase.partition(".")
    coeffs = np.array(coeffs[:ncoeff], dtype=np.float64)
    coeffs[0] += float("0." + (r_frac or "0"))
    coeffs[1] += float(f0) * 60
    coeffs /= 60.0 ** np.arange(ncoeff)

    return PolycoEntry(
        psr=psr,
        obs=obs,
        freq=float(freq) * u.MHz,
        tmid=Time(mjd_mid, format="mjd", precision=9),
        span=int(span) * u.min,
        rphase=int(r_int or "0"),
        poly=Polynomial(coeffs),
    )


class PhasePredictor:
    """Pulse phase predictor backed by a set of polyco entries.

    Every timestamp is evaluated with the entry whose midpoint is
    closest to it, and must lie within that entry's span. Pulse numbers
    are far too large to be held precisely in a float, so phases are
    returned as an integer number of cycles plus a fraction.

    Parameters
    ----------
    entries : sequence of PolycoEntry
        Entries for a single pulsar, observatory and observing
        frequency, all with the same span.
    """

    def __init__(self, entries):
        entries = sorted(entries, key=lambda e: e.tmid.mjd)
        if not entries:
            raise InvalidConfiguration("Expected at least one polyco entry.")

        first = entries[0]
        for k in ["psr", "obs", "freq", "span"]:
            if any(getattr(e, k) != getattr(first, k) for e in entries[1:]):
                raise InvalidConfiguration(f"All entries must have the same '{k}'.")

        self._entries = tuple(entries)
        self._tmid = Time([e.tmid for e in entries])
        self._half_span = first.span.to_value(u.s) / 2

    def __repr__(self):
        return (
            f"pulsesim.{self.__class__.__name__}"
            f"(psr={self.psr}, entries={len(self)})"
        )

    def __len__(self):
        return len(self._entries)

    def __getitem__(self, index):
        return self._entries[index]

    @property
    def psr(self):
        """Pulsar name."""
        return self._entries[0].psr

    @property
    def tmid(self):
        """Midpoints of all entries, sorted."""
        return self._tmid

    def _locate(self, times):
        mid = self._tmid.mjd
        mjd = np.atleast_1d(times.mjd)

        hi = np.minimum(np.searchsorted(mid, mjd), len(mid) - 1)
        lo = np.maximum(hi - 1, 0)
        index = np.where(mjd - mid[lo] <= mid[hi] - mjd, lo, hi)
        index = int(index[0]) if times.isscalar else index.reshape(times.shape)

        dt = (times - self._tmid[index]).to_value(u.s)
        if np.any(np.abs(dt) > self._half_span):
            raise InvalidArgument("Some timestamps outside predictor range!")
        return index, dt

    def _evaluate(self, times, deriv=0):
        index, dt = self._locate(times)

        if times.isscalar:
            e = self._entries[index]
            return e.rphase, e.poly.deriv(deriv)(dt)

        int_phase = np.zeros(times.shape, dtype=np.int64)
        value = np.zeros(times.shape, dtype=np.float64)
        for i in np.unique(index):
            s = index == i
            e = self._entries[i]
            int_phase[s] = e.rphase
            value[s] = e.poly.deriv(deriv)(dt[s])
        return int_phase, value

    def __call__(self, times):
        """Predict pulse phase at given times.

        Parameters
        ----------
        times : Time
            Timestamp(s) for which phases are to be predicted.

        Returns
        -------
        int_phase : int or `~numpy.ndarray` of int64
            Integer part of the phase (cycles).
        frac_phase : float or `~numpy.ndarray`
            Remaining phase (cycles), in ``[0, 1)``.
        """
        int_phase, phase = self._evaluate(times)
        ip, fp = split_phase(phase)
        return int_phase + np.asarray(ip).astype(np.int64)[()], fp

    def f0(self, times, n=0):
        """Pulse frequency (``n = 0``) or its ``n``-th derivative at given times."""
        _, f = self._evaluate(times, n + 1)
        return f * (u.cycle / u.s ** (n + 1))

    @classmethod
    def from_polyco(cls, path):
        """Read tempo1-style polycos.

        Parameters
        ----------
        path : path-like or file-like
            Either a path to a polyco file or a file-like object that
            supports the ``readline()`` method.

        Notes
        -----
        Each entry is a header of two lines followed by ``NCOEFF``
        coefficients, three per line. The phase at time ``T`` (MJD) is::

            DT = (T-TMID)*1440
            PHASE = RPHASE + DT*60*F0 + COEFF(1) + DT*COEFF(2) + DT^2*COEFF(3) + ....

        References
        ----------
        http://tempo.sourceforge.net/ref_man_sections/tz-polyco.txt
        """
        f = path if hasattr(path, "readline") else open(path, "r")

        entries = []
        with f:
            while header := f.readline():
                if not header.strip():
                    continue
                try:
                    entries.append(_read_entry(header, f))
                except InvalidArgument:
                    raise
                except (TypeError, ValueError) as e:
                    raise InvalidArgument(f"Malformed polyco entry: {e}") from e

        if not entries:
            raise InvalidArgument("No polyco entries found.")

        return cls(entries)


class PolycoPhaseModel(PhaseModel):
    """Phase model backed by a `PhasePredictor`.

    Times are seconds since the reference timestamp ``t_ref`` and phases
    are counted from the integer phase at ``t_ref``, which keeps them
    small enough to be represented precisely as floats.

    Parameters
    ----------
    predictor : PhasePredictor
        Phase predictor to evaluate.
    t_ref : Time
        Scalar reference timestamp, within the predictor's range.
    """

    def __init__(self, predictor, t_ref):
        if not isinstance(t_ref, Time) or not t_ref.isscalar:
            raise InvalidConfiguration("t_ref must be a scalar astropy Time.")

        self.predictor = predictor
        self.t_ref = t_ref
        self.ref_phase, _ = predictor(t_ref)

    def __repr__(self):
        return (
            f"pulsesim.{self.__class__.__name__}"
            f"(psr={self.predictor.psr}, t_ref={self.t_ref.isot})"
        )

    def _times(self, t):
        return self.t_ref + np.asarray(t, dtype=np.float64) * u.s

    def eval_phi(self, t):
        ip, fp = self.predictor(self._times(t))
        return (ip - self.ref_phase) + fp

    def eval_omega(self, t):
        return self.predictor.f0(self._times(t)).to_value(u.cycle / u.s)

import pulsesim as ps
import astropy.units as u
from pathlib import Path

# Phase model from a polyco file
polyco = Path("B1937+21_58245.dat")
predictor = ps.PhasePredictor.from_polyco(polyco)
pm = ps.PolycoPhaseModel(predictor, predictor.tmid[0])

profile = ps.VonMisesProfile(0.05, detrend=True)
dt = 1.024 * u.us
nt = 2**24

x = ps.simulate_pulsar(profile, pm, 0.0, nt * dt.to_value(u.s), nt, chunks=2**20)
x = x.compute()

snr = profile.get_multi_pulse_signal_to_noise(nt * dt, dt, pm.eval_omega(0.0) * u.Hz)
print(f"Expected S/N: {snr:.2f}")

"""Tests for simulating pulsars in integrated time samples."""

import pytest
import numpy as np
from concurrent.futures import ThreadPoolExecutor
import pulsesim as ps

RAND = np.random.default_rng(seed=42)


def identity(t):
    return np.asarray(t, dtype=np.float64)


class TestEvalIntegratedSamples:
    def test_scenario(self):
        p = ps.VonMisesProfile(0.1, False)
        x = p.eval_integrated_samples(0.0, 10.0, 10, identity, amplitude=1.0)

        assert x.shape == (10,)
        assert np.allclose(x, p.get_mean_flux(), rtol=1e-14, atol=0)

    @pytest.mark.parametrize("detrend", [True, False])
    @pytest.mark.parametrize("offset", [0.0, 0.3, -12.75])
    def test_whole_periods(self, detrend, offset):
        p = ps.VonMisesProfile(0.1, detrend)
        for k in [1, 2, 3, 17]:
            x = p.eval_integrated_samples(0.0, 8.0 * k, 8, lambda t: t + offset)
            assert np.allclose(x, p.get_mean_flux(), rtol=1e-12, atol=1e-12)

    @pytest.mark.parametrize("detrend", [True, False])
    def test_vs_interval_average(self, detrend):
        p = ps.VonMisesProfile(0.05, detrend)
        pm = ps.ConstantAccelerationPhaseModel(0.37, 3.0, 0.2, 1.0)
        t0, t1, nt = 0.5, 2.5, 200

        x = p.eval_integrated_samples(t0, t1, nt, pm)
        t = t0 + np.arange(nt + 1) * (t1 - t0) / nt
        ph = pm.eval_phi(t)
        y = [p.interval_average(a, b) for a, b in zip(ph[:-1], ph[1:])]
        assert np.allclose(x, y, rtol=1e-10, atol=1e-12)

    def test_vs_slow(self):
        p = ps.VonMisesProfile(0.1, False)
        pm = ps.ConstantAccelerationPhaseModel(0.1, 9.0, 1.0, 0.0)
        t0, t1, nt = 0.0, 3.0, 25

        x = p.eval_integrated_samples(t0, t1, nt, pm)
        t = t0 + np.arange(nt + 1) * (t1 - t0) / nt
        ph = pm(t)
        y = [p.eval_integrated_sample_slow(a, b) for a, b in zip(ph[:-1], ph[1:])]
        assert np.all(ph[1:] - ph[:-1] > 1)
        assert np.allclose(x, y, rtol=0, atol=1e-4)

    @pytest.mark.parametrize("block_size", [1, 2, 7, 100, 1024, 5000])
    def test_block_size(self, block_size):
        p = ps.VonMisesProfile(0.1, True)
        pm = ps.ConstantAccelerationPhaseModel(0.0, 13.7, 0.5, 0.0)

        ref = p.eval_integrated_samples(0.0, 1.7, 1000, pm)
        x = p.eval_integrated_samples(0.0, 1.7, 1000, pm, block_size=block_size)
        assert np.array_equal(x, ref)

    def test_amplitude(self):
        p = ps.VonMisesProfile(0.1, False)
        x = p.eval_integrated_samples(0.0, 1.0, 64, identity)
        y = p.eval_integrated_samples(0.0, 1.0, 64, identity, amplitude=2.5)
        assert np.allclose(y, 2.5 * x)

    def test_out(self):
        p = ps.VonMisesProfile(0.1, False)
        out = np.full(64, np.nan)
        x = p.eval_integrated_samples(0.0, 1.0, 64, identity, out=out)
        assert x is out
        assert np.all(np.isfinite(out))

        y = np.ones(64)
        z = p.add_integrated_samples(y, 0.0, 1.0, 64, identity, amplitude=2.0)
        assert z is y
        assert np.allclose(y, 1 + 2 * x)

    def test_zero_width(self):
        p = ps.VonMisesProfile(0.1, False)

        x = p.eval_integrated_samples(3.0, 3.0, 4, identity)
        assert np.allclose(x, p.point_eval(3.0))

        x = p.eval_integrated_samples(0.0, 1.0, 4, lambda t: np.full_like(t, 0.25))
        assert np.allclose(x, p.point_eval(0.25))

    def test_empty(self):
        p = ps.VonMisesProfile(0.1, False)
        x = p.eval_integrated_samples(0.0, 1.0, 0, identity)
        assert x.shape == (0,)

        x = p.eval_integrated_samples(1.0, 1.0, 0, identity)
        assert x.shape == (0,)

    def test_bad_args(self):
        p = ps.VonMisesProfile(0.1, False)
        out = np.full(16, 7.0)

        bad = [
            dict(t0=1.0, t1=0.0, nt=16),
            dict(t0=0.0, t1=1.0, nt=-1),
            dict(t0=0.0, t1=np.inf, nt=16),
            dict(t0=0.0, t1=1.0, nt=16, block_size=0),
            dict(t0=0.0, t1=1.0, nt=16, amplitude=np.nan),
            dict(t0=0.0, t1=1.0, nt=15, out=out),
        ]
        for kwargs in bad:
            kwargs.setdefault("out", out)
            kwargs.setdefault("phase_model", identity)
            with pytest.raises(ps.InvalidArgument):
                _ = p.eval_integrated_samples(**kwargs)

        with pytest.raises(ps.InvalidArgument):
            _ = p.eval_integrated_samples(0.0, 1.0, 16, "not a phase model")

        with pytest.raises(ps.InvalidArgument):
            _ = p.eval_integrated_samples(0.0, 1.0, 16, lambda t: 1.0)

        assert np.all(out == 7.0)

    @pytest.mark.parametrize("block_size", [8, 1024])
    def test_non_monotonic(self, block_size):
        p = ps.VonMisesProfile(0.1, False)
        out = np.full(100, 7.0)

        def bad_model(t):
            return np.where(t < 5, t, 10 - t)

        for pm in [bad_model, lambda t: -t]:
            with pytest.raises(ps.InvalidArgument):
                p.eval_integrated_samples(0.0, 10.0, 100, pm, out=out, block_size=block_size)
            assert np.all(out == 7.0)

        with pytest.raises(ps.InvalidArgument):
            p.add_integrated_samples(out, 0.0, 10.0, 100, bad_model, block_size=block_size)
        assert np.all(out == 7.0)

    def test_non_finite(self):
        p = ps.VonMisesProfile(0.1, False)
        with pytest.raises(ps.InvalidArgument):
            _ = p.eval_integrated_samples(0.0, 1.0, 8, lambda t: np.full_like(t, np.nan))

    def test_spin_down(self):
        p = ps.VonMisesProfile(0.1, False)
        pm = ps.ConstantAccelerationPhaseModel(0.0, 1.0, -0.1, 0.0)

        x = p.eval_integrated_samples(0.0, 10.0, 100, pm)
        assert np.all(np.isfinite(x))

        with pytest.raises(ps.InvalidArgument):
            _ = p.eval_integrated_samples(0.0, 20.0, 100, pm)

    def test_threads(self):
        p = ps.VonMisesProfile(0.1, True)
        models = [
            ps.ConstantAccelerationPhaseModel(0.0, f, 0.0, 0.0) for f in [1.3, 7.1, 31.0]
        ]
        ref = [p.eval_integrated_samples(0.0, 2.0, 3000, pm) for pm in models]

        def run(i):
            return p.eval_integrated_samples(0.0, 2.0, 3000, models[i % 3], block_size=64)

        with ThreadPoolExecutor(max_workers=4) as ex:
            results = list(ex.map(run, range(12)))

        for i, x in enumerate(results):
            assert np.array_equal(x, ref[i % 3])

    def test_mean_over_many_periods(self):
        p = ps.VonMisesProfile(0.2, False)
        pm = ps.ConstantAccelerationPhaseModel(0.0, 100.0, 0.0, 0.0)
        x = p.eval_integrated_samples(0.0, 10.0, 1234, pm)
        assert np.isclose(np.mean(x), p.mean_flux, rtol=1e-10)


class TestIntegrationFunctions:
    def test_antiderivative(self):
        grid = np.array([1.0, 3.0, 2.0, 1.0])
        a = ps.profiles.integration.build_antiderivative(grid)
        assert np.allclose(a, [0, 2 / 3, 3 / 2, 2])

        phi = RAND.uniform(0, 1, size=100)
        b = ps.profiles.integration.interp_antiderivative(grid, a, phi)
        for x, y in zip(phi, b):
            ref = ps.profiles.integration.average_phase_interval_slow(
                lambda f: ps.profiles.integration.interp_profile(grid, f), 0, x
            )
            assert np.isclose(y, ref * x, atol=1e-10)

    def test_integrate_phase_interval(self):
        p = ps.VonMisesProfile(0.1, False)
        f = ps.profiles.integration.integrate_phase_interval
        g, a = p.profile_grid, p.profile_antiderivative

        phi0 = RAND.uniform(-5, 5, size=100)
        k = RAND.integers(0, 5, size=100)
        x = f(g, a, phi0, phi0 + k)
        assert np.allclose(x, k * p.mean_flux, rtol=1e-10, atol=1e-14)

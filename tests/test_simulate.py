"""Tests for `pulsesim.simulate_pulsar`."""

import pytest
import numpy as np
import dask.array as da
import pulsesim as ps


@pytest.fixture
def profile():
    return ps.VonMisesProfile(0.1, True)


@pytest.fixture
def phase_model():
    return ps.ConstantAccelerationPhaseModel(0.2, 29.9, 0.01, 0.0)


class TestSimulatePulsar:
    def test_eager(self, profile, phase_model):
        x = ps.simulate_pulsar(profile, phase_model, 0.0, 2.0, 4096)
        y = profile.eval_integrated_samples(0.0, 2.0, 4096, phase_model)
        assert isinstance(x, np.ndarray)
        assert np.array_equal(x, y)

    @pytest.mark.parametrize("chunks", [100, 1024, 4096, (1000, 3000, 96)])
    def test_lazy(self, profile, phase_model, chunks):
        ref = ps.simulate_pulsar(profile, phase_model, 0.0, 2.0, 4096)
        x = ps.simulate_pulsar(profile, phase_model, 0.0, 2.0, 4096, chunks=chunks)

        assert isinstance(x, da.Array)
        assert x.shape == (4096,)
        assert np.array_equal(x.compute(), ref)

    def test_amplitude(self, profile, phase_model):
        x = ps.simulate_pulsar(profile, phase_model, 0.0, 1.0, 100, amplitude=3.0, chunks=30)
        y = ps.simulate_pulsar(profile, phase_model, 0.0, 1.0, 100)
        assert np.allclose(x.compute(), 3 * y)

    def test_empty(self, profile, phase_model):
        x = ps.simulate_pulsar(profile, phase_model, 0.0, 1.0, 0, chunks=10)
        assert x.shape == (0,)
        assert x.compute().shape == (0,)

    def test_bad_args(self, profile, phase_model):
        with pytest.raises(ps.InvalidArgument):
            _ = ps.simulate_pulsar(profile, phase_model, 1.0, 0.0, 10, chunks=5)

        with pytest.raises(ps.InvalidArgument):
            _ = ps.simulate_pulsar(profile, phase_model, 0.0, 1.0, -10, chunks=5)

        x = ps.simulate_pulsar(profile, lambda t: -t, 0.0, 1.0, 10, chunks=5)
        with pytest.raises(ps.InvalidArgument):
            _ = x.compute()

"""Tests for the biquad low-pass SignalFilter."""

import numpy as np
import pytest
from scipy import signal as scipy_signal

from hapticbeat.core.filter import SignalFilter
from hapticbeat.exceptions import InvalidConfigError, InvalidSampleRateError

from conftest import TEST_SR


def reference_direct_form_1(x, a0, a1, a2, b1, b2):
    """Plain sample-by-sample biquad, zero initial history."""
    y = np.zeros(len(x))
    x1 = x2 = y1 = y2 = 0.0
    for n, x0 in enumerate(x):
        y0 = a0 * x0 + a1 * x1 + a2 * x2 - b1 * y1 - b2 * y2
        x2, x1 = x1, x0
        y2, y1 = y1, y0
        y[n] = y0
    return y


@pytest.fixture
def lowpass():
    f = SignalFilter()
    f.configure(200.0, TEST_SR)
    return f


@pytest.fixture
def noise():
    rng = np.random.default_rng(7)
    return rng.uniform(-1.0, 1.0, 4096)


class TestCoefficients:
    def test_symmetric_numerator(self, lowpass):
        st = lowpass.state
        assert st.a2 == pytest.approx(st.a0)
        assert st.a1 == pytest.approx(2 * st.a0)

    def test_unity_dc_gain(self, lowpass):
        b, a = lowpass.coefficients()
        assert b.sum() / a.sum() == pytest.approx(1.0)

    def test_matches_scipy_butterworth(self, lowpass):
        b_ref, a_ref = scipy_signal.butter(2, 200.0, btype="low", fs=TEST_SR)
        b, a = lowpass.coefficients()
        np.testing.assert_allclose(b, b_ref, rtol=1e-9, atol=1e-12)
        np.testing.assert_allclose(a, a_ref, rtol=1e-9, atol=1e-12)

    def test_reconfigure_same_pair_keeps_history(self, lowpass, noise):
        lowpass.apply(noise[:100])
        y1_before = lowpass.state.y1
        lowpass.configure(200.0, TEST_SR)
        assert lowpass.state.y1 == y1_before


class TestApply:
    def test_matches_direct_form_1(self, lowpass, noise):
        st = lowpass.state
        expected = reference_direct_form_1(noise, st.a0, st.a1, st.a2, st.b1, st.b2)
        np.testing.assert_allclose(lowpass.apply(noise), expected, atol=1e-10)

    def test_chunked_equals_one_shot(self, noise):
        whole = SignalFilter()
        whole.configure(200.0, TEST_SR)
        expected = whole.apply(noise)

        chunked = SignalFilter()
        chunked.configure(200.0, TEST_SR)
        parts = [chunked.apply(c) for c in np.array_split(noise, [1, 2, 500, 3001])]
        np.testing.assert_allclose(np.concatenate(parts), expected, atol=1e-10)

    def test_history_carries_over_without_reset(self, lowpass, noise):
        first = lowpass.apply(noise)
        second = lowpass.apply(noise)
        assert not np.allclose(first[:10], second[:10])

    def test_reset_restores_fresh_behaviour(self, lowpass, noise):
        first = lowpass.apply(noise)
        lowpass.reset()
        again = lowpass.apply(noise)
        np.testing.assert_allclose(first, again)

    def test_attenuates_above_cutoff(self, lowpass):
        t = np.arange(TEST_SR) / TEST_SR
        low = lowpass.apply(np.sin(2 * np.pi * 50.0 * t))
        lowpass.reset()
        high = lowpass.apply(np.sin(2 * np.pi * 2000.0 * t))

        def rms(x):
            return np.sqrt(np.mean(x[2000:] ** 2))

        assert rms(high) < 0.05 * rms(low)

    def test_empty_input(self, lowpass):
        out = lowpass.apply(np.zeros(0))
        assert out.shape == (0,)
        assert lowpass.state.y1 == 0.0

    def test_output_length_and_dtype(self, lowpass):
        out = lowpass.apply(np.ones(100, dtype=np.float32))
        assert len(out) == 100
        assert out.dtype == np.float64


class TestErrors:
    def test_apply_before_configure(self):
        with pytest.raises(RuntimeError):
            SignalFilter().apply(np.zeros(10))

    @pytest.mark.parametrize("sr", [0, -44100])
    def test_invalid_sample_rate(self, sr):
        with pytest.raises(InvalidSampleRateError):
            SignalFilter().configure(200.0, sr)

    @pytest.mark.parametrize("cutoff", [0.0, -5.0, TEST_SR / 2, TEST_SR])
    def test_invalid_cutoff(self, cutoff):
        with pytest.raises(InvalidConfigError):
            SignalFilter().configure(cutoff, TEST_SR)

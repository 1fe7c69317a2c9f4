"""Tests for the radix-2 FFT and SpectralAnalyzer."""

import numpy as np
import pytest

from hapticbeat.core.spectral import SpectralAnalyzer, Spectrogram, bit_reverse_indices, fft
from hapticbeat.exceptions import InvalidConfigError

from conftest import TEST_SR


@pytest.fixture
def analyzer():
    return SpectralAnalyzer()


class TestFFT:
    def test_bit_reverse_eight(self):
        assert list(bit_reverse_indices(8)) == [0, 4, 2, 6, 1, 5, 3, 7]

    @pytest.mark.parametrize("n", [1, 2, 4, 64, 1024])
    def test_matches_numpy(self, n):
        rng = np.random.default_rng(n)
        frames = rng.standard_normal((3, n))
        np.testing.assert_allclose(fft(frames), np.fft.fft(frames, axis=-1), atol=1e-9)

    def test_complex_input(self):
        rng = np.random.default_rng(1)
        x = rng.standard_normal((2, 32)) + 1j * rng.standard_normal((2, 32))
        np.testing.assert_allclose(fft(x), np.fft.fft(x, axis=-1), atol=1e-9)

    def test_one_dimensional_input(self):
        x = np.arange(16, dtype=float)
        out = fft(x)
        assert out.shape == (1, 16)
        np.testing.assert_allclose(out[0], np.fft.fft(x), atol=1e-9)

    def test_rejects_non_power_of_two(self):
        with pytest.raises(InvalidConfigError):
            fft(np.zeros((1, 12)))

    def test_input_not_modified(self):
        x = np.ones((1, 8))
        fft(x)
        assert np.all(x == 1.0)


class TestSpectrogram:
    @pytest.mark.parametrize("fft_size,hop", [(256, 128), (512, 512), (1024, 100), (2048, 1)])
    def test_frame_length(self, analyzer, pure_sine, fft_size, hop):
        y, _ = pure_sine
        spec = analyzer.compute_spectrogram(y[:4096], fft_size, hop)
        assert spec.magnitudes.shape[1] == fft_size // 2 + 1
        assert spec.n_bins == fft_size // 2 + 1

    def test_frame_count(self, analyzer):
        spec = analyzer.compute_spectrogram(np.zeros(3000), 1024, 512)
        # starts 0, 512, 1024, 1536 fit; 2048 + 1024 > 3000
        assert spec.n_frames == 4
        assert len(spec) == 4

    def test_exact_fit(self, analyzer):
        assert analyzer.compute_spectrogram(np.zeros(1024), 1024, 512).n_frames == 1

    def test_short_input_has_no_frames(self, analyzer):
        spec = analyzer.compute_spectrogram(np.zeros(1000), 1024, 512)
        assert spec.n_frames == 0
        assert spec.magnitudes.shape == (0, 513)

    def test_matches_numpy_rfft(self, analyzer, pure_sine):
        y, _ = pure_sine
        spec = analyzer.compute_spectrogram(y, 512, 256)
        frame3 = y[3 * 256:3 * 256 + 512] * np.hamming(512)
        np.testing.assert_allclose(spec.magnitudes[3], np.abs(np.fft.rfft(frame3)), atol=1e-8)

    def test_peak_at_tone_bin(self, analyzer, pure_sine):
        y, sr = pure_sine
        spec = analyzer.compute_spectrogram(y, 1024, 512)
        expected_bin = round(440.0 * 1024 / sr)
        assert abs(int(np.argmax(spec.magnitudes[0])) - expected_bin) <= 1

    def test_non_negative(self, analyzer):
        rng = np.random.default_rng(3)
        spec = analyzer.compute_spectrogram(rng.uniform(-1, 1, 5000), 256, 64)
        assert np.all(spec.magnitudes >= 0.0)

    def test_frame_times(self, analyzer):
        spec = analyzer.compute_spectrogram(np.zeros(4096), 1024, 512, sample_rate=TEST_SR)
        np.testing.assert_allclose(spec.frame_times, np.arange(spec.n_frames) * 512 / TEST_SR)

    def test_deterministic(self, analyzer, pure_sine):
        y, _ = pure_sine
        a = analyzer.compute_spectrogram(y, 1024, 512).magnitudes
        b = analyzer.compute_spectrogram(y, 1024, 512).magnitudes
        np.testing.assert_array_equal(a, b)

    @pytest.mark.parametrize("fft_size,hop", [(1000, 500), (1024, 0), (1024, 2048)])
    def test_invalid_config(self, analyzer, fft_size, hop):
        with pytest.raises(InvalidConfigError):
            analyzer.compute_spectrogram(np.zeros(4096), fft_size, hop)

    def test_dataclass_defaults(self):
        spec = Spectrogram(magnitudes=np.zeros((2, 5)), fft_size=8, hop_size=4)
        assert spec.frame_times.size == 0

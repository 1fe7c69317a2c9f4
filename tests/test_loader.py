"""Tests for SampleBuffer and AudioLoader."""

import numpy as np
import pytest
from scipy.io import wavfile

from hapticbeat.core.loader import AudioLoader, SampleBuffer
from hapticbeat.exceptions import InvalidSampleRateError

from conftest import TEST_SR


@pytest.fixture
def wav_file(tmp_path, pure_sine):
    y, sr = pure_sine
    path = tmp_path / "tone.wav"
    wavfile.write(path, sr, y.astype(np.float32))
    return path


class TestSampleBuffer:
    def test_stores_float64_copy(self):
        src = np.ones(10, dtype=np.float32)
        buf = SampleBuffer(samples=src, sample_rate=TEST_SR)
        assert buf.samples.dtype == np.float64
        src[0] = 5.0
        assert buf.samples[0] == 1.0

    def test_read_only(self):
        buf = SampleBuffer(samples=np.zeros(4), sample_rate=TEST_SR)
        with pytest.raises(ValueError):
            buf.samples[0] = 1.0

    def test_duration_from_samples(self):
        buf = SampleBuffer(samples=np.zeros(TEST_SR // 2), sample_rate=TEST_SR)
        assert buf.n_samples == TEST_SR // 2
        assert buf.duration == pytest.approx(0.5)

    def test_reported_duration_wins(self):
        buf = SampleBuffer(samples=np.zeros(100), sample_rate=TEST_SR, duration_sec=3.25)
        assert buf.duration == 3.25

    @pytest.mark.parametrize("sr", [0, -44100])
    def test_invalid_sample_rate(self, sr):
        with pytest.raises(InvalidSampleRateError):
            SampleBuffer(samples=np.zeros(10), sample_rate=sr)

    def test_rejects_stereo(self):
        with pytest.raises(ValueError):
            SampleBuffer(samples=np.zeros((2, 10)), sample_rate=TEST_SR)

    def test_from_chunks(self):
        buf = SampleBuffer.from_chunks([np.ones(3), np.zeros(2), [0.5]], TEST_SR)
        np.testing.assert_array_equal(buf.samples, [1, 1, 1, 0, 0, 0.5])

    def test_from_no_chunks(self):
        buf = SampleBuffer.from_chunks([], TEST_SR)
        assert buf.n_samples == 0
        assert buf.duration == 0.0


class TestAudioLoader:
    def test_native_rate(self, wav_file, pure_sine):
        y, sr = pure_sine
        buf = AudioLoader().load(wav_file)
        assert buf.sample_rate == sr
        assert buf.n_samples == len(y)
        assert buf.duration == pytest.approx(1.0)
        np.testing.assert_allclose(buf.samples, y, atol=1e-6)

    def test_resample(self, wav_file):
        buf = AudioLoader(sr=11025).load(wav_file)
        assert buf.sample_rate == 11025
        assert buf.n_samples == pytest.approx(11025, abs=2)

    def test_stereo_downmix(self, tmp_path):
        left = np.full(1000, 0.2, dtype=np.float32)
        right = np.full(1000, 0.6, dtype=np.float32)
        path = tmp_path / "stereo.wav"
        wavfile.write(path, TEST_SR, np.stack([left, right], axis=1))

        buf = AudioLoader().load(path)
        assert buf.samples.ndim == 1
        np.testing.assert_allclose(buf.samples, 0.4, atol=1e-6)

"""Shared synthetic signals for the test suite."""

import numpy as np
import pytest

from hapticbeat.core.loader import SampleBuffer

TEST_SR = 22050
CLICK_BPM = 100


def make_click_track(
    sr: int = TEST_SR,
    bpm: float = CLICK_BPM,
    duration: float = 8.0,
    freq: float = 80.0,
    click_len: float = 0.08,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Decaying low-frequency bursts on every beat, silence in between.

    Returns:
        (samples, click_times_sec)
    """
    n = int(sr * duration)
    y = np.zeros(n)
    period = 60.0 / bpm
    click_times = np.arange(0.5, duration - click_len, period)

    t = np.arange(int(sr * click_len)) / sr
    burst = 0.9 * np.sin(2 * np.pi * freq * t) * np.exp(-t / (click_len / 4))
    for ct in click_times:
        start = int(round(ct * sr))
        y[start:start + len(burst)] += burst
    return y, click_times


@pytest.fixture
def click_track():
    y, click_times = make_click_track()
    return SampleBuffer(samples=y, sample_rate=TEST_SR), click_times


@pytest.fixture
def pure_sine():
    """One second of a 440 Hz tone."""
    t = np.arange(TEST_SR) / TEST_SR
    return 0.5 * np.sin(2 * np.pi * 440.0 * t), TEST_SR


@pytest.fixture
def silence():
    return SampleBuffer(samples=np.zeros(TEST_SR), sample_rate=TEST_SR)


@pytest.fixture
def empty_buffer():
    return SampleBuffer(samples=np.zeros(0), sample_rate=TEST_SR)

"""
Spectral-flux onset detection.

Spectral flux measures the positive frame-to-frame increase in magnitude,
which spikes on percussive attacks. Onsets are the local flux maxima above
a threshold, spaced by a minimum interval.
"""

from typing import NamedTuple, Sequence

import numpy as np

from hapticbeat.core.spectral import Spectrogram


class OnsetEvent(NamedTuple):
    """A detected transient: time in ms and a normalized strength in [0, 1]."""

    time_ms: int
    amplitude: float


class OnsetDetector:
    """Greedy peak-picking over the spectral-flux curve."""

    @staticmethod
    def spectral_flux(magnitudes: np.ndarray) -> np.ndarray:
        """
        Mean positive magnitude increase per frame.

        Entry ``i`` compares frame ``i`` with frame ``i - 1``; entry 0 has no
        predecessor and is 0.

        Args:
            magnitudes: Array of shape (n_frames, n_bins).

        Returns:
            Flux array of length n_frames.
        """
        mags = np.asarray(magnitudes, dtype=np.float64)
        flux = np.zeros(len(mags))
        if len(mags) >= 2:
            diff = np.diff(mags, axis=0)
            flux[1:] = np.maximum(diff, 0.0).mean(axis=1)
        return flux

    @staticmethod
    def min_interval_frames(min_interval_ms: float, sample_rate: int, hop_size: int) -> int:
        """Convert a minimum onset spacing in ms to whole spectrogram frames."""
        return int(round(min_interval_ms * sample_rate / (1000.0 * hop_size)))

    def pick_peaks(
        self,
        flux: np.ndarray,
        threshold: float,
        min_interval_frames: int,
    ) -> list[int]:
        """
        Select local flux maxima above ``threshold``.

        ``flux`` is indexed by spectrogram frame and only frames 1..N-1
        carry a value. The first and last of those are never onsets since
        they lack a neighbour on one side. Once an onset is accepted the
        next one must be at least ``min_interval_frames`` later.
        """
        onsets = []
        last_onset = -min_interval_frames

        for i in range(2, len(flux) - 1):
            if (
                flux[i] > threshold
                and flux[i] > flux[i - 1]
                and flux[i] > flux[i + 1]
                and i - last_onset >= min_interval_frames
            ):
                onsets.append(i)
                last_onset = i

        return onsets

    def detect_onsets(
        self,
        spectrogram: Spectrogram,
        threshold: float = 0.3,
        min_interval_ms: float = 50.0,
        sample_rate: int = 44100,
        hop_size: int = 512,
    ) -> list[int]:
        """
        Detect onset frames in a spectrogram.

        Args:
            spectrogram: Magnitude spectrogram.
            threshold: Minimum flux for an onset.
            min_interval_ms: Minimum spacing between onsets.
            sample_rate: Sample rate the spectrogram was computed at.
            hop_size: Spectrogram hop in samples.

        Returns:
            Ascending spectrogram frame indices. Empty for fewer than 2 frames.
        """
        mags = spectrogram.magnitudes if isinstance(spectrogram, Spectrogram) else spectrogram
        if len(mags) < 2:
            return []

        flux = self.spectral_flux(mags)
        return self.pick_peaks(
            flux,
            threshold,
            self.min_interval_frames(min_interval_ms, sample_rate, hop_size),
        )

    @staticmethod
    def to_events(
        onset_frames: Sequence[int],
        flux: np.ndarray,
        sample_rate: int,
        hop_size: int,
    ) -> list[OnsetEvent]:
        """
        Turn onset frames into timed events.

        Amplitude is the flux at the frame divided by the flux maximum, so it
        lands in [0, 1].
        """
        if len(onset_frames) == 0:
            return []
        peak = float(np.max(flux))
        events = []
        for frame in onset_frames:
            time_ms = int(round(frame * hop_size / sample_rate * 1000.0))
            amplitude = float(flux[frame]) / peak if peak > 0 else 0.0
            events.append(OnsetEvent(time_ms=time_ms, amplitude=amplitude))
        return events

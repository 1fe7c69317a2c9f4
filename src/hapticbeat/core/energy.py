"""Sliding-window RMS energy."""

import librosa
import numpy as np


class EnergyAnalyzer:
    """
    Computes windowed RMS over filtered samples.

    The resulting series drives tempo estimation.
    """

    def compute_rms(
        self,
        samples: np.ndarray,
        window_size: int,
        hop_size: int,
        normalize: bool = False,
    ) -> np.ndarray:
        """
        RMS = sqrt(mean(x**2)) for each full window, advancing by hop_size.

        Args:
            samples: Mono signal.
            window_size: Samples per window.
            hop_size: Samples between window starts.
            normalize: Divide by the series maximum (no-op if max <= 0).

        Returns:
            1-D array, empty when the signal is shorter than one window.
        """
        x = np.ascontiguousarray(samples, dtype=np.float64)
        if len(x) < window_size:
            return np.zeros(0)

        rms = librosa.feature.rms(
            y=x,
            frame_length=window_size,
            hop_length=hop_size,
            center=False,
            dtype=np.float64,
        )[0]

        if normalize:
            peak = float(np.max(rms))
            if peak > 0:
                rms = rms / peak

        return rms

    @staticmethod
    def frame_times(n_frames: int, hop_size: int, sample_rate: int) -> np.ndarray:
        """Start time (seconds) of each RMS window."""
        return np.arange(n_frames) * hop_size / sample_rate

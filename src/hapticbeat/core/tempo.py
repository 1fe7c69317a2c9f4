"""
Tempo estimation by autocorrelation of an energy envelope.

The envelope (typically the RMS series) is sampled at its own rate, e.g.
sample_rate / rms_hop_size frames per second. The lag with the strongest
self-similarity inside the BPM search range gives the beat period.
"""

import math
from typing import Optional

import numpy as np
from scipy import signal as scipy_signal

from hapticbeat.exceptions import InvalidConfigError


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


class TempoEstimator:
    """Estimates a single global BPM from an energy envelope."""

    @staticmethod
    def autocorrelation(signal: np.ndarray) -> np.ndarray:
        """
        Unbiased autocorrelation, R[lag] = sum(s[i] * s[i + lag]) / (N - lag).

        The signal is first divided by its maximum (skipped if max <= 0).
        Values are not normalised against R[0]; only their ordering across
        lags matters.

        Returns:
            Array of length N, one value per lag 0..N-1.
        """
        s = np.asarray(signal, dtype=np.float64)
        n = len(s)
        if n == 0:
            return np.zeros(0)

        peak = float(np.max(s))
        if peak > 0:
            s = s / peak

        full = scipy_signal.correlate(s, s, mode="full")
        sums = full[n - 1:]
        return sums / (n - np.arange(n))

    def estimate_bpm(
        self,
        signal: np.ndarray,
        signal_sample_rate_hz: float,
        min_bpm: int = 60,
        max_bpm: int = 180,
    ) -> Optional[int]:
        """
        Estimate tempo from an energy envelope.

        Args:
            signal: Envelope values (e.g. RMS per window).
            signal_sample_rate_hz: Envelope frames per second, not the audio rate.
            min_bpm: Slowest tempo considered.
            max_bpm: Fastest tempo considered.

        Returns:
            Rounded BPM, or None if the signal has fewer than 2 values or
            no lag of the search range fits inside it.
        """
        if min_bpm <= 0 or max_bpm < min_bpm:
            raise InvalidConfigError(
                f"BPM range must satisfy 0 < min_bpm <= max_bpm, got [{min_bpm}, {max_bpm}]"
            )
        if signal_sample_rate_hz <= 0:
            raise InvalidConfigError(
                f"signal_sample_rate_hz must be positive, got {signal_sample_rate_hz}"
            )

        n = len(signal)
        if n < 2:
            return None

        r = self.autocorrelation(signal)

        min_lag = max(1, _round_half_up(60.0 / max_bpm * signal_sample_rate_hz))
        max_lag = min(n - 1, _round_half_up(60.0 / min_bpm * signal_sample_rate_hz))
        if min_lag > max_lag:
            return None

        best_lag = min_lag + int(np.argmax(r[min_lag:max_lag + 1]))
        return _round_half_up(60.0 / (best_lag / signal_sample_rate_hz))

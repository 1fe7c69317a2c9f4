"""
Second-order Butterworth low-pass filter.

Keeps the low-frequency, percussive part of the signal (kicks, bass) before
energy and onset analysis. The filter is stateful: its input/output history
carries over between apply() calls so a long buffer can be filtered in
chunks. Call reset() before filtering an unrelated buffer, otherwise the
previous history leaks into the leading edge of the new one.
"""

import math
from dataclasses import dataclass

import numpy as np
from scipy import signal as scipy_signal

from hapticbeat.exceptions import InvalidConfigError, InvalidSampleRateError

BUTTERWORTH_Q = math.sqrt(2.0) / 2.0


@dataclass
class FilterState:
    """Biquad coefficients and Direct-Form-I history."""

    a0: float = 0.0
    a1: float = 0.0
    a2: float = 0.0
    b1: float = 0.0
    b2: float = 0.0

    x1: float = 0.0
    x2: float = 0.0
    y1: float = 0.0
    y2: float = 0.0

    def clear_history(self) -> None:
        self.x1 = self.x2 = self.y1 = self.y2 = 0.0


class SignalFilter:
    """
    Biquad low-pass filter computed with the bilinear transform.

    Difference equation::

        y[n] = a0*x[n] + a1*x[n-1] + a2*x[n-2] - b1*y[n-1] - b2*y[n-2]
    """

    def __init__(self):
        self.state = FilterState()
        self.cutoff_hz = None
        self.sample_rate = None

    @property
    def is_configured(self) -> bool:
        return self.sample_rate is not None

    def configure(self, cutoff_hz: float, sample_rate: int) -> None:
        """
        Compute coefficients for a (cutoff, sample rate) pair.

        Coefficients are only recomputed when the pair changes; history is
        left untouched.

        Args:
            cutoff_hz: Cutoff frequency in Hz, below Nyquist.
            sample_rate: Sample rate of the signal to be filtered.
        """
        if sample_rate <= 0:
            raise InvalidSampleRateError(
                f"sample_rate must be positive, got {sample_rate}"
            )
        if not 0 < cutoff_hz < sample_rate / 2:
            raise InvalidConfigError(
                f"cutoff_hz must be in (0, {sample_rate / 2}), got {cutoff_hz}"
            )
        if (cutoff_hz, sample_rate) == (self.cutoff_hz, self.sample_rate):
            return

        omega = 2.0 * math.pi * cutoff_hz / sample_rate
        sin_omega = math.sin(omega)
        cos_omega = math.cos(omega)
        alpha = sin_omega / (2.0 * BUTTERWORTH_Q)
        a0_inv = 1.0 / (1.0 + alpha)

        st = self.state
        st.a0 = (1.0 - cos_omega) / 2.0 * a0_inv
        st.a1 = (1.0 - cos_omega) * a0_inv
        st.a2 = st.a0
        st.b1 = -2.0 * cos_omega * a0_inv
        st.b2 = (1.0 - alpha) * a0_inv

        self.cutoff_hz = cutoff_hz
        self.sample_rate = sample_rate

    def coefficients(self) -> tuple[np.ndarray, np.ndarray]:
        """Return (numerator, denominator) in scipy's ``(b, a)`` convention."""
        st = self.state
        return np.array([st.a0, st.a1, st.a2]), np.array([1.0, st.b1, st.b2])

    def apply(self, samples: np.ndarray) -> np.ndarray:
        """
        Filter samples, continuing from the current history.

        Args:
            samples: Mono PCM samples.

        Returns:
            Filtered samples (float64, same length).
        """
        if not self.is_configured:
            raise RuntimeError("SignalFilter.apply() called before configure()")

        x = np.asarray(samples, dtype=np.float64)
        if len(x) == 0:
            return np.zeros(0)

        st = self.state
        b, a = self.coefficients()
        # lfilter keeps transposed-form state; translate the DF-I history.
        zi = scipy_signal.lfiltic(b, a, y=[st.y1, st.y2], x=[st.x1, st.x2])
        y, _ = scipy_signal.lfilter(b, a, x, zi=zi)

        x_hist = np.concatenate([[st.x2, st.x1], x])
        y_hist = np.concatenate([[st.y2, st.y1], y])
        st.x2, st.x1 = float(x_hist[-2]), float(x_hist[-1])
        st.y2, st.y1 = float(y_hist[-2]), float(y_hist[-1])

        return y

    def reset(self) -> None:
        """Zero the input/output history (coefficients are kept)."""
        self.state.clear_history()

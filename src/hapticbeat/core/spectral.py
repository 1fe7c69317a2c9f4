"""
Windowed FFT magnitude spectrogram.

Frames are Hamming-windowed and transformed with an iterative radix-2
Cooley-Tukey FFT (bit-reversal permutation followed by butterfly stages).
Every stage is vectorised across all frames at once, so one spectrogram
costs log2(fft_size) numpy passes rather than a Python loop per frame.
"""

from dataclasses import dataclass, field
from typing import Optional

import librosa
import numpy as np

from hapticbeat.config import is_power_of_two
from hapticbeat.exceptions import InvalidConfigError


@dataclass
class Spectrogram:
    """Time-ordered magnitude frames."""

    magnitudes: np.ndarray  # Shape: (n_frames, fft_size // 2 + 1)
    fft_size: int
    hop_size: int
    sample_rate: Optional[int] = None
    frame_times: np.ndarray = field(default_factory=lambda: np.array([]))

    def __post_init__(self):
        if len(self.frame_times) == 0 and self.sample_rate:
            self.frame_times = np.arange(self.n_frames) * self.hop_size / self.sample_rate

    @property
    def n_frames(self) -> int:
        return self.magnitudes.shape[0]

    @property
    def n_bins(self) -> int:
        return self.fft_size // 2 + 1

    def __len__(self) -> int:
        return self.n_frames


def bit_reverse_indices(n: int) -> np.ndarray:
    """
    Bit-reversal permutation for a power-of-two length.

    Example: with n=8, index 6 (110) maps to 3 (011).
    """
    levels = n.bit_length() - 1
    idx = np.arange(n)
    rev = np.zeros(n, dtype=np.int64)
    for bit in range(levels):
        rev |= ((idx >> bit) & 1) << (levels - 1 - bit)
    return rev


def fft(frames: np.ndarray) -> np.ndarray:
    """
    Radix-2 decimation-in-time FFT over the last axis.

    Args:
        frames: Real or complex array of shape (n_frames, n), n a power of two.

    Returns:
        Complex spectrum with the same shape.
    """
    frames = np.atleast_2d(frames)
    n_frames, n = frames.shape
    if not is_power_of_two(n):
        raise InvalidConfigError(f"FFT length must be a power of two, got {n}")

    data = frames[:, bit_reverse_indices(n)].astype(np.complex128)

    size = 2
    while size <= n:
        half = size // 2
        twiddle = np.exp(-2j * np.pi * np.arange(half) / size)
        blocks = data.reshape(n_frames, n // size, size)
        top = blocks[..., :half]
        t = twiddle * blocks[..., half:]
        blocks[..., half:] = top - t
        blocks[..., :half] += t
        size *= 2

    return data


class SpectralAnalyzer:
    """Computes magnitude spectrograms for onset detection."""

    def __init__(self):
        self._windows: dict[int, np.ndarray] = {}

    def hamming(self, size: int) -> np.ndarray:
        """Symmetric Hamming window, 0.54 - 0.46*cos(2*pi*n/(N-1)), cached per size."""
        if size not in self._windows:
            self._windows[size] = np.hamming(size)
        return self._windows[size]

    def compute_spectrogram(
        self,
        samples: np.ndarray,
        fft_size: int,
        hop_size: int,
        sample_rate: Optional[int] = None,
    ) -> Spectrogram:
        """
        Slide a window over the signal and take FFT magnitudes.

        Windows start at multiples of hop_size for as long as a full
        fft_size window fits; a trailing partial window is dropped.

        Args:
            samples: Mono signal.
            fft_size: Window length (power of two).
            hop_size: Step between windows, 1..fft_size.
            sample_rate: Optional, used only to fill frame_times.

        Returns:
            Spectrogram with fft_size // 2 + 1 bins per frame.
        """
        if not is_power_of_two(fft_size):
            raise InvalidConfigError(f"fft_size must be a power of two, got {fft_size}")
        if not 0 < hop_size <= fft_size:
            raise InvalidConfigError(
                f"hop_size must be in 1..{fft_size}, got {hop_size}"
            )

        x = np.ascontiguousarray(samples, dtype=np.float64)
        n_bins = fft_size // 2 + 1

        if len(x) < fft_size:
            magnitudes = np.zeros((0, n_bins))
        else:
            frames = librosa.util.frame(x, frame_length=fft_size, hop_length=hop_size, axis=0)
            spectrum = fft(frames * self.hamming(fft_size))
            magnitudes = np.abs(spectrum[:, :n_bins])

        return Spectrogram(
            magnitudes=magnitudes,
            fft_size=fft_size,
            hop_size=hop_size,
            sample_rate=sample_rate,
        )

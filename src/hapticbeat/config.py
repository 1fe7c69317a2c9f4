"""
Configuration dataclasses for the haptic analysis pipeline.

These immutable config objects are validated eagerly: a bad value raises
InvalidConfigError at construction, never in the middle of a run.
"""

from dataclasses import dataclass

from hapticbeat.exceptions import InvalidConfigError


def is_power_of_two(n: int) -> bool:
    """True for 1, 2, 4, 8, ..."""
    return n > 0 and (n & (n - 1)) == 0


@dataclass(frozen=True)
class AnalysisConfig:
    """
    DSP parameters for one analysis run.

    Attributes:
        fft_size: FFT window length in samples. Must be a power of two.
        hop_size: Spectrogram hop in samples, 1..fft_size (default 50% overlap).
        rms_window_size: RMS window length in samples.
        rms_hop_size: RMS hop in samples.
        low_pass_cutoff_hz: Cutoff of the pre-analysis low-pass filter.
        onset_threshold: Minimum spectral flux for a frame to count as an onset.
        onset_min_interval_ms: Minimum spacing between detected onsets.
        min_bpm: Lower bound of the tempo search range.
        max_bpm: Upper bound of the tempo search range.
    """

    fft_size: int = 1024
    hop_size: int = 512
    rms_window_size: int = 512
    rms_hop_size: int = 256
    low_pass_cutoff_hz: float = 200.0
    onset_threshold: float = 0.3
    onset_min_interval_ms: float = 50.0
    min_bpm: int = 60
    max_bpm: int = 180

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if not is_power_of_two(self.fft_size):
            raise InvalidConfigError(
                f"fft_size must be a power of two, got {self.fft_size}"
            )
        if not 0 < self.hop_size <= self.fft_size:
            raise InvalidConfigError(
                f"hop_size must be in 1..{self.fft_size}, got {self.hop_size}"
            )
        if self.rms_window_size <= 0 or self.rms_hop_size <= 0:
            raise InvalidConfigError(
                "rms_window_size and rms_hop_size must be positive, got "
                f"{self.rms_window_size} and {self.rms_hop_size}"
            )
        if self.low_pass_cutoff_hz <= 0:
            raise InvalidConfigError(
                f"low_pass_cutoff_hz must be positive, got {self.low_pass_cutoff_hz}"
            )
        if self.onset_threshold <= 0:
            raise InvalidConfigError(
                f"onset_threshold must be positive, got {self.onset_threshold}"
            )
        if self.onset_min_interval_ms <= 0:
            raise InvalidConfigError(
                f"onset_min_interval_ms must be positive, got {self.onset_min_interval_ms}"
            )
        if self.min_bpm <= 0 or self.max_bpm < self.min_bpm:
            raise InvalidConfigError(
                f"BPM range must satisfy 0 < min_bpm <= max_bpm, got "
                f"[{self.min_bpm}, {self.max_bpm}]"
            )

    @property
    def n_bins(self) -> int:
        """Number of magnitude bins per spectrogram frame."""
        return self.fft_size // 2 + 1


# Pre-defined configurations

DEFAULT_CONFIG = AnalysisConfig()
"""1024-point FFT, 50% overlap, 200 Hz low-pass."""

PERCUSSIVE_CONFIG = AnalysisConfig(
    hop_size=256,
    rms_hop_size=128,
    low_pass_cutoff_hz=150.0,
    onset_min_interval_ms=40.0,
)
"""Finer hops and a tighter cutoff for kick-driven material."""

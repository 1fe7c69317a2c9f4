"""
Decoded audio input for the haptic pipeline.

The pipeline never parses compressed audio itself; it consumes a mono
floating-point buffer plus its sample rate. AudioLoader is the thin
librosa-backed boundary used by the command line tool.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Union

import librosa
import numpy as np

from hapticbeat.exceptions import InvalidSampleRateError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class SampleBuffer:
    """Mono PCM samples in [-1, 1] and the rate they were decoded at."""

    samples: np.ndarray
    sample_rate: int
    duration_sec: Optional[float] = None  # container-reported, if known

    def __post_init__(self):
        if self.sample_rate <= 0:
            raise InvalidSampleRateError(
                f"sample_rate must be positive, got {self.sample_rate}"
            )
        samples = np.asarray(self.samples, dtype=np.float64)
        if samples.ndim != 1:
            raise ValueError(
                f"SampleBuffer expects mono (1-D) samples, got shape {samples.shape}"
            )
        samples = samples.copy()
        samples.flags.writeable = False
        object.__setattr__(self, "samples", samples)

    @property
    def n_samples(self) -> int:
        """Total number of samples."""
        return len(self.samples)

    @property
    def duration(self) -> float:
        """Container duration when reported, otherwise derived from the sample count."""
        if self.duration_sec is not None:
            return float(self.duration_sec)
        return self.n_samples / self.sample_rate

    @classmethod
    def from_chunks(
        cls,
        chunks: Iterable[np.ndarray],
        sample_rate: int,
        duration_sec: Optional[float] = None,
    ) -> "SampleBuffer":
        """Concatenate decoder output chunks into one flat buffer."""
        parts = [np.asarray(c, dtype=np.float64).ravel() for c in chunks]
        samples = np.concatenate(parts) if parts else np.zeros(0)
        return cls(samples=samples, sample_rate=sample_rate, duration_sec=duration_sec)


class AudioLoader:
    """
    Decodes audio files into SampleBuffers.

    Multichannel audio is downmixed to mono by librosa.
    """

    def __init__(self, sr: Optional[int] = None):
        """
        Initialize the loader.

        Args:
            sr: Target sample rate. None preserves the file's native rate.
        """
        self.sr = sr

    def load(self, audio_path: Union[str, Path]) -> SampleBuffer:
        """
        Load an audio file (wav, flac, mp3, ...).

        Args:
            audio_path: Path to the audio file.

        Returns:
            SampleBuffer with mono samples and the decoded sample rate.
        """
        y, sr_out = librosa.load(audio_path, sr=self.sr, mono=True)
        duration = librosa.get_duration(y=y, sr=sr_out)
        logger.debug(
            "decoded %s: %d samples @ %d Hz (%.2fs)", audio_path, len(y), sr_out, duration
        )
        return SampleBuffer(samples=y, sample_rate=int(sr_out), duration_sec=duration)

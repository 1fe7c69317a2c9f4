"""
Pulse manifest serialization.

Exports the vibration pulse timeline (plus a small metadata header) as JSON
for actuation clients, and the full analysis arrays as a NumPy archive for
offline inspection.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

import numpy as np

from hapticbeat.core.polisher import VibrationPulse
from hapticbeat.pipeline import AnalysisResult


@dataclass
class ManifestMetadata:
    """Metadata header for the pulse manifest."""

    bpm: Optional[int]
    applied_bpm: Optional[int]
    duration: float
    sample_rate: int
    n_pulses: int
    n_onsets: int
    schema_version: str = "1.0"


class PulseExporter:
    """
    Exports analysis results to a JSON pulse manifest.

    Each pulse entry carries ``time_ms``, ``intensity`` and ``duration_ms``;
    times are offsets from the start of playback.
    """

    def __init__(self, precision: int = 4):
        """
        Initialize the exporter.

        Args:
            precision: Decimal places for floating point values.
        """
        self.precision = precision

    def _round(self, value: float) -> float:
        """Round to configured precision."""
        return round(float(value), self.precision)

    def _pulse_entry(self, pulse: VibrationPulse) -> dict[str, Any]:
        return {
            "time_ms": int(pulse.time_ms),
            "intensity": self._round(pulse.intensity),
            "duration_ms": int(pulse.duration_ms),
        }

    def build_manifest(self, result: AnalysisResult) -> dict[str, Any]:
        """
        Build the complete manifest dictionary.

        Args:
            result: Output of AnalysisOrchestrator.run().

        Returns:
            Manifest dictionary ready for serialization.
        """
        metadata = ManifestMetadata(
            bpm=result.bpm,
            applied_bpm=result.applied_bpm,
            duration=self._round(result.duration_sec),
            sample_rate=result.sample_rate,
            n_pulses=len(result.pulses),
            n_onsets=len(result.onsets),
        )

        return {
            "metadata": {
                "bpm": metadata.bpm,
                "applied_bpm": metadata.applied_bpm,
                "duration": metadata.duration,
                "sample_rate": metadata.sample_rate,
                "n_pulses": metadata.n_pulses,
                "n_onsets": metadata.n_onsets,
                "schema_version": metadata.schema_version,
            },
            "pulses": [self._pulse_entry(p) for p in result.pulses],
        }

    def export_json(
        self,
        result: AnalysisResult,
        output_path: Union[str, Path],
        indent: int = 2,
    ) -> Path:
        """
        Export manifest to JSON file.

        Args:
            result: Analysis result.
            output_path: Path for output JSON file.
            indent: JSON indentation level.

        Returns:
            Path to written file.
        """
        manifest = self.build_manifest(result)
        output_path = Path(output_path)

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(manifest, f, indent=indent)

        return output_path

    def export_numpy(
        self,
        result: AnalysisResult,
        output_path: Union[str, Path],
    ) -> Path:
        """
        Export analysis arrays as a compressed .npz archive.

        Pulses are stored column-wise (``pulse_times_ms``,
        ``pulse_intensities``, ``pulse_durations_ms``).
        """
        output_path = Path(output_path)

        np.savez_compressed(
            output_path,
            rms=result.rms_values,
            rms_timestamps=result.rms_timestamps,
            spectrogram=result.spectrogram.magnitudes,
            onset_frames=np.asarray(result.onset_frames, dtype=np.int64),
            onset_timestamps=result.onset_timestamps,
            pulse_times_ms=np.array([p.time_ms for p in result.pulses], dtype=np.int64),
            pulse_intensities=np.array([p.intensity for p in result.pulses], dtype=np.float64),
            pulse_durations_ms=np.array([p.duration_ms for p in result.pulses], dtype=np.int64),
            sample_rate=np.array([result.sample_rate]),
            bpm=np.array([result.bpm if result.bpm is not None else -1]),
        )

        return output_path

    def to_dict(self, result: AnalysisResult) -> dict[str, Any]:
        """Return manifest as dictionary (for in-memory use)."""
        return self.build_manifest(result)

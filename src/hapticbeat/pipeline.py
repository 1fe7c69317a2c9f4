"""
End-to-end haptic analysis pipeline.

Sequences the DSP stages over one decoded buffer and reports progress as a
small state machine::

    Idle -> Processing(phase, progress) -> Completed(result) | Error(message)

Phases always run in the same order (filtering, rms, bpm_estimation,
fft_spectrogram, onset_detection, finalize). Observers either register an
``on_state`` callback or poll ``AnalysisOrchestrator.state``; neither is
needed for the result itself, which ``analyze()`` returns directly.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Union

import numpy as np

from hapticbeat.config import DEFAULT_CONFIG, AnalysisConfig
from hapticbeat.core.energy import EnergyAnalyzer
from hapticbeat.core.filter import SignalFilter
from hapticbeat.core.loader import SampleBuffer
from hapticbeat.core.onset import OnsetDetector, OnsetEvent
from hapticbeat.core.polisher import PulsePostProcessor, VibrationPulse
from hapticbeat.core.spectral import SpectralAnalyzer, Spectrogram
from hapticbeat.core.tempo import TempoEstimator
from hapticbeat.exceptions import (
    AnalysisCancelledError,
    AnalysisError,
    InvalidConfigError,
)

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    """Pipeline phases, in execution order."""

    FILTERING = "filtering"
    RMS = "rms"
    BPM_ESTIMATION = "bpm_estimation"
    FFT_SPECTROGRAM = "fft_spectrogram"
    ONSET_DETECTION = "onset_detection"
    FINALIZE = "finalize"


PHASES: tuple[Phase, ...] = tuple(Phase)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AnalysisStats:
    """Summary counts for monitoring."""

    rms_count: int
    onset_count: int
    spectrogram_frames: int
    pulse_count: int
    duration_sec: float


@dataclass
class AnalysisResult:
    """Everything one run produced, pulses included."""

    rms_values: np.ndarray
    onset_frames: list[int]
    onsets: list[OnsetEvent]
    spectrogram: Spectrogram
    bpm: Optional[int]              # estimated tempo
    applied_bpm: Optional[int]      # tempo used for quantization, if any
    pulses: list[VibrationPulse]
    sample_rate: int
    duration_sec: float
    filtered_samples: np.ndarray
    config: AnalysisConfig
    rms_timestamps: np.ndarray = field(default_factory=lambda: np.array([]))
    onset_timestamps: np.ndarray = field(default_factory=lambda: np.array([]))

    def stats(self) -> AnalysisStats:
        return AnalysisStats(
            rms_count=len(self.rms_values),
            onset_count=len(self.onset_frames),
            spectrogram_frames=self.spectrogram.n_frames,
            pulse_count=len(self.pulses),
            duration_sec=self.duration_sec,
        )


# ---------------------------------------------------------------------------
# States
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Processing:
    phase: Phase
    progress: float  # [0, 1]


@dataclass(frozen=True)
class Completed:
    result: AnalysisResult


@dataclass(frozen=True)
class Error:
    message: str
    phase: Optional[Phase] = None


AnalysisState = Union[Idle, Processing, Completed, Error]
StateCallback = Callable[[AnalysisState], None]


def describe_state(state: AnalysisState) -> str:
    """One-line human readable summary of a state."""
    if isinstance(state, Idle):
        return "idle"
    if isinstance(state, Processing):
        return f"{state.phase.value} ({state.progress:.0%})"
    if isinstance(state, Completed):
        return f"completed: {len(state.result.pulses)} pulses"
    if isinstance(state, Error):
        return f"error: {state.message}"
    raise TypeError(f"Unknown analysis state: {state!r}")


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

class AnalysisOrchestrator:
    """
    Runs the haptic analysis pipeline and tracks its state.

    One instance owns one SignalFilter and must not run two analyses at the
    same time. The filter is reset at the start of every run.
    """

    def __init__(
        self,
        config: Optional[AnalysisConfig] = None,
        on_state: Optional[StateCallback] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            config: DSP parameters (default: DEFAULT_CONFIG).
            on_state: Called with every new state, in order.
        """
        self.config = config or DEFAULT_CONFIG
        self.on_state = on_state

        self.signal_filter = SignalFilter()
        self.energy = EnergyAnalyzer()
        self.spectral = SpectralAnalyzer()
        self.onset_detector = OnsetDetector()
        self.tempo = TempoEstimator()
        self.post_processor = PulsePostProcessor()

        self._state: AnalysisState = Idle()
        self._cancel_requested = False

    @property
    def state(self) -> AnalysisState:
        return self._state

    def _set_state(self, state: AnalysisState) -> None:
        self._state = state
        if self.on_state is not None:
            self.on_state(state)

    def cancel(self) -> None:
        """Ask the current run to stop at the next phase boundary."""
        self._cancel_requested = True

    def reset(self) -> None:
        """Return to Idle and clear filter history. Not allowed mid-run."""
        if isinstance(self._state, Processing):
            raise RuntimeError("cannot reset while an analysis is running")
        self.signal_filter.reset()
        self._cancel_requested = False
        self._set_state(Idle())

    def _enter(self, phase: Phase) -> None:
        if self._cancel_requested:
            self._cancel_requested = False
            self.signal_filter.reset()
            self._set_state(Idle())
            logger.warning("analysis cancelled before %s", phase.value)
            raise AnalysisCancelledError(phase.value)
        progress = PHASES.index(phase) / len(PHASES)
        logger.debug("phase %s (%.0f%%)", phase.value, progress * 100)
        self._set_state(Processing(phase=phase, progress=progress))

    def run(
        self,
        buffer: SampleBuffer,
        bpm: Optional[int] = None,
        division: int = 4,
        quantize: bool = True,
    ) -> AnalysisResult:
        """
        Analyze a buffer and generate vibration pulses.

        Args:
            buffer: Decoded mono audio.
            bpm: Tempo override for quantization. None uses the estimate.
            division: Grid subdivisions per beat.
            quantize: Snap pulses to the tempo grid when a tempo is known.

        Returns:
            AnalysisResult; the state ends as Completed.

        Raises:
            InvalidConfigError: Bad call-time parameters (state unchanged).
            AnalysisError: A phase failed (state ends as Error).
            AnalysisCancelledError: cancel() was honoured (state back to Idle).
        """
        if isinstance(self._state, Processing):
            raise RuntimeError("an analysis is already running")
        if bpm is not None and bpm <= 0:
            raise InvalidConfigError(f"bpm must be positive, got {bpm}")
        if division <= 0:
            raise InvalidConfigError(f"division must be positive, got {division}")
        cfg = self.config
        if cfg.low_pass_cutoff_hz >= buffer.sample_rate / 2:
            raise InvalidConfigError(
                f"low_pass_cutoff_hz {cfg.low_pass_cutoff_hz} is not below Nyquist "
                f"for {buffer.sample_rate} Hz audio"
            )

        self._cancel_requested = False
        self.signal_filter.reset()
        sr = buffer.sample_rate
        phase = Phase.FILTERING

        try:
            self._enter(phase)
            self.signal_filter.configure(cfg.low_pass_cutoff_hz, sr)
            filtered = self.signal_filter.apply(buffer.samples)

            phase = Phase.RMS
            self._enter(phase)
            rms = self.energy.compute_rms(
                filtered, cfg.rms_window_size, cfg.rms_hop_size, normalize=True
            )

            phase = Phase.BPM_ESTIMATION
            self._enter(phase)
            estimated_bpm = self.tempo.estimate_bpm(
                rms, sr / cfg.rms_hop_size, cfg.min_bpm, cfg.max_bpm
            )

            phase = Phase.FFT_SPECTROGRAM
            self._enter(phase)
            spectrogram = self.spectral.compute_spectrogram(
                filtered, cfg.fft_size, cfg.hop_size, sample_rate=sr
            )

            phase = Phase.ONSET_DETECTION
            self._enter(phase)
            # flux feeds both peak picking and event amplitudes
            flux = self.onset_detector.spectral_flux(spectrogram.magnitudes)
            onset_frames = self.onset_detector.pick_peaks(
                flux,
                cfg.onset_threshold,
                self.onset_detector.min_interval_frames(
                    cfg.onset_min_interval_ms, sr, cfg.hop_size
                ),
            )
            onsets = self.onset_detector.to_events(onset_frames, flux, sr, cfg.hop_size)

            phase = Phase.FINALIZE
            self._enter(phase)
            applied_bpm = (bpm if bpm is not None else estimated_bpm) if quantize else None
            pulses = self.post_processor.process(onsets, bpm=applied_bpm, division=division)

            result = AnalysisResult(
                rms_values=rms,
                onset_frames=onset_frames,
                onsets=onsets,
                spectrogram=spectrogram,
                bpm=estimated_bpm,
                applied_bpm=applied_bpm,
                pulses=pulses,
                sample_rate=sr,
                duration_sec=buffer.duration,
                filtered_samples=filtered,
                config=cfg,
                rms_timestamps=self.energy.frame_times(len(rms), cfg.rms_hop_size, sr),
                onset_timestamps=np.asarray(onset_frames, dtype=float) * cfg.hop_size / sr,
            )
        except AnalysisCancelledError:
            raise
        except Exception as exc:
            self._fail(phase, exc)
            raise AnalysisError(f"{phase.value}: {exc}", phase=phase.value) from exc

        logger.info(
            "analysis complete: %d onsets, %d pulses, bpm=%s",
            len(onsets), len(pulses), estimated_bpm,
        )
        self._set_state(Completed(result=result))
        return result

    def _fail(self, phase: Phase, exc: Exception) -> None:
        logger.error("analysis failed during %s: %s", phase.value, exc)
        self.signal_filter.reset()
        self._set_state(Error(message=f"{phase.value}: {exc}", phase=phase))


def analyze(
    buffer: SampleBuffer,
    config: Optional[AnalysisConfig] = None,
    bpm: Optional[int] = None,
    division: int = 4,
    quantize: bool = True,
) -> AnalysisResult:
    """
    Pure entry point: run a fresh pipeline over ``buffer``.

    No observer wiring and no state shared with other calls.
    """
    return AnalysisOrchestrator(config=config).run(
        buffer, bpm=bpm, division=division, quantize=quantize
    )

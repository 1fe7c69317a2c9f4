"""Error kinds raised by the haptic analysis pipeline."""

from typing import Optional


class HapticBeatError(Exception):
    """Base class for all hapticbeat errors."""


class InvalidConfigError(HapticBeatError, ValueError):
    """A configuration value is out of range (detected before any run starts)."""


class InvalidSampleRateError(HapticBeatError, ValueError):
    """The sample rate of a buffer is not a positive integer."""


class AnalysisError(HapticBeatError):
    """
    An unexpected failure inside one pipeline phase.

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, message: str, phase: Optional[str] = None):
        super().__init__(message)
        self.phase = phase


class AnalysisCancelledError(HapticBeatError):
    """A run was abandoned at a phase boundary."""

    def __init__(self, phase: str):
        super().__init__(f"analysis cancelled before phase '{phase}'")
        self.phase = phase

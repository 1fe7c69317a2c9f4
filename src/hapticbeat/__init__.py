"""Haptic vibration pulses from decoded music."""

from hapticbeat.config import AnalysisConfig
from hapticbeat.core.filter import SignalFilter
from hapticbeat.core.energy import EnergyAnalyzer
from hapticbeat.core.spectral import SpectralAnalyzer
from hapticbeat.core.onset import OnsetDetector, OnsetEvent
from hapticbeat.core.tempo import TempoEstimator
from hapticbeat.core.polisher import PulsePostProcessor, VibrationPulse
from hapticbeat.core.loader import AudioLoader, SampleBuffer
from hapticbeat.io.exporter import PulseExporter
from hapticbeat.pipeline import AnalysisOrchestrator, AnalysisResult, analyze

__version__ = "0.1.0"
__all__ = [
    "AnalysisConfig",
    "SignalFilter",
    "EnergyAnalyzer",
    "SpectralAnalyzer",
    "OnsetDetector",
    "OnsetEvent",
    "TempoEstimator",
    "PulsePostProcessor",
    "VibrationPulse",
    "AudioLoader",
    "SampleBuffer",
    "PulseExporter",
    "AnalysisOrchestrator",
    "AnalysisResult",
    "analyze",
]

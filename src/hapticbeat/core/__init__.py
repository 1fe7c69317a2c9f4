"""Core DSP modules."""

from hapticbeat.core.filter import SignalFilter
from hapticbeat.core.energy import EnergyAnalyzer
from hapticbeat.core.spectral import SpectralAnalyzer
from hapticbeat.core.onset import OnsetDetector
from hapticbeat.core.tempo import TempoEstimator
from hapticbeat.core.polisher import PulsePostProcessor

__all__ = [
    "SignalFilter",
    "EnergyAnalyzer",
    "SpectralAnalyzer",
    "OnsetDetector",
    "TempoEstimator",
    "PulsePostProcessor",
]

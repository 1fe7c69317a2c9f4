"""
Hapticbeat pipeline benchmark + parity validation.

Usage:
    python scripts/benchmark.py [--quick]

Modes:
    default  - 60 s synthetic track at 44.1 kHz, 3 warm-up + 5 timed runs per stage
    --quick  - 10 s track at 22.05 kHz, 1 warm-up + 3 timed runs (CI-friendly)

Output: timing table + parity report printed to stdout.

Parity checks: the radix-2 FFT against numpy.fft, and the streaming biquad
against scipy.signal.lfilter on the same RBJ coefficients with zero history.
"""

import argparse
import os
import sys
import time
from typing import List

import numpy as np
from scipy import signal as scipy_signal

# Make sure the installed package is on the path when run from repo root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from hapticbeat.config import DEFAULT_CONFIG
from hapticbeat.core.energy import EnergyAnalyzer
from hapticbeat.core.filter import SignalFilter
from hapticbeat.core.loader import SampleBuffer
from hapticbeat.core.onset import OnsetDetector
from hapticbeat.core.polisher import PulsePostProcessor
from hapticbeat.core.spectral import SpectralAnalyzer, fft
from hapticbeat.core.tempo import TempoEstimator
from hapticbeat.pipeline import analyze

_SEP = "─" * 72


def _hdr(title: str) -> None:
    print(f"\n{_SEP}")
    print(f"  {title}")
    print(_SEP)


def _timeit(fn, *args, warmup: int = 2, runs: int = 5, **kwargs) -> List[float]:
    """Run fn(*args, **kwargs), discard warmup iterations, return timed samples."""
    for _ in range(warmup):
        fn(*args, **kwargs)
    times = []
    for _ in range(runs):
        t0 = time.perf_counter()
        fn(*args, **kwargs)
        times.append(time.perf_counter() - t0)
    return times


def _stats(times: List[float]) -> str:
    arr = np.array(times)
    return f"mean={arr.mean()*1000:.1f} ms  min={arr.min()*1000:.1f} ms  max={arr.max()*1000:.1f} ms"


def _synthetic_track(sr: int, duration: float, bpm: float = 120.0) -> np.ndarray:
    """Kick-like bursts on every beat over low-level noise."""
    rng = np.random.RandomState(0)
    y = 0.02 * rng.randn(int(sr * duration))
    t = np.arange(int(sr * 0.1)) / sr
    kick = 0.8 * np.sin(2 * np.pi * 60.0 * t) * np.exp(-t / 0.025)
    for beat in np.arange(0.0, duration - 0.1, 60.0 / bpm):
        start = int(beat * sr)
        y[start:start + len(kick)] += kick
    return y


# ---------------------------------------------------------------------------
# Parity helpers
# ---------------------------------------------------------------------------

def _parity_fft(sizes=(64, 512, 1024, 4096)) -> float:
    """Worst absolute deviation of the radix-2 FFT from numpy.fft.fft."""
    rng = np.random.RandomState(1)
    worst = 0.0
    for n in sizes:
        frames = rng.randn(8, n)
        diff = np.abs(fft(frames) - np.fft.fft(frames, axis=-1))
        worst = max(worst, float(diff.max()))
    return worst


def _parity_filter(y: np.ndarray, sr: int) -> float:
    """Chunked streaming filter vs one lfilter pass over the whole signal."""
    filt = SignalFilter()
    filt.configure(DEFAULT_CONFIG.low_pass_cutoff_hz, sr)
    b, a = filt.coefficients()
    reference = scipy_signal.lfilter(b, a, y)

    chunks = np.array_split(y, 7)
    streamed = np.concatenate([filt.apply(c) for c in chunks])
    return float(np.abs(streamed - reference).max())


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> None:
    parser = argparse.ArgumentParser(description="Hapticbeat pipeline benchmark")
    parser.add_argument(
        "--quick",
        action="store_true",
        help="Use a 10 s track at 22.05 kHz for fast CI runs",
    )
    args = parser.parse_args()

    if args.quick:
        SR, DURATION = 22050, 10.0
        WARMUP, RUNS = 1, 3
        label = "10 s @ 22.05 kHz (quick mode)"
    else:
        SR, DURATION = 44100, 60.0
        WARMUP, RUNS = 3, 5
        label = "60 s @ 44.1 kHz (full mode)"

    cfg = DEFAULT_CONFIG
    y = _synthetic_track(SR, DURATION)

    print(f"\nHapticbeat Pipeline Benchmark  -  {label}")
    print(f"FFT size: {cfg.fft_size}  hop: {cfg.hop_size}  cutoff: {cfg.low_pass_cutoff_hz:.0f} Hz")
    print(f"Warm-up runs: {WARMUP}  |  Timed runs: {RUNS}")

    results = {}

    # ------------------------------------------------------------------
    # 1. low-pass filter
    # ------------------------------------------------------------------
    _hdr("1. SignalFilter.apply")
    filt = SignalFilter()
    filt.configure(cfg.low_pass_cutoff_hz, SR)

    def _filter_once():
        filt.reset()
        return filt.apply(y)

    t = _timeit(_filter_once, warmup=WARMUP, runs=RUNS)
    results["filter"] = t
    print(f"  {_stats(t)}")
    filtered = _filter_once()

    # ------------------------------------------------------------------
    # 2. RMS + tempo
    # ------------------------------------------------------------------
    _hdr("2. EnergyAnalyzer.compute_rms + TempoEstimator.estimate_bpm")
    energy = EnergyAnalyzer()
    t = _timeit(energy.compute_rms, filtered, cfg.rms_window_size, cfg.rms_hop_size,
                normalize=True, warmup=WARMUP, runs=RUNS)
    results["rms"] = t
    print(f"  rms    {_stats(t)}")

    rms = energy.compute_rms(filtered, cfg.rms_window_size, cfg.rms_hop_size, normalize=True)
    tempo = TempoEstimator()
    t = _timeit(tempo.estimate_bpm, rms, SR / cfg.rms_hop_size, cfg.min_bpm, cfg.max_bpm,
                warmup=WARMUP, runs=RUNS)
    results["tempo"] = t
    print(f"  tempo  {_stats(t)}")
    print(f"  estimated bpm: {tempo.estimate_bpm(rms, SR / cfg.rms_hop_size)}")

    # ------------------------------------------------------------------
    # 3. spectrogram (radix-2 vs numpy.fft.rfft)
    # ------------------------------------------------------------------
    _hdr("3. SpectralAnalyzer.compute_spectrogram")
    spectral = SpectralAnalyzer()
    t = _timeit(spectral.compute_spectrogram, filtered, cfg.fft_size, cfg.hop_size,
                warmup=WARMUP, runs=RUNS)
    results["spectrogram"] = t
    print(f"  radix-2      {_stats(t)}")

    window = np.hamming(cfg.fft_size)

    def _numpy_spectrogram():
        n_frames = 1 + (len(filtered) - cfg.fft_size) // cfg.hop_size
        idx = np.arange(cfg.fft_size) + cfg.hop_size * np.arange(n_frames)[:, None]
        return np.abs(np.fft.rfft(filtered[idx] * window, axis=-1))

    t_np = _timeit(_numpy_spectrogram, warmup=1, runs=RUNS)
    results["spectrogram_numpy"] = t_np
    print(f"  numpy.rfft   {_stats(t_np)}")
    print(f"  Ratio: {np.mean(t) / np.mean(t_np):.1f}× slower than numpy")

    # ------------------------------------------------------------------
    # 4. onsets + pulses
    # ------------------------------------------------------------------
    _hdr("4. OnsetDetector + PulsePostProcessor")
    spec = spectral.compute_spectrogram(filtered, cfg.fft_size, cfg.hop_size, sample_rate=SR)
    detector = OnsetDetector()
    t = _timeit(detector.detect_onsets, spec, cfg.onset_threshold,
                cfg.onset_min_interval_ms, SR, cfg.hop_size, warmup=WARMUP, runs=RUNS)
    results["onsets"] = t
    print(f"  onsets  {_stats(t)}")

    frames = detector.detect_onsets(spec, cfg.onset_threshold, cfg.onset_min_interval_ms,
                                    SR, cfg.hop_size)
    flux = detector.spectral_flux(spec.magnitudes)
    events = detector.to_events(frames, flux, SR, cfg.hop_size)
    post = PulsePostProcessor()
    t = _timeit(post.process, events, bpm=120, warmup=WARMUP, runs=RUNS)
    results["pulses"] = t
    print(f"  pulses  {_stats(t)}  ({len(events)} onsets)")

    # ------------------------------------------------------------------
    # 5. full pipeline
    # ------------------------------------------------------------------
    _hdr("5. analyze() end to end")
    buffer = SampleBuffer(samples=y, sample_rate=SR)
    t = _timeit(analyze, buffer, warmup=1, runs=RUNS)
    results["analyze"] = t
    realtime = DURATION / np.mean(t)
    print(f"  {_stats(t)}  ({realtime:.0f}× realtime)")

    # ------------------------------------------------------------------
    # Parity validation
    # ------------------------------------------------------------------
    _hdr("Parity validation")
    FFT_TOL = 1e-8
    FILTER_TOL = 1e-10

    fft_diff = _parity_fft()
    filter_diff = _parity_filter(y[: SR * 2], SR)

    def _row(name: str, diff: float, tol: float) -> str:
        status = "PASS" if diff <= tol else "FAIL"
        return f"  {name:<28}  max={diff:.2e}  tol={tol:.0e}  [{status}]"

    print(_row("radix-2 fft vs numpy.fft", fft_diff, FFT_TOL))
    print(_row("chunked filter vs lfilter", filter_diff, FILTER_TOL))

    if fft_diff <= FFT_TOL and filter_diff <= FILTER_TOL:
        print("\n  All parity checks PASSED.")
    else:
        print("\n  !! PARITY FAILURES DETECTED !!")
        sys.exit(1)

    # ------------------------------------------------------------------
    # Summary table
    # ------------------------------------------------------------------
    _hdr("Summary")
    rows = [(name, f"{np.mean(times)*1000:.1f}") for name, times in results.items()]

    name_w = max(len(r[0]) for r in rows) + 2
    print(f"  {'Stage':<{name_w}} Time (ms, mean)")
    print(f"  {'-'*name_w} ---------------")
    for name, val in rows:
        print(f"  {name:<{name_w}} {val}")

    print(f"\n{_SEP}\n")


if __name__ == "__main__":
    main()

"""
Command line entry point: audio file in, pulse manifest out.

    hapticbeat track.mp3 -o track_pulses.json --division 4
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from hapticbeat.config import AnalysisConfig
from hapticbeat.core.loader import AudioLoader
from hapticbeat.exceptions import HapticBeatError
from hapticbeat.io.exporter import PulseExporter
from hapticbeat.pipeline import (
    AnalysisOrchestrator,
    AnalysisState,
    Completed,
    Error,
    Idle,
    Processing,
    describe_state,
)

logger = logging.getLogger(__name__)


def report_progress(state: AnalysisState) -> None:
    """
    Print pipeline progress.

    In a real terminal this renders an in-place bar; otherwise one line
    per phase so logs stay readable.
    """
    if isinstance(state, Idle):
        return
    if isinstance(state, Processing):
        pct = int(state.progress * 100)
    elif isinstance(state, (Completed, Error)):
        pct = 100
    else:
        raise TypeError(f"Unknown analysis state: {state!r}")

    msg = describe_state(state)
    bar_width = 30
    filled = int(bar_width * pct / 100.0)
    bar = "[" + "#" * filled + "-" * (bar_width - filled) + "]"

    if sys.stdout.isatty():
        sys.stdout.write(f"\r{bar} {pct:3d}%  {msg:40.40}")
        sys.stdout.flush()
        if pct >= 100:
            sys.stdout.write("\n")
    else:
        print(f"{pct:3d}% {msg}", flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hapticbeat",
        description="Generate haptic vibration pulses from an audio file",
    )

    parser.add_argument(
        "audio",
        type=Path,
        help="Input audio file (wav, mp3, flac)",
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output JSON manifest (default: <audio>_pulses.json)",
    )
    parser.add_argument(
        "--npz",
        type=Path,
        default=None,
        help="Also write the analysis arrays to this .npz file",
    )
    parser.add_argument(
        "--sr",
        type=int,
        default=None,
        help="Resample to this rate before analysis (default: native rate)",
    )
    parser.add_argument(
        "--bpm",
        type=int,
        default=None,
        help="Tempo override for grid quantization (default: estimated)",
    )
    parser.add_argument(
        "--division",
        type=int,
        default=4,
        help="Grid subdivisions per beat (default: 4)",
    )
    parser.add_argument(
        "--no-quantize",
        action="store_true",
        help="Keep merged onset times instead of snapping to the beat grid",
    )
    parser.add_argument(
        "--cutoff",
        type=float,
        default=200.0,
        help="Low-pass cutoff in Hz (default: 200)",
    )
    parser.add_argument(
        "--fft-size",
        type=int,
        default=1024,
        help="FFT window size, power of two (default: 1024)",
    )
    parser.add_argument(
        "--hop-size",
        type=int,
        default=512,
        help="Spectrogram hop in samples (default: 512)",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=0.3,
        help="Onset spectral-flux threshold (default: 0.3)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Debug logging",
    )

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.audio.exists():
        print(f"Error: Audio file not found: {args.audio}", file=sys.stderr)
        return 1

    output = args.output or args.audio.with_name(f"{args.audio.stem}_pulses.json")

    try:
        config = AnalysisConfig(
            fft_size=args.fft_size,
            hop_size=args.hop_size,
            low_pass_cutoff_hz=args.cutoff,
            onset_threshold=args.threshold,
        )
        buffer = AudioLoader(sr=args.sr).load(args.audio)
        orchestrator = AnalysisOrchestrator(config=config, on_state=report_progress)
        result = orchestrator.run(
            buffer,
            bpm=args.bpm,
            division=args.division,
            quantize=not args.no_quantize,
        )
    except HapticBeatError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    exporter = PulseExporter()
    exporter.export_json(result, output)
    logger.info("wrote %d pulses to %s", len(result.pulses), output)
    if args.npz is not None:
        exporter.export_numpy(result, args.npz)
        logger.info("wrote analysis arrays to %s", args.npz)

    stats = result.stats()
    print(
        f"{stats.pulse_count} pulses from {stats.onset_count} onsets, "
        f"bpm={result.bpm}, duration={stats.duration_sec:.2f}s -> {output}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())

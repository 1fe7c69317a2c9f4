"""
Onset-to-pulse post-processing.

Turns raw onset events into a clean sequence of vibration pulses tuned for
a linear resonant actuator:

- weak onsets are dropped
- onsets closer than the merge window are folded into one pulse
- intensity is soft-compressed (x ** 0.6) so quiet hits stay perceptible
- pulse duration grows with intensity
- pulse times optionally snap to a tempo grid
"""

from dataclasses import asdict, dataclass
from typing import Iterable, Optional, Union

import numpy as np

from hapticbeat.core.onset import OnsetEvent
from hapticbeat.exceptions import InvalidConfigError

OnsetLike = Union[OnsetEvent, tuple[int, float]]


@dataclass(frozen=True)
class VibrationPulse:
    """One haptic event, relative to the start of playback."""

    time_ms: int
    intensity: float   # [0.15, 1.0]
    duration_ms: int   # [20, 100]

    def to_dict(self) -> dict:
        return asdict(self)


class PulsePostProcessor:
    """
    Converts onset events into VibrationPulses.

    The thresholds below are fixed policy tuned for LRA hardware, not user
    settings.
    """

    MIN_INTERVAL_MS = 80      # spacing between accepted group starts
    MERGE_WINDOW_MS = 120     # onsets this close to a group start join it
    MIN_INTENSITY = 0.08      # noise floor
    BASE_DURATION_MS = 40
    MAX_DURATION_MS = 100
    MIN_DURATION_MS = 20      # shorter pulses just buzz

    COMPRESSION_EXPONENT = 0.6
    MIN_OUTPUT_INTENSITY = 0.15

    def compress(self, amplitude: float) -> float:
        """Perceptual soft-knee compression of an amplitude in [0, 1]."""
        return float(np.clip(amplitude, 0.0, 1.0)) ** self.COMPRESSION_EXPONENT

    def pulse_duration(self, compressed_amp: float) -> int:
        """Louder pulses last longer, truncated to whole ms."""
        span = self.MAX_DURATION_MS - self.BASE_DURATION_MS
        duration = int(self.BASE_DURATION_MS + compressed_amp * span)
        return max(self.MIN_DURATION_MS, min(self.MAX_DURATION_MS, duration))

    @staticmethod
    def quantize(time_ms: int, bpm: int, division: int) -> int:
        """Snap a time to the nearest 1/division beat at ``bpm``."""
        grid_ms = 60000.0 / bpm / division
        return int(round(time_ms / grid_ms) * grid_ms)

    def group_onsets(
        self, onsets: Iterable[OnsetLike]
    ) -> list[tuple[int, list[OnsetEvent]]]:
        """
        Gate and merge onsets into pulse groups.

        A group starts at an onset that is loud enough and at least
        MIN_INTERVAL_MS after the previous group's base onset; it absorbs
        every following onset (weak ones included) closer than
        MERGE_WINDOW_MS to that base.

        Returns:
            (base_time_ms, members) per group, in time order.
        """
        events = sorted(
            (OnsetEvent(int(t), float(a)) for t, a in onsets),
            key=lambda e: e.time_ms,
        )

        groups = []
        last_accepted = -self.MIN_INTERVAL_MS
        n = len(events)
        i = 0

        while i < n:
            base_time, base_amp = events[i]

            if (
                base_amp < self.MIN_INTENSITY
                or base_time - last_accepted < self.MIN_INTERVAL_MS
            ):
                i += 1
                continue

            j = i + 1
            while j < n and events[j].time_ms - base_time < self.MERGE_WINDOW_MS:
                j += 1

            groups.append((base_time, events[i:j]))
            # Gate on the group's base onset, not the merged mean.
            last_accepted = base_time
            i = j

        return groups

    def process(
        self,
        onsets: Iterable[OnsetLike],
        bpm: Optional[int] = None,
        division: int = 4,
    ) -> list[VibrationPulse]:
        """
        Build the pulse timeline.

        Args:
            onsets: (time_ms, amplitude) events, amplitude in [0, 1].
            bpm: Tempo for grid quantization. None keeps the merged times.
            division: Grid subdivisions per beat (4 = sixteenth notes).

        Returns:
            Pulses sorted by time_ms.
        """
        if bpm is not None and bpm <= 0:
            raise InvalidConfigError(f"bpm must be positive, got {bpm}")
        if division <= 0:
            raise InvalidConfigError(f"division must be positive, got {division}")

        pulses = []
        for _, members in self.group_onsets(onsets):
            count = len(members)
            mean_time = sum(e.time_ms for e in members) // count
            compressed = self.compress(sum(e.amplitude for e in members) / count)

            if bpm is not None:
                final_time = self.quantize(mean_time, bpm, division)
            else:
                final_time = mean_time

            pulses.append(
                VibrationPulse(
                    time_ms=final_time,
                    intensity=max(self.MIN_OUTPUT_INTENSITY, min(1.0, compressed)),
                    duration_ms=self.pulse_duration(compressed),
                )
            )

        pulses.sort(key=lambda p: p.time_ms)
        return pulses

"""Online alignment guidance from a stream of (reading, pointing) samples.

Every observation is labelled with the direction the operator just moved the
dish (LEFT/RIGHT on azimuth, UP/DOWN on tilt, HOLD inside a small dead band),
stored in a fixed-size ring buffer, and used to keep two running estimates:
- the typical step size per axis (EMA of nonzero deltas),
- the reading noise (EMA of |reading delta| between consecutive samples).

Guidance is a finite-difference slope per axis from the per-direction reading
averages:
    slope_az = (avg(RIGHT) - avg(LEFT)) / (2 step_az)
falling back to a one-sided comparison against the HOLD average when only one
side has samples. Confidence is a soft-saturated slope-to-noise ratio.

The learner is sign-agnostic: a positive vx means the reading grows when the
dish moves right. For app-dB readings (lower is better) steer against it.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Generic, Iterator, List, Optional, TypeVar

from .geometry import wrap180
from .params import LearnerSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Direction(str, Enum):
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    UP = "UP"
    DOWN = "DOWN"
    HOLD = "HOLD"


@dataclass(frozen=True)
class Sample:
    reading: float
    azimuth_deg: float
    tilt_deg: float
    direction: Direction
    timestamp: float
    delta_azimuth: float
    delta_tilt: float


@dataclass(frozen=True)
class GuidanceVector:
    vx: float
    vy: float
    confidence: float
    suggested_deg_x: float
    suggested_deg_y: float
    reasoning: str
    plateau: bool = False


class RingBuffer(Generic[T]):
    """Preallocated circular buffer; the oldest entry is overwritten when full."""

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._items: List[Optional[T]] = [None] * capacity
        self._head = 0  # next write slot
        self._size = 0

    @property
    def capacity(self) -> int:
        return len(self._items)

    def __len__(self) -> int:
        return self._size

    def append(self, item: T) -> None:
        self._items[self._head] = item
        self._head = (self._head + 1) % self.capacity
        if self._size < self.capacity:
            self._size += 1

    def __iter__(self) -> Iterator[T]:
        start = (self._head - self._size) % self.capacity
        for i in range(self._size):
            yield self._items[(start + i) % self.capacity]

    def last(self, n: int = 1) -> List[T]:
        """The newest n entries, oldest first."""
        n = max(0, min(n, self._size))
        return [self._items[(self._head - n + i) % self.capacity] for i in range(n)]

    def clear(self) -> None:
        self._items = [None] * self.capacity
        self._head = 0
        self._size = 0


def classify_direction(delta_az: float, delta_tilt: float, dead_band_deg: float = 0.05) -> Direction:
    """Bucket a move by its dominant axis; moves inside the dead band are HOLD."""
    if abs(delta_az) > abs(delta_tilt):
        if delta_az > dead_band_deg:
            return Direction.RIGHT
        if delta_az < -dead_band_deg:
            return Direction.LEFT
    else:
        if delta_tilt > dead_band_deg:
            return Direction.UP
        if delta_tilt < -dead_band_deg:
            return Direction.DOWN
    return Direction.HOLD


class AlignmentLearner:
    """Cold below `min_samples` observations (no guidance), warm afterwards."""

    def __init__(self, settings: Optional[LearnerSettings] = None):
        self.settings = settings if settings is not None else LearnerSettings()
        self.buffer: RingBuffer[Sample] = RingBuffer(self.settings.capacity)
        self.avg_step = {"azimuth": self.settings.initial_az_step_deg, "tilt": self.settings.initial_tilt_step_deg}
        self.noise_estimate = self.settings.initial_noise
        self._previous: Optional[tuple] = None

    @property
    def warm(self) -> bool:
        return len(self.buffer) >= self.settings.min_samples

    def reset(self) -> None:
        self.buffer.clear()
        self._previous = None

    def samples(self) -> List[Sample]:
        return list(self.buffer)

    def observe(self, reading: float, azimuth_deg: float, tilt_deg: float,
                timestamp: Optional[float] = None) -> Sample:
        """Record one reading at the dish's current pointing."""
        s = self.settings
        if timestamp is None:
            timestamp = time.time()
        d_az = 0.0
        d_tilt = 0.0
        if self._previous is not None:
            d_az = wrap180(azimuth_deg - self._previous[0])
            d_tilt = tilt_deg - self._previous[1]
        sample = Sample(
            reading=float(reading),
            azimuth_deg=float(azimuth_deg),
            tilt_deg=float(tilt_deg),
            direction=classify_direction(d_az, d_tilt, s.dead_band_deg),
            timestamp=float(timestamp),
            delta_azimuth=d_az,
            delta_tilt=d_tilt,
        )
        was_warm = self.warm
        self.buffer.append(sample)
        self._previous = (azimuth_deg, tilt_deg)

        if abs(d_az) > 1e-6:
            self.avg_step["azimuth"] = (1.0 - s.step_alpha) * self.avg_step["azimuth"] + s.step_alpha * abs(d_az)
        if abs(d_tilt) > 1e-6:
            self.avg_step["tilt"] = (1.0 - s.step_alpha) * self.avg_step["tilt"] + s.step_alpha * abs(d_tilt)

        if len(self.buffer) > 1:
            prev, last = self.buffer.last(2)
            ev = abs(last.reading - prev.reading)
            self.noise_estimate = (1.0 - s.noise_alpha) * self.noise_estimate + s.noise_alpha * ev

        if not was_warm and self.warm:
            logger.debug("alignment learner warm after %d samples", len(self.buffer))
        return sample

    def _averages(self):
        sums: Dict[Direction, float] = {d: 0.0 for d in Direction}
        counts: Dict[Direction, int] = {d: 0 for d in Direction}
        for sample in self.buffer:
            sums[sample.direction] += sample.reading
            counts[sample.direction] += 1
        avgs: Dict[Direction, Optional[float]] = {
            d: (sums[d] / counts[d] if counts[d] else None) for d in Direction
        }
        return avgs, counts

    @staticmethod
    def _axis_slope(pos: Optional[float], neg: Optional[float], hold: Optional[float], step: float) -> float:
        step = max(1e-6, step)
        if pos is not None and neg is not None:
            return (pos - neg) / (2.0 * step)
        if pos is not None and hold is not None:
            return (pos - hold) / step
        if neg is not None and hold is not None:
            return (hold - neg) / step
        return 0.0

    def slopes(self):
        """(azimuth slope, tilt slope) in reading units per degree."""
        avgs, _ = self._averages()
        return self._slopes_from(avgs)

    def _slopes_from(self, avgs):
        hold = avgs[Direction.HOLD]
        slope_az = self._axis_slope(avgs[Direction.RIGHT], avgs[Direction.LEFT], hold, self.avg_step["azimuth"])
        slope_el = self._axis_slope(avgs[Direction.UP], avgs[Direction.DOWN], hold, self.avg_step["tilt"])
        return slope_az, slope_el

    def guidance(self) -> Optional[GuidanceVector]:
        """Directional nudge with confidence, or None while cold."""
        if not self.warm:
            return None
        s = self.settings
        avgs, counts = self._averages()
        slope_az, slope_el = self._slopes_from(avgs)

        mag = math.hypot(slope_az, slope_el)
        confidence = min(1.0, max(0.0, mag / max(1e-6, self.noise_estimate) / s.confidence_scale))
        plateau = mag < max(s.plateau_floor, 0.2 * self.noise_estimate)

        vx = min(1.0, max(-1.0, slope_az / s.max_slope_for_full_scale))
        vy = min(1.0, max(-1.0, slope_el / s.max_slope_for_full_scale))
        scale = confidence * 2.5
        suggested_x = vx * min(scale, s.suggest_cap_x_deg)
        suggested_y = vy * min(scale, s.suggest_cap_y_deg)

        if plateau:
            reasoning = "Plateau detected: signal not changing much"
        elif confidence < 0.3:
            reasoning = "Low confidence: noisy or insufficient data"
        else:
            reasoning = (
                f"Right samples: {counts[Direction.RIGHT]}, Left: {counts[Direction.LEFT]}, "
                f"Up: {counts[Direction.UP]}, Down: {counts[Direction.DOWN]}"
            )
        return GuidanceVector(
            vx=vx,
            vy=vy,
            confidence=confidence,
            suggested_deg_x=suggested_x,
            suggested_deg_y=suggested_y,
            reasoning=reasoning,
            plateau=plateau,
        )

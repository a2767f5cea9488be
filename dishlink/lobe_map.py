"""Learned lobe map: readings accumulated on a grid of pointing offsets.

Each observation lands in the cell nearest to its (azimuth, tilt) offset from
a fixed centre pointing. A cell keeps an exponentially blended reading and a
confidence counter; `decay_confidence` lets stale cells fade out so the map
tracks a moving target. Row 0 is the highest tilt (image orientation).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .geometry import wrap180


@dataclass(frozen=True)
class LobeMapOptions:
    grid_size: int = 121
    degrees_per_cell: float = 0.1
    ema_alpha: float = 0.6
    confidence_gain: float = 1.0
    confidence_decay: float = 0.0005
    higher_is_better: bool = True


@dataclass(frozen=True)
class LobeSnapshot:
    peak_ix: int
    peak_iy: int
    peak_reading: float
    peak_az_offset_deg: float
    peak_tilt_offset_deg: float
    min_reading: float
    max_reading: float
    total_confidence: float


def gaussian_kernel(radius: int = 2, sigma: float = 1.0) -> np.ndarray:
    ax = np.arange(-radius, radius + 1)
    xx, yy = np.meshgrid(ax, ax)
    k = np.exp(-(xx ** 2 + yy ** 2) / (2.0 * sigma * sigma))
    return k / k.sum()


class LobeMap:
    def __init__(self, center_azimuth_deg: float, center_tilt_deg: float,
                 options: Optional[LobeMapOptions] = None):
        self.options = options if options is not None else LobeMapOptions()
        self.center_azimuth_deg = center_azimuth_deg
        self.center_tilt_deg = center_tilt_deg
        self.center_index = self.options.grid_size // 2
        n = self.options.grid_size
        self.estimate = np.full((n, n), np.nan)
        self.confidence = np.zeros((n, n))

    def cell_for(self, azimuth_deg: float, tilt_deg: float):
        """(ix, iy) for a pointing, or None when it falls outside the grid."""
        o = self.options
        az_off = wrap180(azimuth_deg - self.center_azimuth_deg)
        tilt_off = tilt_deg - self.center_tilt_deg
        ix = int(round(self.center_index + az_off / o.degrees_per_cell))
        iy = int(round(self.center_index - tilt_off / o.degrees_per_cell))
        if not (0 <= ix < o.grid_size and 0 <= iy < o.grid_size):
            return None
        return ix, iy

    def offset_for(self, ix: int, iy: int):
        d = self.options.degrees_per_cell
        return (ix - self.center_index) * d, (self.center_index - iy) * d

    def add_sample(self, azimuth_deg: float, tilt_deg: float, reading: float) -> bool:
        """Blend a reading into its cell; False when off the grid."""
        cell = self.cell_for(azimuth_deg, tilt_deg)
        if cell is None:
            return False
        ix, iy = cell
        current = self.estimate[iy, ix]
        if np.isnan(current):
            self.estimate[iy, ix] = reading
        else:
            self.estimate[iy, ix] = current + (reading - current) * self.options.ema_alpha
        self.confidence[iy, ix] += self.options.confidence_gain
        return True

    def decay_confidence(self) -> None:
        self.confidence = np.maximum(0.0, self.confidence - self.options.confidence_decay)
        self.estimate[self.confidence == 0.0] = np.nan

    def reset(self) -> None:
        self.estimate[:] = np.nan
        self.confidence[:] = 0.0

    def snapshot(self) -> LobeSnapshot:
        known = (self.confidence > 0.0) & np.isfinite(self.estimate)
        if not known.any():
            dx, dy = self.offset_for(self.center_index, self.center_index)
            return LobeSnapshot(self.center_index, self.center_index, float("nan"), dx, dy, 0.0, 0.0, 0.0)
        values = np.where(known, self.estimate, np.nan)
        flat = np.nanargmax(values) if self.options.higher_is_better else np.nanargmin(values)
        iy, ix = np.unravel_index(flat, values.shape)
        dx, dy = self.offset_for(int(ix), int(iy))
        return LobeSnapshot(
            peak_ix=int(ix),
            peak_iy=int(iy),
            peak_reading=float(self.estimate[iy, ix]),
            peak_az_offset_deg=dx,
            peak_tilt_offset_deg=dy,
            min_reading=float(np.nanmin(values)),
            max_reading=float(np.nanmax(values)),
            total_confidence=float(self.confidence[known].sum()),
        )

    def smoothed(self, radius: int = 2, sigma: float = 1.0) -> np.ndarray:
        """Confidence-weighted Gaussian smoothing of the estimate grid.

        Cells with no weight in their neighbourhood stay NaN.
        """
        kernel = gaussian_kernel(radius, sigma)
        known = (self.confidence > 0.0) & np.isfinite(self.estimate)
        w = np.where(known, self.confidence, 0.0)
        v = np.where(known, self.estimate, 0.0) * w
        pad = ((radius, radius), (radius, radius))
        wp = np.pad(w, pad)
        vp = np.pad(v, pad)
        n = self.options.grid_size
        num = np.zeros((n, n))
        den = np.zeros((n, n))
        size = 2 * radius + 1
        for ky in range(size):
            for kx in range(size):
                k = kernel[ky, kx]
                num += k * vp[ky:ky + n, kx:kx + n]
                den += k * wp[ky:ky + n, kx:kx + n]
        out = np.full((n, n), np.nan)
        mask = den > 0.0
        out[mask] = num[mask] / den[mask]
        return out

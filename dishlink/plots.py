"""Pattern maps (PNG) for one dish: 2-D field heat map and the radial cut.

Approach (simple grid sampler):
- Sample the 2-D field (radial LUT x strut notches) on a square grid of
  angular offsets around boresight.
- Render it in dB relative to boresight, overlay the iso-dB contour radii
  from the link mapper as circles, and save a PNG.

Output is a static image for reports; interactive drawing belongs to the
host application.
"""

from pathlib import Path
from typing import Iterable, Optional, Tuple

import numpy as np
import matplotlib.pyplot as plt

from .geometry import MechanicalState
from .link_quality import LinkBudgetMapper
from .pattern import PatternModel


def pattern_grid(model: PatternModel, half_width_deg: Optional[float] = None,
                 step_deg: Optional[float] = None) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """(xs, ys, field) with field[iy, ix] the normalized power at (xs[ix], ys[iy])."""
    if half_width_deg is None:
        half_width_deg = max(5.0, model.approx_beamwidth_deg() * 4.0)
    if step_deg is None:
        step_deg = half_width_deg / 100.0
    half = int(np.ceil(half_width_deg / step_deg))
    xs = np.arange(-half, half + 1) * step_deg
    ys = np.arange(-half, half + 1) * step_deg
    u, v = np.meshgrid(xs, ys)
    return xs, ys, model.field_at_points(u, v)


def render_pattern_map(
    mapper: LinkBudgetMapper,
    outfile: str | Path = "pattern_map.png",
    thresholds_db: Iterable[float] = (),
    half_width_deg: Optional[float] = None,
    floor_db: float = -40.0,
) -> Path:
    model = mapper.model
    xs, ys, field = pattern_grid(model, half_width_deg)
    field_db = 10.0 * np.log10(np.maximum(field, 10.0 ** (floor_db / 10.0)))

    fig, ax = plt.subplots(figsize=(6, 6), dpi=150)
    extent = [xs[0], xs[-1], ys[0], ys[-1]]
    im = ax.imshow(field_db, origin="lower", extent=extent, cmap="viridis", vmin=floor_db, vmax=0.0)
    fig.colorbar(im, ax=ax, label="Relative power (dB)")

    boresight = MechanicalState(azimuth_deg=0.0, tilt_deg=90.0)
    theta = np.linspace(0.0, 2.0 * np.pi, 256)
    for db, radius in mapper.iso_radii(boresight, thresholds_db):
        ax.plot(radius * np.cos(theta), radius * np.sin(theta), lw=1.0, color="w")
        ax.annotate(f"{db:.2f}", (radius * 0.707, radius * 0.707), color="w", fontsize=7)

    p = model.params
    ax.set_title(f"Pattern map (D={p.diameter_m:.2f} m, f={p.frequency_hz / 1e9:.1f} GHz)")
    ax.set_xlabel("Azimuth offset (deg)")
    ax.set_ylabel("Elevation offset (deg)")
    outp = Path(outfile)
    outp.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(outp)
    plt.close(fig)
    return outp


def render_pattern_cut(model: PatternModel, outfile: str | Path = "pattern_cut.png",
                       floor_db: float = -60.0) -> Path:
    lut = model.lut()
    power_db = 10.0 * np.log10(np.maximum(lut.power, 10.0 ** (floor_db / 10.0)))

    fig, ax = plt.subplots(figsize=(7, 4), dpi=150)
    ax.plot(lut.theta_deg, power_db, lw=1.2)
    bw = model.approx_beamwidth_deg()
    ax.axvline(bw / 2.0, color="k", ls="--", lw=0.8, label=f"HPBW/2 ~ {bw / 2.0:.2f} deg")
    ax.set_ylim(floor_db, 3.0)
    ax.set_xlabel("Off-boresight angle (deg)")
    ax.set_ylabel("Normalized power (dB)")
    ax.grid(True, alpha=0.3)
    ax.legend(loc="upper right")
    outp = Path(outfile)
    outp.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(outp)
    plt.close(fig)
    return outp

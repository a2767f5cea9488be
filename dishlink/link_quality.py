"""Link quality between two dishes as a bounded "app-dB" reading.

Pipeline for a pair of dishes A, B:
1) Off-axis gain of each dish towards the other, from the radiation LUT:
   gA = P_A(theta_A), gB = P_B(theta_B), both in [0, 1].
2) Soft capture gate per dish: gate(g) = 1 / (1 + exp(-s (g - c))). The gate
   says "is there enough gain to call this a link" without a hard cutoff.
3) Product P = (gA gate(gA)) (gB gate(gB)), clamped to [0, 1].
4) Compression and mapping: db = WORST - P^exponent (WORST - BEST).
   P = 1 gives BEST_DB, P = 0 gives WORST_DB.

With true 3-D positions the reading is reciprocal: swapping A and B gives the
same value bit for bit. Without positions a sampled overlap of the two 2-D
fields (offset by the approximate pointing error) stands in for the product.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, List, Optional, Tuple

import numpy as np

from .geometry import MechanicalState, pointing_error, off_axis_angle_deg, wrap180
from .params import LinkMapping, PhysicalParameters
from .pattern import PatternModel, shared_model

logger = logging.getLogger(__name__)

ISO_ITERATIONS = 64


def _clamp(v: float, lo: float = 0.0, hi: float = 1.0) -> float:
    if math.isnan(v):
        return lo
    return max(lo, min(hi, v))


def capture_gate(gain: float, center: float = 0.6, sharpness: float = 18.0) -> float:
    """Logistic capture gate in [0, 1]."""
    x = -sharpness * (gain - center)
    if x > 700.0:
        return 0.0
    return _clamp(1.0 / (1.0 + math.exp(x)))


def normalized_to_app_db(norm: float, mapping: LinkMapping, exponent: Optional[float] = None) -> float:
    """Map normalized link power [0, 1] to [best_db, worst_db]."""
    if exponent is None:
        exponent = mapping.exponent
    compressed = _clamp(norm) ** exponent
    db = mapping.worst_db - compressed * (mapping.worst_db - mapping.best_db)
    lo = min(mapping.best_db, mapping.worst_db)
    hi = max(mapping.best_db, mapping.worst_db)
    return _clamp(db, lo, hi)


class LinkBudgetMapper:
    """Two-dish link reading on top of one PatternModel.

    Both dishes are assumed to share the same physical parameters.
    """

    def __init__(self, model: Optional[PatternModel] = None, mapping: Optional[LinkMapping] = None):
        self.model = model if model is not None else PatternModel()
        self.mapping = mapping if mapping is not None else LinkMapping()

    def gate(self, gain: float) -> float:
        return capture_gate(gain, self.mapping.gate_center, self.mapping.gate_sharpness)

    def gain_to_app_db(self, gain: float) -> float:
        """Intrinsic per-dish reading (no gate, exponent 1)."""
        return normalized_to_app_db(gain, self.mapping, exponent=1.0)

    def paired_db_from_gains(self, gain_a: float, gain_b: float) -> float:
        product = _clamp((gain_a * self.gate(gain_a)) * (gain_b * self.gate(gain_b)))
        return normalized_to_app_db(product, self.mapping)

    def off_axis_gain(self, dish: MechanicalState, other: MechanicalState) -> float:
        """Normalized gain of `dish` in the direction of `other`."""
        if dish.position is not None and other.position is not None:
            return self.model.lookup(off_axis_angle_deg(dish, other))
        err = pointing_error(dish, other)
        return self.model.field_at_point(err.az_deg, err.tilt_deg)

    def compute_link_db(self, dish_a: MechanicalState, dish_b: MechanicalState) -> float:
        if dish_a.position is not None and dish_b.position is not None:
            g_a = self.off_axis_gain(dish_a, dish_b)
            g_b = self.off_axis_gain(dish_b, dish_a)
            return self.paired_db_from_gains(g_a, g_b)
        return self._approximate_link_db(dish_a, dish_b)

    def sampled_overlap(self, offset_x_deg: float, offset_y_deg: float, grid: Optional[int] = None,
                        radius_deg: Optional[float] = None) -> float:
        """Mean product of the field with a copy of itself shifted by the offset."""
        if grid is None:
            grid = self.mapping.overlap_grid
        if radius_deg is None:
            radius_deg = max(10.0, self.model.approx_beamwidth_deg() * 6.0)
        axis = np.linspace(-radius_deg, radius_deg, int(grid))
        u, v = np.meshgrid(axis, axis)
        a_val = self.model.field_at_points(u, v)
        b_val = self.model.field_at_points(u - offset_x_deg, v - offset_y_deg)
        return float(np.mean(a_val * b_val))

    def _approximate_link_db(self, dish_a: MechanicalState, dish_b: MechanicalState) -> float:
        err_ab = pointing_error(dish_a, dish_b)
        err_ba = pointing_error(dish_b, dish_a)
        overlap = self.sampled_overlap(err_ab.az_deg, err_ab.tilt_deg)
        self_overlap = max(self.sampled_overlap(0.0, 0.0), 1e-12)
        norm = _clamp(overlap / self_overlap)

        ideal_b = dish_b.ideal_azimuth_deg if dish_b.ideal_azimuth_deg is not None else dish_b.azimuth_deg
        facing_err = wrap180(dish_a.azimuth_deg - (ideal_b - 180.0))
        facing = math.exp(-(facing_err / self.mapping.facing_width_deg) ** 2)

        g_a = self.model.field_at_point(err_ab.az_deg, err_ab.tilt_deg)
        g_b = self.model.field_at_point(err_ba.az_deg, err_ba.tilt_deg)
        gated = _clamp(norm * facing * self.gate(g_a) * self.gate(g_b))
        return normalized_to_app_db(gated, self.mapping)

    # --- iso-dB contours -----------------------------------------------------

    def radial_app_db(self, radius_deg: float) -> float:
        """Self-overlap reading at an angular radius: the other dish centred."""
        centre = max(self.model.lookup(0.0), 1e-16)
        return normalized_to_app_db(self.model.lookup(radius_deg) / centre, self.mapping)

    def _better(self, a_db: float, b_db: float) -> bool:
        """True when reading a is strictly closer to best_db than reading b."""
        sense = 1.0 if self.mapping.worst_db >= self.mapping.best_db else -1.0
        return sense * (a_db - b_db) < 0.0

    def iso_contour_radius(self, dish: MechanicalState, target_db: float) -> float:
        """Angular radius (deg) at which the self-overlap reading crosses target_db.

        The pattern is circularly symmetric, so the dish pointing only matters
        to the caller drawing the contour around it. Thresholds outside the
        reachable range saturate to 0 or to the table's maximum angle.
        """
        max_r = self.model.theta_max_deg
        if not self._better(self.radial_app_db(0.0), target_db):
            return 0.0
        if self._better(self.radial_app_db(max_r), target_db):
            logger.debug("iso threshold %.4f beyond %.1f deg, saturating", target_db, max_r)
            return max_r
        lo, hi = 0.0, max_r
        mid = 0.5 * (lo + hi)
        for _ in range(ISO_ITERATIONS):
            mid = 0.5 * (lo + hi)
            est = self.radial_app_db(mid)
            if abs(est - target_db) < 1e-12:
                break
            if self._better(est, target_db):
                lo = mid
            else:
                hi = mid
        return mid

    def iso_radii(self, dish: MechanicalState, thresholds_db: Iterable[float]) -> List[Tuple[float, float]]:
        return [(float(t), self.iso_contour_radius(dish, t)) for t in thresholds_db]


def _mapper_for(params: PhysicalParameters, mapping: Optional[LinkMapping],
                model: Optional[PatternModel]) -> LinkBudgetMapper:
    if model is None:
        model = shared_model(params)
    else:
        model.configure(params)
    return LinkBudgetMapper(model, mapping)


def compute_link_db(dish_a: MechanicalState, dish_b: MechanicalState, params: PhysicalParameters,
                    mapping: Optional[LinkMapping] = None, model: Optional[PatternModel] = None) -> float:
    """Link reading for `params`; the LUT is shared across calls with equal parameters."""
    return _mapper_for(params, mapping, model).compute_link_db(dish_a, dish_b)


def iso_contour_radius(dish: MechanicalState, params: PhysicalParameters, target_db: float,
                       mapping: Optional[LinkMapping] = None, model: Optional[PatternModel] = None) -> float:
    return _mapper_for(params, mapping, model).iso_contour_radius(dish, target_db)

import math

import numpy as np
import pytest

from dishlink.lobe_map import LobeMap, LobeMapOptions, gaussian_kernel


def test_cells_and_offsets():
    lobe = LobeMap(120.0, 92.0)
    assert lobe.cell_for(120.0, 92.0) == (60, 60)
    # higher tilt is a smaller row index
    assert lobe.cell_for(120.5, 92.3) == (65, 57)
    dx, dy = lobe.offset_for(65, 57)
    assert dx == pytest.approx(0.5)
    assert dy == pytest.approx(0.3)
    assert lobe.cell_for(130.0, 92.0) is None
    assert lobe.add_sample(130.0, 92.0, 1.0) is False


def test_cells_wrap_across_north():
    lobe = LobeMap(359.95, 90.0)
    assert lobe.cell_for(0.05, 90.0) == (61, 60)


def test_samples_blend_and_snapshot_finds_peak():
    lobe = LobeMap(0.0, 90.0)
    lobe.add_sample(0.0, 90.0, 1.0)
    lobe.add_sample(0.0, 90.0, 2.0)
    assert lobe.estimate[60, 60] == pytest.approx(1.6)
    assert lobe.confidence[60, 60] == pytest.approx(2.0)

    lobe.add_sample(0.3, 90.1, 5.0)
    snap = lobe.snapshot()
    assert snap.peak_reading == pytest.approx(5.0)
    assert snap.peak_az_offset_deg == pytest.approx(0.3)
    assert snap.peak_tilt_offset_deg == pytest.approx(0.1)
    assert snap.min_reading == pytest.approx(1.6)
    assert snap.max_reading == pytest.approx(5.0)
    assert snap.total_confidence == pytest.approx(3.0)


def test_lower_is_better_picks_minimum():
    lobe = LobeMap(0.0, 90.0, LobeMapOptions(higher_is_better=False))
    lobe.add_sample(0.0, 90.0, 1.45)
    lobe.add_sample(-0.2, 90.0, 1.33)
    snap = lobe.snapshot()
    assert snap.peak_reading == pytest.approx(1.33)
    assert snap.peak_az_offset_deg == pytest.approx(-0.2)


def test_decay_forgets_stale_cells():
    lobe = LobeMap(0.0, 90.0, LobeMapOptions(confidence_decay=1.0))
    lobe.add_sample(0.0, 90.0, 1.0)
    lobe.decay_confidence()
    snap = lobe.snapshot()
    assert snap.total_confidence == 0.0
    assert math.isnan(snap.peak_reading)
    assert math.isnan(lobe.estimate[60, 60])


def test_reset_clears_grid():
    lobe = LobeMap(0.0, 90.0)
    lobe.add_sample(0.1, 90.0, 3.0)
    lobe.reset()
    assert np.all(np.isnan(lobe.estimate))
    assert lobe.confidence.sum() == 0.0


def test_smoothing_spreads_known_cells_only_within_radius():
    k = gaussian_kernel(2, 1.0)
    assert k.shape == (5, 5)
    assert k.sum() == pytest.approx(1.0)

    lobe = LobeMap(0.0, 90.0)
    lobe.add_sample(0.0, 90.0, 3.0)
    out = lobe.smoothed(radius=2, sigma=1.0)
    assert out[60, 60] == pytest.approx(3.0)
    assert out[60, 62] == pytest.approx(3.0)
    assert math.isnan(out[60, 63])

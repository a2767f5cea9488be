import numpy as np
import pytest

from dishlink.learner import AlignmentLearner, Direction, RingBuffer, classify_direction
from dishlink.params import LearnerSettings


def _sweep(learner, reading_at, n=12):
    """Alternate RIGHT/LEFT moves of 0.5 deg around azimuth 0."""
    for i in range(n):
        az = 0.5 if i % 2 else 0.0
        learner.observe(reading_at(az), az, 90.0, timestamp=float(i))


def _contrast_run(contrast):
    # period: RIGHT, HOLD, LEFT, HOLD with a small alternating jitter
    learner = AlignmentLearner()
    azimuths = [0.0, 0.5, 0.5, 0.0]
    for i in range(20):
        az = azimuths[i % 4]
        jitter = 0.002 if i % 2 == 0 else -0.002
        reading = 1.5 + (contrast if az == 0.5 else 0.0) + jitter
        learner.observe(reading, az, 90.0, timestamp=float(i))
    return learner.guidance()


def test_ring_buffer_evicts_oldest():
    buf = RingBuffer(3)
    for i in range(1, 6):
        buf.append(i)
    assert len(buf) == 3
    assert list(buf) == [3, 4, 5]
    assert buf.last(2) == [4, 5]
    assert buf.last(10) == [3, 4, 5]
    buf.clear()
    assert len(buf) == 0 and list(buf) == []
    with pytest.raises(ValueError):
        RingBuffer(0)


def test_classify_direction():
    assert classify_direction(0.03, 0.01) is Direction.HOLD
    assert classify_direction(0.3, 0.1) is Direction.RIGHT
    assert classify_direction(-0.3, 0.1) is Direction.LEFT
    assert classify_direction(0.1, 0.2) is Direction.UP
    assert classify_direction(0.0, -0.2) is Direction.DOWN
    assert classify_direction(0.0, 0.0) is Direction.HOLD


def test_cold_until_min_samples():
    learner = AlignmentLearner()
    for i in range(5):
        learner.observe(1.5, 0.0, 90.0, timestamp=float(i))
        assert learner.guidance() is None
    learner.observe(1.5, 0.0, 90.0, timestamp=5.0)
    assert learner.guidance() is not None


def test_observe_wraps_azimuth_and_labels_samples():
    learner = AlignmentLearner()
    first = learner.observe(1.5, 359.9, 90.0)
    assert first.direction is Direction.HOLD
    s = learner.observe(1.5, 0.2, 90.0)
    assert s.direction is Direction.RIGHT
    assert s.delta_azimuth == pytest.approx(0.3)
    s = learner.observe(1.5, 0.2, 89.0)
    assert s.direction is Direction.DOWN


def test_rising_reading_to_the_right_points_right():
    learner = AlignmentLearner()
    _sweep(learner, lambda az: 10.0 + az)
    g = learner.guidance()
    assert g.vx > 0.0
    assert g.vy == 0.0
    assert g.suggested_deg_x > 0.0


def test_falling_reading_to_the_right_points_left():
    learner = AlignmentLearner()
    _sweep(learner, lambda az: 10.0 - az)
    assert learner.guidance().vx < 0.0


def test_confidence_grows_with_contrast():
    weak = _contrast_run(0.002)
    medium = _contrast_run(0.01)
    strong = _contrast_run(0.05)
    assert weak.vx > 0.0 and medium.vx > 0.0 and strong.vx > 0.0
    assert weak.confidence < medium.confidence < strong.confidence
    assert weak.reasoning.startswith("Low confidence")


def test_noise_only_reports_plateau():
    rng = np.random.default_rng(7)
    learner = AlignmentLearner()
    for i in range(40):
        learner.observe(1.5 + rng.normal(0.0, 0.01), 12.0, 90.0, timestamp=float(i))
    g = learner.guidance()
    assert g.plateau is True
    assert g.reasoning.startswith("Plateau")
    assert g.confidence == 0.0
    assert g.vx == 0.0 and g.vy == 0.0


def test_capacity_bounds_history_and_reset():
    learner = AlignmentLearner(LearnerSettings(capacity=8))
    _sweep(learner, lambda az: 1.5 + az, n=20)
    assert len(learner.samples()) == 8
    learner.reset()
    assert learner.samples() == []
    assert learner.guidance() is None
    assert learner.observe(1.5, 5.0, 90.0).direction is Direction.HOLD


def test_step_and_noise_estimates_track_input():
    learner = AlignmentLearner()
    _sweep(learner, lambda az: 1.5 + az, n=60)
    assert learner.avg_step["azimuth"] == pytest.approx(0.5)
    assert learner.avg_step["tilt"] == pytest.approx(0.25)
    assert learner.noise_estimate == pytest.approx(0.5, abs=1e-3)


def test_noise_while_sweeping_keeps_confidence_low():
    rng = np.random.default_rng(11)
    learner = AlignmentLearner()
    for i in range(60):
        az = 0.5 if i % 2 else 0.0
        learner.observe(1.5 + rng.normal(0.0, 0.01), az, 90.0, timestamp=float(i))
    directions = {s.direction for s in learner.samples()}
    assert {Direction.RIGHT, Direction.LEFT} <= directions
    g = learner.guidance()
    assert g.confidence < 0.3
    assert not g.reasoning.startswith("Right samples")


def test_guidance_scans_the_buffer_once(monkeypatch):
    learner = AlignmentLearner()
    _sweep(learner, lambda az: 10.0 + az)
    calls = []
    original = AlignmentLearner._averages

    def counting(self):
        calls.append(1)
        return original(self)

    monkeypatch.setattr(AlignmentLearner, "_averages", counting)
    g = learner.guidance()
    assert len(calls) == 1
    slope_az, _ = learner.slopes()
    assert g.vx == min(1.0, slope_az / learner.settings.max_slope_for_full_scale)

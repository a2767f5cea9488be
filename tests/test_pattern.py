from dataclasses import replace

import numpy as np
import pytest

from dishlink.params import PhysicalParameters
from dishlink.pattern import PatternModel, bessel_j0, lookup_power, shared_model


def test_bessel_j0_reference_values():
    assert bessel_j0(0.0) == pytest.approx(1.0, abs=1e-8)
    # first zero
    assert bessel_j0(2.404825557695773) == pytest.approx(0.0, abs=1e-6)
    assert bessel_j0(10.0) == pytest.approx(-0.2459357645, abs=1e-6)
    out = bessel_j0(np.array([0.0, 1.0, 20.0]))
    assert out.shape == (3,)
    assert out[1] == pytest.approx(0.7651976866, abs=1e-6)


def test_boresight_is_unity_and_range():
    model = PatternModel()
    lut = model.lut()
    assert len(lut) == 360
    assert lut.theta_deg[0] == 0.0 and lut.theta_deg[-1] == pytest.approx(40.0)
    assert model.lookup(0.0) == 1.0
    assert np.all(lut.power >= 0.0) and np.all(lut.power <= 1.0)


def test_monotone_main_lobe_down_to_first_null():
    p = PatternModel().lut().power
    rising = np.nonzero(np.diff(p) > 0.0)[0]
    assert rising.size > 0
    first = int(rising[0])
    assert np.all(np.diff(p[: first + 1]) <= 0.0)
    assert p[first] < 0.05


def test_lookup_symmetric_and_clamped():
    model = PatternModel()
    assert model.lookup(-1.3) == model.lookup(1.3)
    assert model.lookup(90.0) == float(model.lut().power[-1])
    many = model.lookup_many([0.0, 0.7, -1.1])
    assert many[0] == pytest.approx(1.0)
    assert many[1] == pytest.approx(model.lookup(0.7))
    assert many[2] == pytest.approx(model.lookup(1.1))


def test_larger_dish_has_narrower_beam():
    small = PatternModel(PhysicalParameters(diameter_m=0.6))
    large = PatternModel(PhysicalParameters(diameter_m=1.8))
    assert large.lookup(1.0) < small.lookup(1.0)
    assert large.approx_beamwidth_deg() < small.approx_beamwidth_deg()


def test_rebuild_only_on_signature_change():
    params = PhysicalParameters()
    model = PatternModel(params)
    first = model.lut()
    assert model.configure(PhysicalParameters()) is False
    assert model.table is first
    bigger = replace(params, diameter_m=1.2)
    assert model.configure(bigger) is True
    assert model.table is not first
    assert model.last_signature == bigger.signature


def test_repeated_builds_are_bit_identical():
    a = PatternModel(PhysicalParameters()).lut()
    b = PatternModel(PhysicalParameters()).lut()
    assert a.signature == b.signature
    assert np.array_equal(a.power, b.power)


def test_strut_notch_and_floor():
    model = PatternModel(PhysicalParameters(strut_count=3, strut_amplitude=0.3, strut_start_deg=0.0))
    # on a strut (psi = 0) the notch is 1 - amp
    assert model.strut_attenuation(2.0, 0.0) == pytest.approx(0.7, abs=1e-6)
    # half way between struts (psi = 60) it is essentially transparent
    x, y = 2.0 * np.cos(np.radians(60.0)), 2.0 * np.sin(np.radians(60.0))
    assert model.strut_attenuation(x, y) == pytest.approx(1.0, abs=1e-6)
    assert model.strut_attenuation(0.0, 0.0) == 1.0

    deep = PatternModel(PhysicalParameters(strut_count=1, strut_amplitude=1.0))
    assert deep.strut_attenuation(1.0, 0.0) == pytest.approx(0.05)

    none = PatternModel(PhysicalParameters(strut_count=0))
    assert none.strut_attenuation(1.0, 0.0) == 1.0
    assert np.all(none.strut_attenuation(np.ones(4), np.zeros(4)) == 1.0)


def test_field_points_match_scalar_queries():
    model = PatternModel()
    xs = np.array([0.0, 0.4, -1.0, 2.5])
    ys = np.array([0.0, 0.3, 0.8, -0.5])
    grid = model.field_at_points(xs, ys)
    for i in range(xs.size):
        assert grid[i] == pytest.approx(model.field_at_point(float(xs[i]), float(ys[i])))


def test_lookup_power_reuses_model():
    model = PatternModel()
    params = PhysicalParameters(frequency_hz=18e9)
    value = lookup_power(params, 0.5, model)
    assert model.last_signature == params.signature
    assert value == pytest.approx(PatternModel(params).lookup(0.5))
    assert lookup_power(params, 0.0) == 1.0


def test_ruze_efficiency():
    assert PatternModel(PhysicalParameters(surface_rms_m=0.0)).ruze_efficiency() == 1.0
    rough = PatternModel(PhysicalParameters(surface_rms_m=0.002)).ruze_efficiency()
    assert 0.0 < rough < 1.0


def test_nan_angle_reads_as_off_table():
    model = PatternModel()
    far = float(model.lut().power[-1])
    assert model.lookup(float("nan")) == far
    assert model.lookup(float("inf")) == far
    many = model.lookup_many([float("nan"), 0.0])
    assert many[0] == far and many[1] == 1.0
    field = model.field_at_points(np.array([float("nan"), 0.0]), np.array([0.0, 0.0]))
    assert field[0] == 0.0 and field[1] == 1.0


def test_shared_model_is_reused_per_params():
    shared_model.cache_clear()
    params = PhysicalParameters(diameter_m=0.75)
    assert shared_model(params) is shared_model(PhysicalParameters(diameter_m=0.75))
    assert shared_model(params) is not shared_model(PhysicalParameters(diameter_m=0.8))

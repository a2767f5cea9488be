import math

import pytest

from dishlink.geometry import MechanicalState, Position
from dishlink.link_budget import (
    bidirectional_link,
    dish_gain_dbi,
    fspl_db,
    noise_floor_dbm,
    one_way_link,
    peak_dish_gain_dbi,
)
from dishlink.mcs import NO_LOCK, default_mcs_table, pick_mcs_from_snr_db
from dishlink.params import PhysicalParameters, RadioParameters
from dishlink.pattern import PatternModel


def test_fspl_reference_and_distance_scaling():
    assert fspl_db(1000.0, 11e9) == pytest.approx(113.27, abs=0.05)
    assert fspl_db(2000.0, 11e9) - fspl_db(1000.0, 11e9) == pytest.approx(20.0 * math.log10(2.0))
    # degenerate distance is floored instead of raising
    assert math.isfinite(fspl_db(0.0, 11e9))


def test_peak_gain_plausible():
    g = peak_dish_gain_dbi(0.9, 11e9, 0.6)
    assert 37.0 < g < 39.0
    assert peak_dish_gain_dbi(1.8, 11e9, 0.6) == pytest.approx(g + 20.0 * math.log10(2.0))


def test_dish_gain_includes_ruze_and_sidelobe_floor():
    model = PatternModel(PhysicalParameters())
    peak = peak_dish_gain_dbi(0.9, 11e9, 0.6)
    boresight = dish_gain_dbi(model, 0.0, 0.6)
    assert boresight == pytest.approx(peak + 10.0 * math.log10(model.ruze_efficiency()))
    assert dish_gain_dbi(model, 40.0, 0.6, sidelobe_floor_db=-30.0) >= boresight - 30.0 - 1e-9
    assert dish_gain_dbi(model, 1.0, 0.6) < boresight


def test_noise_floor():
    assert noise_floor_dbm(20e6, 6.0) == pytest.approx(-174.0 + 10.0 * math.log10(20e6) + 6.0)


def test_one_way_link_budget_terms():
    model = PatternModel()
    radio = RadioParameters()
    link = one_way_link(model, 0.0, 0.0, 1000.0, radio)
    expected = radio.tx_power_dbm + 2.0 * link.tx_gain_dbi - link.path_loss_db - radio.system_loss_db
    assert link.received_power_dbm == pytest.approx(expected)
    assert link.snr_db == pytest.approx(link.received_power_dbm - noise_floor_dbm(radio.bandwidth_hz, radio.noise_figure_db))


def test_bidirectional_link_aligned_vs_broadside():
    model = PatternModel()
    a = MechanicalState(0.0, 90.0, Position(0.0, 0.0, 30.0))
    b = MechanicalState(180.0, 90.0, Position(1500.0, 0.0, 28.0))
    good = bidirectional_link(model, a, b)
    assert good.distance_m == pytest.approx(1500.0, abs=0.01)
    assert good.a_to_b.mcs.name == "256-QAM"
    assert good.a_to_b.received_power_dbm == pytest.approx(good.b_to_a.received_power_dbm)

    broadside = bidirectional_link(model, a, MechanicalState(90.0, 90.0, Position(1500.0, 0.0, 28.0)))
    assert broadside.theta_b_deg == pytest.approx(90.0, abs=0.1)
    assert broadside.a_to_b.snr_db < good.a_to_b.snr_db


def test_bidirectional_link_without_positions_uses_given_distance():
    model = PatternModel()
    link = bidirectional_link(model, MechanicalState(0.0, 90.0), MechanicalState(180.0, 90.0))
    assert link.distance_m == 1000.0
    link = bidirectional_link(model, MechanicalState(0.0, 90.0), MechanicalState(180.0, 90.0), distance_m=5000.0)
    assert link.distance_m == 5000.0


def test_mcs_selection():
    assert pick_mcs_from_snr_db(31.0).name == "256-QAM"
    assert pick_mcs_from_snr_db(12.0).name == "16-QAM"
    assert pick_mcs_from_snr_db(4.0) is NO_LOCK
    table = default_mcs_table()
    thresholds = [m.snr_db_threshold for m in table]
    rates = [m.throughput_mbps for m in table]
    assert thresholds == sorted(thresholds)
    assert rates == sorted(rates)

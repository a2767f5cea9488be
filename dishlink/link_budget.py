"""Physical point-to-point link budget (dBi / dBm), for reporting.

Unlike the app-dB reading in `link_quality`, these are physical quantities:
- Peak dish gain from the aperture formula:
    G_peak = 4 pi (eta * Ruze * pi (D/2)^2) / lambda^2
- Off-axis gain: G(theta) = G_peak + 10 log10(P(theta)), with P from the
  radiation LUT and a sidelobe floor so far-out angles stay finite.
- Free-space path loss: FSPL = 20 log10(4 pi d f / c).
- Received power: Pr = Pt + Gt(theta_tx) + Gr(theta_rx) - FSPL - L_sys.
- Thermal noise: N = -174 + 10 log10(B) + NF, SNR = Pr - N.

Guards floor distance, frequency and bandwidth at small positive values
instead of raising, so a degenerate geometry still yields a (poor) number.
"""

import math
from dataclasses import dataclass
from typing import Optional

from .geometry import MechanicalState, line_of_sight, off_axis_angle_deg
from .mcs import McsEntry, pick_mcs_from_snr_db
from .params import RadioParameters
from .pattern import C_LIGHT_MS, PatternModel

_FOUR_PI = 4.0 * math.pi


def wavelength_m(frequency_hz: float) -> float:
    return C_LIGHT_MS / max(frequency_hz, 1.0)


def peak_dish_gain_dbi(diameter_m: float, frequency_hz: float, aperture_efficiency: float = 0.6) -> float:
    """Boresight gain in dBi of a circular aperture."""
    lam = wavelength_m(frequency_hz)
    area = math.pi * (diameter_m / 2.0) ** 2
    gain = _FOUR_PI * aperture_efficiency * area / (lam * lam)
    return 10.0 * math.log10(max(gain, 1e-12))


def dish_gain_dbi(model: PatternModel, theta_deg: float, aperture_efficiency: float = 0.6,
                  sidelobe_floor_db: float = -60.0) -> float:
    """Absolute gain (dBi) at an off-boresight angle, Ruze loss included."""
    p = model.params
    peak = peak_dish_gain_dbi(p.diameter_m, p.frequency_hz, aperture_efficiency * model.ruze_efficiency())
    pattern_db = 10.0 * math.log10(max(model.lookup(theta_deg), 1e-30))
    return peak + max(pattern_db, sidelobe_floor_db)


def fspl_db(distance_m: float, frequency_hz: float) -> float:
    """Free-space path loss in dB: 20 log10(4 pi d f / c)."""
    d = max(distance_m, 1e-3)
    f = max(frequency_hz, 1.0)
    return 20.0 * math.log10(_FOUR_PI * d * f / C_LIGHT_MS)


def noise_floor_dbm(bandwidth_hz: float, noise_figure_db: float, t0_noise_dbmhz: float = -174.0) -> float:
    """Receiver noise power: N [dBm] = -174 + 10 log10(B) + NF."""
    return t0_noise_dbmhz + 10.0 * math.log10(max(bandwidth_hz, 1.0)) + noise_figure_db


@dataclass(frozen=True)
class OneWayLink:
    received_power_dbm: float
    tx_gain_dbi: float
    rx_gain_dbi: float
    path_loss_db: float
    snr_db: float
    mcs: McsEntry


@dataclass(frozen=True)
class BidirectionalLink:
    distance_m: float
    theta_a_deg: float
    theta_b_deg: float
    a_to_b: OneWayLink
    b_to_a: OneWayLink


def one_way_link(model: PatternModel, theta_tx_deg: float, theta_rx_deg: float, distance_m: float,
                 radio: Optional[RadioParameters] = None) -> OneWayLink:
    """Received power, SNR and MCS for one direction of a link.

    Both ends are assumed to use the dish described by `model`.
    """
    if radio is None:
        radio = RadioParameters()
    eff = radio.aperture_efficiency
    floor = radio.sidelobe_floor_db
    g_tx = dish_gain_dbi(model, theta_tx_deg, eff, floor)
    g_rx = dish_gain_dbi(model, theta_rx_deg, eff, floor)
    pl = fspl_db(distance_m, model.params.frequency_hz)
    pr = radio.tx_power_dbm + g_tx + g_rx - pl - radio.system_loss_db
    snr = pr - noise_floor_dbm(radio.bandwidth_hz, radio.noise_figure_db)
    return OneWayLink(
        received_power_dbm=pr,
        tx_gain_dbi=g_tx,
        rx_gain_dbi=g_rx,
        path_loss_db=pl,
        snr_db=snr,
        mcs=pick_mcs_from_snr_db(snr),
    )


def bidirectional_link(model: PatternModel, dish_a: MechanicalState, dish_b: MechanicalState,
                       radio: Optional[RadioParameters] = None,
                       distance_m: Optional[float] = None) -> BidirectionalLink:
    """Both directions of a link between two sited dishes.

    Without positions the off-axis angles come from the reciprocal-facing
    approximation and `distance_m` must be supplied (default 1 km).
    """
    if dish_a.position is not None and dish_b.position is not None:
        distance = line_of_sight(dish_a.position, dish_b.position).distance_m
    else:
        distance = 1000.0 if distance_m is None else distance_m
    theta_a = off_axis_angle_deg(dish_a, dish_b)
    theta_b = off_axis_angle_deg(dish_b, dish_a)
    return BidirectionalLink(
        distance_m=distance,
        theta_a_deg=theta_a,
        theta_b_deg=theta_b,
        a_to_b=one_way_link(model, theta_a, theta_b, distance, radio),
        b_to_a=one_way_link(model, theta_b, theta_a, distance, radio),
    )

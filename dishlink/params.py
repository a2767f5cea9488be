"""Dish and link configuration: value objects and a tolerant text parser.

This module provides:
- Frozen data classes for the physical dish description, the app-dB link
  mapping, the alignment learner tunables and the radio chain.
- A tolerant regex-based parser that extracts those values from a free-form
  text file (one "Name: value unit" per line, in any order, anything else is
  ignored).

Notes on the defaults:
- The physical defaults describe a 0.9 m offset-fed dish at 11 GHz with a
  corrugated feed (12 dB edge taper), a 12 % central blockage and three feed
  struts.
- App-dB is a compressed UI metric: BEST_DB (1.32) is a perfectly aligned link,
  WORST_DB (1.70) no link at all. Lower is better.
- A `PhysicalParameters.signature` covers every field, so two parameter sets
  with equal signatures produce identical patterns.
"""
import re
from dataclasses import dataclass, field, replace
from typing import Optional

BEST_DB = 1.32
WORST_DB = 1.70


@dataclass(frozen=True)
class PhysicalParameters:
    diameter_m: float = 0.9
    frequency_hz: float = 11e9
    surface_rms_m: float = 0.0005
    blockage_ratio: float = 0.12
    taper_alpha: float = 0.8
    taper_exponent: float = 2.0
    corrugated_feed: bool = True
    edge_taper_db: float = 12.0
    strut_count: int = 3
    strut_amplitude: float = 0.30
    strut_width_deg: float = 3.0
    strut_start_deg: float = 0.0

    @property
    def signature(self) -> str:
        """Cache key for the radiation LUT (every field, full precision)."""
        return "|".join([
            repr(float(self.diameter_m)),
            repr(float(self.frequency_hz)),
            repr(float(self.surface_rms_m)),
            repr(float(self.blockage_ratio)),
            repr(float(self.taper_alpha)),
            repr(float(self.taper_exponent)),
            "C" if self.corrugated_feed else "N",
            repr(float(self.edge_taper_db)),
            str(int(self.strut_count)),
            repr(float(self.strut_amplitude)),
            repr(float(self.strut_width_deg)),
            repr(float(self.strut_start_deg)),
        ])


@dataclass(frozen=True)
class LinkMapping:
    """Normalized link power -> app-dB mapping.

    best_db / worst_db: readings for a perfect link (P=1) and no link (P=0)
    exponent: power-law compression; larger punishes partial alignment harder
    gate_center / gate_sharpness: logistic capture gate per dish gain
    overlap_grid: samples per axis for the no-position overlap estimate
    facing_width_deg: Gaussian width of the no-position facing penalty
    """

    best_db: float = BEST_DB
    worst_db: float = WORST_DB
    exponent: float = 2.2
    gate_center: float = 0.6
    gate_sharpness: float = 18.0
    overlap_grid: int = 31
    facing_width_deg: float = 30.0


@dataclass(frozen=True)
class LearnerSettings:
    capacity: int = 400
    min_samples: int = 6
    dead_band_deg: float = 0.05
    step_alpha: float = 0.05
    noise_alpha: float = 0.25
    initial_noise: float = 0.01
    initial_az_step_deg: float = 0.5
    initial_tilt_step_deg: float = 0.25
    max_slope_for_full_scale: float = 0.05  # reading units per degree
    plateau_floor: float = 0.0005
    suggest_cap_x_deg: float = 3.0
    suggest_cap_y_deg: float = 2.0
    confidence_scale: float = 6.0


@dataclass(frozen=True)
class RadioParameters:
    tx_power_dbm: float = 23.0
    system_loss_db: float = 2.0
    bandwidth_hz: float = 20e6
    noise_figure_db: float = 6.0
    aperture_efficiency: float = 0.60
    sidelobe_floor_db: float = -60.0


@dataclass(frozen=True)
class DishConfig:
    physical: PhysicalParameters = field(default_factory=PhysicalParameters)
    mapping: LinkMapping = field(default_factory=LinkMapping)
    learner: LearnerSettings = field(default_factory=LearnerSettings)
    radio: RadioParameters = field(default_factory=RadioParameters)


_NUM = r"([-+]?[0-9]+(?:\.[0-9]+)?(?:[eE][-+]?[0-9]+)?)"


def _parse_frequency_hz(value: str) -> Optional[float]:
    m = re.search(_NUM + r"\s*(Hz|kHz|MHz|GHz)", value, re.IGNORECASE)
    if not m:
        return None
    num = float(m.group(1))
    unit = m.group(2).lower()
    scale = {"hz": 1.0, "khz": 1e3, "mhz": 1e6, "ghz": 1e9}[unit]
    return num * scale


def _parse_length_m(value: str) -> Optional[float]:
    m = re.search(_NUM + r"\s*(mm|cm|m)\b", value, re.IGNORECASE)
    if not m:
        return None
    num = float(m.group(1))
    scale = {"mm": 1e-3, "cm": 1e-2, "m": 1.0}[m.group(2).lower()]
    return num * scale


def _find(text: str, label: str) -> Optional[str]:
    m = re.search(r"^\s*" + label + r"\s*[:=]\s*([^\n]+)", text, re.IGNORECASE | re.MULTILINE)
    return m.group(1) if m else None


def _find_number(text: str, label: str) -> Optional[float]:
    raw = _find(text, label)
    if raw is None:
        return None
    m = re.search(_NUM, raw)
    return float(m.group(1)) if m else None


def parse_config_text(text: str, defaults: Optional[DishConfig] = None) -> DishConfig:
    """Parse a free-form configuration text; fall back to defaults.

    Recognized lines (case-insensitive, "=" or ":" separators):
        Dish diameter: 1.2 m          Frequency: 18 GHz
        Surface RMS: 0.3 mm           Blockage: 0.1
        Taper alpha: 0.7              Taper exponent: 2
        Corrugated feed: no           Edge taper: 10 dB
        Struts: 4                     Strut amplitude: 0.25
        Strut width: 2.5 deg          Strut start: 45 deg
        Best dB: 1.30                 Worst dB: 1.75
        Exponent: 2.0                 Gate center: 0.5
        Gate sharpness: 12            Buffer size: 200
        Tx power: 20 dBm              System loss: 1.5 dB
        Bandwidth: 40 MHz             Noise figure: 5 dB
        Aperture efficiency: 0.65
    """
    if defaults is None:
        defaults = DishConfig()
    phys = defaults.physical
    mapping = defaults.mapping
    learner = defaults.learner
    radio = defaults.radio

    diameter = phys.diameter_m
    raw = _find(text, r"(dish\s+)?diameter")
    if raw is not None:
        parsed = _parse_length_m(raw)
        if parsed:
            diameter = parsed

    freq = phys.frequency_hz
    raw = _find(text, r"(carrier\s+)?frequency")
    if raw is not None:
        parsed = _parse_frequency_hz(raw)
        if parsed:
            freq = parsed

    rms = phys.surface_rms_m
    raw = _find(text, r"surface\s*(rms|error)")
    if raw is not None:
        parsed = _parse_length_m(raw)
        if parsed is not None:
            rms = parsed

    blockage = _find_number(text, r"(central\s+)?blockage(\s+ratio)?")
    alpha = _find_number(text, r"taper\s*alpha")
    exponent = _find_number(text, r"taper\s*exp(onent)?")
    edge = _find_number(text, r"(feed\s+)?edge\s*taper")

    corrugated = phys.corrugated_feed
    raw = _find(text, r"corrugated(\s+feed)?")
    if raw is not None:
        corrugated = raw.strip().lower().startswith(("y", "true", "on", "1"))

    struts = _find_number(text, r"struts?(\s+count)?")
    strut_amp = _find_number(text, r"strut\s*amp(litude)?")
    strut_width = _find_number(text, r"strut\s*width")
    strut_start = _find_number(text, r"strut\s*start")

    best = _find_number(text, r"best\s*db")
    worst = _find_number(text, r"worst\s*db")
    comp = _find_number(text, r"(compression\s+)?exponent")
    gate_c = _find_number(text, r"gate\s*cent(er|re)")
    gate_s = _find_number(text, r"gate\s*sharpness")
    capacity = _find_number(text, r"buffer\s*(size|capacity)")

    tx = _find_number(text, r"tx\s*power")
    loss = _find_number(text, r"system\s*loss(es)?")
    nf = _find_number(text, r"noise\s*figure")
    eff = _find_number(text, r"aperture\s*efficiency")
    bw = radio.bandwidth_hz
    raw = _find(text, r"(channel\s+)?bandwidth")
    if raw is not None:
        parsed = _parse_frequency_hz(raw)
        if parsed:
            bw = parsed

    def pick(value, fallback):
        return fallback if value is None else value

    return DishConfig(
        physical=PhysicalParameters(
            diameter_m=diameter,
            frequency_hz=freq,
            surface_rms_m=rms,
            blockage_ratio=pick(blockage, phys.blockage_ratio),
            taper_alpha=pick(alpha, phys.taper_alpha),
            taper_exponent=pick(exponent, phys.taper_exponent),
            corrugated_feed=corrugated,
            edge_taper_db=pick(edge, phys.edge_taper_db),
            strut_count=int(pick(struts, phys.strut_count)),
            strut_amplitude=pick(strut_amp, phys.strut_amplitude),
            strut_width_deg=pick(strut_width, phys.strut_width_deg),
            strut_start_deg=pick(strut_start, phys.strut_start_deg),
        ),
        mapping=LinkMapping(
            best_db=pick(best, mapping.best_db),
            worst_db=pick(worst, mapping.worst_db),
            exponent=pick(comp, mapping.exponent),
            gate_center=pick(gate_c, mapping.gate_center),
            gate_sharpness=pick(gate_s, mapping.gate_sharpness),
            overlap_grid=mapping.overlap_grid,
            facing_width_deg=mapping.facing_width_deg,
        ),
        learner=replace(learner, capacity=int(pick(capacity, learner.capacity))),
        radio=RadioParameters(
            tx_power_dbm=pick(tx, radio.tx_power_dbm),
            system_loss_db=pick(loss, radio.system_loss_db),
            bandwidth_hz=bw,
            noise_figure_db=pick(nf, radio.noise_figure_db),
            aperture_efficiency=pick(eff, radio.aperture_efficiency),
            sidelobe_floor_db=radio.sidelobe_floor_db,
        ),
    )


def load_config_from_text_file(path: str, defaults: Optional[DishConfig] = None) -> DishConfig:
    with open(path, "r", encoding="utf-8", errors="ignore") as f:
        txt = f.read()
    return parse_config_text(txt, defaults)

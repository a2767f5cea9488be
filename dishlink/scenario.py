"""Scenario runner: sweep dish B around a two-dish link and tabulate it.

This module provides a very simple way to see how a link degrades as one dish
is turned away from its partner. For each azimuth/tilt offset applied to dish
B it reports:
- The app-dB link reading (LinkBudgetMapper)
- Each dish's normalized off-axis gain and dish B's signed pointing error
- The physical budget for A -> B (received power, SNR, modulation)

Results are plain rows that can be printed or saved to CSV.
"""

import csv
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Iterable, List, Optional

from .geometry import MechanicalState, pointing_error
from .link_budget import bidirectional_link
from .link_quality import LinkBudgetMapper
from .params import RadioParameters


@dataclass
class LinkScenario:
    """Minimal scenario definition.

    Fields:
    - dish_a, dish_b: the two dishes as currently pointed
    - azimuth_offsets_deg: offsets added to dish B's azimuth
    - tilt_offsets_deg: offsets added to dish B's tilt (default: only 0)
    """
    dish_a: MechanicalState
    dish_b: MechanicalState
    azimuth_offsets_deg: List[float]
    tilt_offsets_deg: Optional[List[float]] = None

    def __post_init__(self):
        if self.tilt_offsets_deg is None:
            self.tilt_offsets_deg = [0.0]


@dataclass
class ResultRow:
    """One row of results for an offset pair."""
    az_offset_deg: float
    tilt_offset_deg: float
    link_db: float
    gain_a: float
    gain_b: float
    error_b_az_deg: float
    error_b_tilt_deg: float
    rx_power_dbm: float
    snr_db: float
    modulation: str


def run_scenario(mapper: LinkBudgetMapper, scenario: LinkScenario,
                 radio: Optional[RadioParameters] = None) -> List[ResultRow]:
    """Evaluate the link for every (azimuth, tilt) offset of dish B."""
    rows: List[ResultRow] = []
    a = scenario.dish_a
    for d_tilt in scenario.tilt_offsets_deg:
        for d_az in scenario.azimuth_offsets_deg:
            b = replace(
                scenario.dish_b,
                azimuth_deg=(scenario.dish_b.azimuth_deg + d_az) % 360.0,
                tilt_deg=scenario.dish_b.tilt_deg + d_tilt,
            )
            err = pointing_error(b, a)
            budget = bidirectional_link(mapper.model, a, b, radio)
            rows.append(ResultRow(
                az_offset_deg=d_az,
                tilt_offset_deg=d_tilt,
                link_db=mapper.compute_link_db(a, b),
                gain_a=mapper.off_axis_gain(a, b),
                gain_b=mapper.off_axis_gain(b, a),
                error_b_az_deg=err.az_deg,
                error_b_tilt_deg=err.tilt_deg,
                rx_power_dbm=budget.a_to_b.received_power_dbm,
                snr_db=budget.a_to_b.snr_db,
                modulation=budget.a_to_b.mcs.name,
            ))
    return rows


def rows_to_table(rows: Iterable[ResultRow]) -> List[List[str]]:
    """Convert results to a simple table (strings) for printing or CSV export."""
    table = [["az_offset_deg", "tilt_offset_deg", "link_db", "gain_a", "gain_b",
              "err_b_az_deg", "err_b_tilt_deg", "rx_dbm", "snr_db", "modulation"]]
    for r in rows:
        table.append([
            f"{r.az_offset_deg:.2f}",
            f"{r.tilt_offset_deg:.2f}",
            f"{r.link_db:.4f}",
            f"{r.gain_a:.4f}",
            f"{r.gain_b:.4f}",
            f"{r.error_b_az_deg:.2f}",
            f"{r.error_b_tilt_deg:.2f}",
            f"{r.rx_power_dbm:.2f}",
            f"{r.snr_db:.2f}",
            r.modulation,
        ])
    return table


def print_table(table: List[List[str]]) -> None:
    """Pretty-print a simple table to the console."""
    widths = [max(len(row[i]) for row in table) for i in range(len(table[0]))]
    for row in table:
        print("  ".join(cell.ljust(widths[j]) for j, cell in enumerate(row)))


def save_rows_csv(rows: Iterable[ResultRow], path: str | Path) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", newline="", encoding="utf-8") as f:
        csv.writer(f).writerows(rows_to_table(rows))
    return p

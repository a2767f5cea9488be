"""Microwave backhaul modulation steps versus SNR.

Indicative thresholds for an adaptive-modulation point-to-point radio in a
~20 MHz channel. They are coarse operator-facing signals ("what would the
radio lock to at this SNR"), not a vendor table.
"""

from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class McsEntry:
    name: str
    snr_db_threshold: float  # minimum SNR to hold this modulation (dB)
    throughput_mbps: float
    comment: str


NO_LOCK = McsEntry("No lock", float("-inf"), 0.0, "No reliable modulation available")


def default_mcs_table() -> List[McsEntry]:
    return [
        McsEntry("QPSK", 5.0, 10.0, "Fragile"),
        McsEntry("16-QAM", 10.0, 40.0, "Low"),
        McsEntry("32-QAM", 15.0, 80.0, "Moderate"),
        McsEntry("64-QAM", 20.0, 150.0, "Good"),
        McsEntry("128-QAM", 25.0, 220.0, "Very good"),
        McsEntry("256-QAM", 30.0, 300.0, "Excellent link"),
    ]


def pick_mcs_from_snr_db(snr_db: float, table: List[McsEntry] | None = None) -> McsEntry:
    """Highest modulation whose threshold the SNR meets, else NO_LOCK."""
    if table is None:
        table = default_mcs_table()
    candidates = [m for m in table if snr_db >= m.snr_db_threshold]
    if not candidates:
        return NO_LOCK
    return max(candidates, key=lambda m: m.snr_db_threshold)

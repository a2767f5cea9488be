"""CLI to evaluate a two-dish link, sweep dish B, and save CSV/PNG reports.

Usage:
    python -m dishlink.cli --a-pos 0 0 30 --a-az 0 --b-pos 1500 0 28 --b-az 180 \
        --sweep 10 --step 0.5 --out sweep.csv --pattern-png pattern.png
"""

import argparse
import logging
from pathlib import Path

import numpy as np

from . import (
    DishConfig,
    LinkBudgetMapper,
    LinkScenario,
    MechanicalState,
    PatternModel,
    Position,
    load_config_from_text_file,
    print_table,
    rows_to_table,
    run_scenario,
    save_rows_csv,
)
from .plots import render_pattern_cut, render_pattern_map

logger = logging.getLogger(__name__)


def _dish(pos, az, tilt) -> MechanicalState:
    position = Position(*pos) if pos is not None else None
    return MechanicalState(azimuth_deg=az, tilt_deg=tilt, position=position)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Evaluate a two-dish link and sweep dish B")
    parser.add_argument("--a-pos", type=float, nargs=3, metavar=("X", "Y", "Z"), default=None)
    parser.add_argument("--a-az", type=float, default=0.0)
    parser.add_argument("--a-tilt", type=float, default=90.0)
    parser.add_argument("--b-pos", type=float, nargs=3, metavar=("X", "Y", "Z"), default=None)
    parser.add_argument("--b-az", type=float, default=180.0)
    parser.add_argument("--b-tilt", type=float, default=90.0)
    parser.add_argument("--config", type=Path, default=None, help="dish/link parameter text file")
    parser.add_argument("--sweep", type=float, default=5.0, help="half-width of dish B azimuth sweep (deg)")
    parser.add_argument("--step", type=float, default=0.5, help="sweep step (deg)")
    parser.add_argument("--out", type=Path, default=None, help="CSV output path")
    parser.add_argument("--pattern-png", type=Path, default=None, help="save a 2-D pattern map")
    parser.add_argument("--cut-png", type=Path, default=None, help="save the radial pattern cut")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    cfg = load_config_from_text_file(str(args.config)) if args.config is not None else DishConfig()
    mapper = LinkBudgetMapper(PatternModel(cfg.physical), cfg.mapping)

    dish_a = _dish(args.a_pos, args.a_az, args.a_tilt)
    dish_b = _dish(args.b_pos, args.b_az, args.b_tilt)
    if dish_a.position is None or dish_b.position is None:
        logger.info("no site positions for both dishes; using the reciprocal-facing approximation")

    half = abs(args.sweep)
    step = max(abs(args.step), 1e-3)
    offsets = [float(x) for x in np.arange(-half, half + 0.5 * step, step)]
    rows = run_scenario(mapper, LinkScenario(dish_a, dish_b, offsets), cfg.radio)
    print_table(rows_to_table(rows))

    print(f"Link now: {mapper.compute_link_db(dish_a, dish_b):.4f} app-dB "
          f"(best {cfg.mapping.best_db:.2f}, worst {cfg.mapping.worst_db:.2f})")

    if args.out is not None:
        save_rows_csv(rows, args.out)
        print(f"Saved {len(rows)} rows to {args.out}")
    if args.pattern_png is not None:
        m = cfg.mapping
        thresholds = [m.best_db + f * (m.worst_db - m.best_db) for f in (0.25, 0.5, 0.75)]
        render_pattern_map(mapper, args.pattern_png, thresholds)
        print(f"Saved pattern map to {args.pattern_png}")
    if args.cut_png is not None:
        render_pattern_cut(mapper.model, args.cut_png)
        print(f"Saved pattern cut to {args.cut_png}")
    return 0


if __name__ == "__main__":
    main()

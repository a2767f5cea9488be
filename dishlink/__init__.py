from .params import (
    BEST_DB,
    WORST_DB,
    PhysicalParameters,
    LinkMapping,
    LearnerSettings,
    RadioParameters,
    DishConfig,
    parse_config_text,
    load_config_from_text_file,
)
from .pattern import (
    PatternModel,
    RadiationLUT,
    bessel_j0,
    aperture_illumination,
    lookup_power,
    shared_model,
)
from .geometry import (
    Position,
    MechanicalState,
    LineOfSight,
    PointingError,
    Ray,
    ClosestApproach,
    wrap180,
    boresight_vector,
    line_of_sight,
    pointing_error,
    off_axis_angle_deg,
    closest_approach,
    boresight_ray,
    mechanical_to_boresight_offset,
)
from .link_quality import (
    LinkBudgetMapper,
    capture_gate,
    normalized_to_app_db,
    compute_link_db,
    iso_contour_radius,
)
from .learner import (
    Direction,
    Sample,
    GuidanceVector,
    RingBuffer,
    AlignmentLearner,
    classify_direction,
)
from .lobe_map import LobeMap, LobeMapOptions, LobeSnapshot
from .link_budget import (
    wavelength_m,
    peak_dish_gain_dbi,
    dish_gain_dbi,
    fspl_db,
    noise_floor_dbm,
    OneWayLink,
    BidirectionalLink,
    one_way_link,
    bidirectional_link,
)
from .mcs import McsEntry, default_mcs_table, pick_mcs_from_snr_db
from .scenario import (
    LinkScenario,
    ResultRow,
    run_scenario,
    rows_to_table,
    print_table,
    save_rows_csv,
)

__all__ = [
    "BEST_DB",
    "WORST_DB",
    "PhysicalParameters",
    "LinkMapping",
    "LearnerSettings",
    "RadioParameters",
    "DishConfig",
    "parse_config_text",
    "load_config_from_text_file",
    "PatternModel",
    "RadiationLUT",
    "bessel_j0",
    "aperture_illumination",
    "lookup_power",
    "shared_model",
    "Position",
    "MechanicalState",
    "LineOfSight",
    "PointingError",
    "Ray",
    "ClosestApproach",
    "wrap180",
    "boresight_vector",
    "line_of_sight",
    "pointing_error",
    "off_axis_angle_deg",
    "closest_approach",
    "boresight_ray",
    "mechanical_to_boresight_offset",
    "LinkBudgetMapper",
    "capture_gate",
    "normalized_to_app_db",
    "compute_link_db",
    "iso_contour_radius",
    "Direction",
    "Sample",
    "GuidanceVector",
    "RingBuffer",
    "AlignmentLearner",
    "classify_direction",
    "LobeMap",
    "LobeMapOptions",
    "LobeSnapshot",
    "wavelength_m",
    "peak_dish_gain_dbi",
    "dish_gain_dbi",
    "fspl_db",
    "noise_floor_dbm",
    "OneWayLink",
    "BidirectionalLink",
    "one_way_link",
    "bidirectional_link",
    "McsEntry",
    "default_mcs_table",
    "pick_mcs_from_snr_db",
    "LinkScenario",
    "ResultRow",
    "run_scenario",
    "rows_to_table",
    "print_table",
    "save_rows_csv",
]

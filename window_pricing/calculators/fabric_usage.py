"""
Fabric usage calculator: how much fabric a curtain needs.

Input: rail width, drop, pooling (all cm), fabric roll width, roll direction,
and the fabric adjustments contributed by options bundled into the making cost.
Output: widths required, seams, and linear fabric in yards and meters.

Every length is rounded UP. Under-ordering fabric means a remake; a few
centimetres of leftover does not.
"""

import logging
import math
from collections.abc import Mapping

logger = logging.getLogger(__name__)

CM_PER_YARD = 91.44
CM_PER_METER = 100.0

DEFAULT_FULLNESS_RATIO = 2.5
DEFAULT_WASTE_FACTOR = 0.10
HEM_ALLOWANCE_CM = 25.0        # Header + hem allowance added to every drop
SEAM_HOURS = 0.5               # Labor per seam before complexity

ORIENTATIONS = ("horizontal", "vertical")
DEFAULT_ORIENTATION = "vertical"


def round_up_tenth(value: float) -> float:
    """Ceiling to one decimal place. 16.11 → 16.2, 16.2 → 16.2."""
    # round() first so 16.2 * 10 = 162.00000000000003 doesn't become 163
    return math.ceil(round(value * 10, 6)) / 10


def _factor(value, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def _declared_waste(value):
    """Waste factor as declared on an option. None when undeclared or unreadable."""
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def iter_bundled_options(bundled_options):
    """Yield (option_type, option) from a making cost's bundled option mapping.

    Accepts {"heading": [...], "hardware": [...], "lining": [...]} or a flat
    list of options carrying their own "option_type".
    """
    if isinstance(bundled_options, Mapping):
        for option_type, options in bundled_options.items():
            for option in options or []:
                if isinstance(option, Mapping):
                    yield option_type, option
    elif isinstance(bundled_options, list):
        for option in bundled_options:
            if isinstance(option, Mapping):
                yield option.get("option_type", ""), option


def resolve_fabric_adjustments(bundled_options, default_fullness: float = DEFAULT_FULLNESS_RATIO,
                               default_waste: float = DEFAULT_WASTE_FACTOR) -> dict:
    """
    Fold bundled option factors into the numbers the usage calculation needs.

    Only options flagged affects_fabric_calculation count:
    - pattern repeat factors multiply together
    - declared waste factors add up and replace the default waste
    - seam complexity takes the largest factor
    - a heading scales fullness by its repeat factor and adds its waste factor
    """
    fullness = default_fullness
    pattern_repeat = 1.0
    seam_complexity = 1.0
    declared_waste = []
    adjusting = []
    warnings = []

    for option_type, option in iter_bundled_options(bundled_options):
        if not option.get("affects_fabric_calculation"):
            continue
        adjusting.append(option.get("name") or option.get("option_id") or option_type)

        repeat = _factor(option.get("pattern_repeat_factor"), 1.0)
        pattern_repeat *= repeat
        seam_complexity = max(seam_complexity, _factor(option.get("seam_complexity_factor"), 1.0))

        raw_waste = option.get("fabric_waste_factor")
        waste = _declared_waste(raw_waste)
        if waste is None and raw_waste is not None:
            warnings.append(
                f"Ignoring unreadable waste factor {raw_waste!r} on {adjusting[-1]}"
            )
        if waste is not None:
            declared_waste.append(waste)

        if option_type == "heading":
            fullness = fullness * repeat + (waste or 0.0)

    return {
        "fullness_ratio": fullness,
        "waste_factor": sum(declared_waste) if declared_waste else default_waste,
        "pattern_repeat_factor": pattern_repeat,
        "seam_complexity_factor": seam_complexity,
        "adjusting_options": adjusting,
        "warnings": warnings,
    }


def _empty_usage(orientation: str, warnings: list) -> dict:
    return {
        "yards": 0.0,
        "meters": 0.0,
        "orientation": orientation,
        "seams_required": 0,
        "widths_required": 0,
        "seam_labor_hours": 0.0,
        "total_width_cm": 0.0,
        "length_cm": 0.0,
        "warnings": warnings,
    }


def calculate_fabric_usage(rail_width: float, drop: float, pooling: float, fabric_width: float,
                           roll_direction: str = DEFAULT_ORIENTATION,
                           fullness_ratio: float = DEFAULT_FULLNESS_RATIO,
                           waste_factor: float = DEFAULT_WASTE_FACTOR,
                           pattern_repeat_factor: float = 1.0,
                           seam_complexity_factor: float = 1.0,
                           hem_allowance_cm: float = HEM_ALLOWANCE_CM) -> dict:
    """
    Linear fabric for one window.

    Horizontal roll:
        widths = ceil(rail × fullness / fabric width), seams = widths - 1
    Vertical roll (default):
        panels = ceil(rail × fullness / fabric width), seams = panels - 1,
        widths = ceil(panels / max(1, drops that fit across one fabric width))
    Both: length = (drop + pooling + allowance) × widths × repeat × (1 + waste)
    """
    orientation = roll_direction if roll_direction in ORIENTATIONS else DEFAULT_ORIENTATION
    pooling = pooling or 0.0
    warnings = []
    if pooling < 0:
        warnings.append(f"Negative pooling {pooling:g} cm ignored")
        pooling = 0.0

    missing = []
    if not rail_width or rail_width <= 0:
        missing.append("rail width")
    if not drop or drop <= 0 or drop + pooling + hem_allowance_cm <= 0:
        missing.append("drop")
    if not fabric_width or fabric_width <= 0:
        missing.append("fabric width")
    if missing:
        warnings.append(f"Missing {', '.join(missing)}; fabric usage not calculated")
        return _empty_usage(orientation, warnings)

    total_width = rail_width * fullness_ratio
    cut_drop = drop + pooling + hem_allowance_cm
    panels = math.ceil(total_width / fabric_width)

    if orientation == "horizontal":
        widths_required = panels
    else:
        drops_per_width = math.floor(fabric_width / cut_drop)
        widths_required = math.ceil(panels / max(1, drops_per_width))
    seams_required = max(0, panels - 1)

    length_cm = cut_drop * widths_required
    length_cm *= pattern_repeat_factor
    length_cm *= 1 + waste_factor

    return {
        "yards": round_up_tenth(length_cm / CM_PER_YARD),
        "meters": round_up_tenth(length_cm / CM_PER_METER),
        "orientation": orientation,
        "seams_required": seams_required,
        "widths_required": widths_required,
        "seam_labor_hours": seams_required * SEAM_HOURS * seam_complexity_factor,
        "total_width_cm": total_width,
        "length_cm": length_cm,
        "warnings": warnings,
    }


def compare_orientations(fabric_cost_per_yard: float, **usage_kwargs) -> dict:
    """Price both roll directions and recommend the cheaper one (vertical on a tie)."""
    usage_kwargs.pop("roll_direction", None)
    summary = {}
    for orientation in ORIENTATIONS:
        usage = calculate_fabric_usage(roll_direction=orientation, **usage_kwargs)
        summary[orientation] = {
            "yards": usage["yards"],
            "meters": usage["meters"],
            "widths_required": usage["widths_required"],
            "seams_required": usage["seams_required"],
            "fabric_cost": round(usage["yards"] * fabric_cost_per_yard, 2),
        }

    horizontal_cost = summary["horizontal"]["fabric_cost"]
    vertical_cost = summary["vertical"]["fabric_cost"]
    summary["recommendation"] = "horizontal" if horizontal_cost < vertical_cost else "vertical"
    summary["savings"] = round(abs(horizontal_cost - vertical_cost), 2)
    return summary

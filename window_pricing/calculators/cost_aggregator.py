"""
Cost aggregator: prices a calculated window covering.

Combines four components into a total:
    fabric      yards × cost per yard
    making      drop-range price from the making cost record
    options     selected options not already bundled into the making cost
    labor       estimated hours × hourly rate

Problems found along the way become warnings on the result. Nothing here
raises for a pricing gap; a quote with a best-guess line beats no quote.
"""

import logging

from ..grids.formats import to_number
from .fabric_usage import CM_PER_METER, CM_PER_YARD, iter_bundled_options

logger = logging.getLogger(__name__)


def making_cost_for_drop(drop_ranges: list, drop: float):
    """
    Returns (price, matched_range) for a drop.

    First range with min <= drop <= max wins. With no match, the range with
    the largest max is used as a ceiling guess. No ranges → (0.0, None).
    """
    ranges = [r for r in (drop_ranges or []) if isinstance(r, dict)]
    if not ranges:
        return 0.0, None

    for r in ranges:
        if to_number(r.get("min")) <= drop <= to_number(r.get("max")):
            return float(to_number(r.get("price"))), r

    widest = max(ranges, key=lambda r: to_number(r.get("max")))
    return float(to_number(widest.get("price"))), widest


class CostAggregator:
    """Turns fabric usage + option records into costs, breakdown, and warnings."""

    LABOR_MINIMUM_HOURS = 3.0
    LABOR_BASE_HOURS = 2.0
    LABOR_AREA_DIVISOR = 25000.0   # cm² of gathered fabric per extra labor hour

    def __init__(self, hourly_rate: float = 25.0, high_waste_threshold: float = 0.15):
        self.hourly_rate = hourly_rate
        self.high_waste_threshold = high_waste_threshold

    def aggregate(self, measurements: dict, fabric_details: dict, fabric_usage: dict,
                  adjustments: dict, making_cost: dict = None,
                  additional_options: list = None) -> dict:
        """
        Args:
            measurements: {"rail_width", "drop", "pooling"} in cm
            fabric_details: {"fabric_width", "fabric_cost_per_yard", "roll_direction"}
            fabric_usage: output of calculate_fabric_usage()
            adjustments: output of resolve_fabric_adjustments()
            making_cost: making cost record dict, or None when unresolved
            additional_options: option record dicts to price individually

        Returns:
            {"costs": {...}, "breakdown": {...}, "labor_hours": float, "warnings": [...]}
        """
        warnings = []
        rail_width = measurements.get("rail_width", 0) or 0
        drop = measurements.get("drop", 0) or 0

        fabric_cost = round(fabric_usage["yards"] * (fabric_details.get("fabric_cost_per_yard") or 0), 2)

        making_total, making_lines = self._price_making_cost(making_cost, drop, warnings)
        options_total, option_lines = self._price_options(
            additional_options or [], rail_width, drop, fabric_cost, warnings,
        )

        labor_hours = self.estimate_labor_hours(
            rail_width, drop, adjustments["fullness_ratio"], fabric_usage["seam_labor_hours"],
        )
        labor_cost = round(labor_hours * self.hourly_rate, 2)

        warnings.extend(self._build_warnings(fabric_usage, adjustments))

        return {
            "costs": {
                "fabric_cost": fabric_cost,
                "making_cost": making_total,
                "additional_options_cost": options_total,
                "labor_cost": labor_cost,
                "total_cost": round(fabric_cost + making_total + options_total + labor_cost, 2),
            },
            "breakdown": {
                "making_cost_options": making_lines,
                "additional_options": option_lines,
            },
            "labor_hours": labor_hours,
            "warnings": warnings,
        }

    def estimate_labor_hours(self, rail_width: float, drop: float, fullness: float,
                             seam_labor_hours: float) -> float:
        """max(3, 2 + rail × drop × fullness / 25000 + seam hours)."""
        hours = self.LABOR_BASE_HOURS + (rail_width * drop * fullness) / self.LABOR_AREA_DIVISOR
        hours += seam_labor_hours
        return round(max(self.LABOR_MINIMUM_HOURS, hours), 2)

    def _price_making_cost(self, making_cost, drop: float, warnings: list):
        if not making_cost:
            return 0.0, []

        name = making_cost.get("name") or "Making cost"
        price, matched = making_cost_for_drop(making_cost.get("drop_ranges"), drop)
        if matched is None:
            warnings.append(f"{name} has no drop ranges, making cost set to 0")
            calculation = "No drop ranges defined"
        else:
            low, high = to_number(matched.get("min")), to_number(matched.get("max"))
            if low <= drop <= high:
                calculation = f"Drop {drop:g} cm in range {low:g}-{high:g} cm"
            else:
                calculation = f"Drop {drop:g} cm outside all ranges, using {low:g}-{high:g} cm"
                warnings.append(
                    f"Drop {drop:g} cm is outside every {name} range, priced at the "
                    f"{low:g}-{high:g} cm band"
                )

        lines = [{"name": name, "cost": round(price, 2), "calculation": calculation}]

        for option_type, option in iter_bundled_options(making_cost.get("bundled_options")):
            lines.append({
                "name": option.get("name") or option_type,
                "cost": 0.0,
                "calculation": self._describe_bundled(option_type, option),
            })
        return round(price, 2), lines

    def _describe_bundled(self, option_type: str, option: dict) -> str:
        parts = [f"Included in making cost ({option_type})"]
        if option.get("affects_fabric_calculation"):
            if option.get("pattern_repeat_factor") is not None:
                parts.append(f"pattern repeat ×{to_number(option['pattern_repeat_factor']):g}")
            if option.get("fabric_waste_factor") is not None:
                parts.append(f"waste +{to_number(option['fabric_waste_factor']) * 100:g}%")
            if option.get("seam_complexity_factor") is not None:
                parts.append(f"seam complexity ×{to_number(option['seam_complexity_factor']):g}")
        return ", ".join(parts)

    def _price_options(self, options: list, rail_width: float, drop: float,
                       fabric_cost: float, warnings: list):
        width_m = rail_width / CM_PER_METER
        width_yd = rail_width / CM_PER_YARD
        drop_m = drop / CM_PER_METER

        total = 0.0
        lines = []
        for option in options:
            name = option.get("name") or option.get("id") or "Option"
            cost_type = option.get("cost_type") or "fixed"
            base = float(to_number(option.get("base_cost")))
            qty = float(to_number(option.get("quantity"))) or 1.0

            if cost_type == "fixed":
                cost = base * qty
                calculation = f"{base:.2f} × {qty:g}"
            elif cost_type == "per-meter":
                cost = base * width_m * qty
                calculation = f"{base:.2f}/m × {width_m:.2f} m × {qty:g}"
            elif cost_type == "per-yard":
                cost = base * width_yd * qty
                calculation = f"{base:.2f}/yd × {width_yd:.2f} yd × {qty:g}"
            elif cost_type == "per-sqm":
                cost = base * width_m * drop_m * qty
                calculation = f"{base:.2f}/m² × {width_m * drop_m:.2f} m² × {qty:g}"
            elif cost_type == "percentage":
                cost = base / 100.0 * fabric_cost
                calculation = f"{base:g}% of fabric cost {fabric_cost:.2f}"
            else:
                cost = base * qty
                calculation = f"{base:.2f} × {qty:g} (unknown cost type '{cost_type}', priced as fixed)"
                warnings.append(f"Option '{name}' has unknown cost type '{cost_type}', priced as fixed")
                logger.warning("Unknown cost_type %r on option %s", cost_type, option.get("id"))

            cost = round(cost, 2)
            total += cost
            lines.append({"name": name, "cost": cost, "calculation": calculation})

        return round(total, 2), lines

    def _build_warnings(self, fabric_usage: dict, adjustments: dict) -> list:
        warnings = []
        seams = fabric_usage.get("seams_required", 0)
        if seams > 0:
            warnings.append(
                f"{seams} seam(s) required, adds {fabric_usage['seam_labor_hours']:.1f} labor hours"
            )
        waste = adjustments.get("waste_factor", 0)
        if waste > self.high_waste_threshold:
            warnings.append(
                f"High waste factor: {waste * 100:.0f}% "
                f"(above {self.high_waste_threshold * 100:.0f}%)"
            )
        return warnings

"""
Price lookup and unit conversion on standard grids.

Lookup rounds UP to the next grid point on both axes and clamps to the
largest column/row past the end of the grid. A size between two columns
is charged at the larger one; it is never priced down.
"""

import logging

logger = logging.getLogger(__name__)

# cm → mm
MM_PER_CM = 10


def _convert_dimension(value: float, from_unit: str, to_unit: str) -> float:
    if from_unit == to_unit:
        return value
    if from_unit == "mm" and to_unit == "cm":
        return value / MM_PER_CM
    if from_unit == "cm" and to_unit == "mm":
        return value * MM_PER_CM
    return value


def _ceiling_index(values: list, target: float) -> int:
    """First index with values[i] >= target, else the last index."""
    for idx, value in enumerate(values):
        if value >= target:
            return idx
    return len(values) - 1


def get_price_from_standard_grid(grid: dict, width: float, drop: float, input_unit: str = "cm"):
    """Price for (width, drop) given in input_unit, or None if the grid can't answer."""
    if not grid or not grid.get("widthColumns") or not grid.get("dropRows"):
        return None

    grid_unit = grid.get("unit", "cm")
    w = _convert_dimension(width, input_unit, grid_unit)
    d = _convert_dimension(drop, input_unit, grid_unit)

    width_idx = _ceiling_index(grid["widthColumns"], w)
    drop_idx = _ceiling_index([row["drop"] for row in grid["dropRows"]], d)

    prices = grid["dropRows"][drop_idx].get("prices") or []
    if width_idx >= len(prices):
        logger.warning("Grid row for drop %s has no price at width column %d",
                       grid["dropRows"][drop_idx]["drop"], width_idx)
        return None
    return prices[width_idx]


def convert_grid_unit(grid: dict, target_unit: str) -> dict:
    """Copy of the grid with widths and drops in target_unit. Prices are unit-free."""
    if grid.get("unit") == target_unit:
        return grid

    factor = MM_PER_CM if target_unit == "mm" else 1 / MM_PER_CM
    converted = {
        "widthColumns": [w * factor for w in grid["widthColumns"]],
        "dropRows": [
            {"drop": row["drop"] * factor, "prices": list(row["prices"])}
            for row in grid["dropRows"]
        ],
        "unit": target_unit,
    }
    for key in ("currency", "version"):
        if grid.get(key) is not None:
            converted[key] = grid[key]
    return converted

"""
Pricing grid shapes, shape detection, and unit inference.

Grids have been stored in several shapes over the years. All of them are
read-only inputs; normalizer.py turns any of them into the standard shape:

    {
        "widthColumns": [100, 150, 200],              # ascending, unique, > 0
        "dropRows": [{"drop": 150, "prices": [..]}],  # ascending by drop
        "unit": "cm",                                 # 'cm' | 'mm'
        "currency": "GBP",                            # optional
        "version": 1,                                 # optional
    }

Legacy shapes:
    A: dropRanges / widthRanges + 2-D prices[drop_idx][width_idx]
    B: widthColumns + dropRows[{drop, prices}], unsorted and/or string values
    C: widthColumns / dropRows as flat scalars + prices dict keyed "w_d"
    D: widths / heights + 2-D prices[height_idx][width_idx]
"""

import enum
import re
from collections.abc import Mapping


GRID_UNITS = ("cm", "mm")

# Largest dimension at or above this is taken to be mm. Window coverings
# are rarely 5 m+ wide or tall, while mm values routinely pass 500.
MM_INFERENCE_THRESHOLD = 500

# Every field that can hold width or drop values across all shapes
DIMENSION_FIELDS = ("widthColumns", "widthRanges", "widths", "dropRows", "dropRanges", "heights")

_LEADING_NUMBER = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)")


class GridFormat(str, enum.Enum):
    STANDARD = "standard"
    LEGACY_A = "legacy_a"
    LEGACY_B = "legacy_b"
    LEGACY_C = "legacy_c"
    LEGACY_D = "legacy_d"
    UNRECOGNIZED = "unrecognized"


def is_number(value) -> bool:
    """True for int/float. bool is an int subclass but never a dimension."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_number(value) -> float:
    """Coerce a grid value to a number. Never raises; unusable input is 0.

    Strings lose everything except digits, '.' and '-' ("£1,250.00" → 1250.0),
    then the leading number is parsed ("12.5.1" → 12.5).
    """
    if is_number(value):
        return value
    if isinstance(value, str):
        cleaned = re.sub(r"[^0-9.\-]", "", value)
        match = _LEADING_NUMBER.match(cleaned)
        if match:
            return float(match.group(0))
    return 0


def format_key_number(value) -> str:
    """Render a number the way it appears in a price-dict key: 100, not 100.0."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _is_list(value) -> bool:
    return isinstance(value, list)


def is_standard_format(data) -> bool:
    if not isinstance(data, Mapping):
        return False

    widths = data.get("widthColumns")
    if not _is_list(widths) or not all(is_number(w) for w in widths):
        return False

    rows = data.get("dropRows")
    if not _is_list(rows):
        return False
    for row in rows:
        if not isinstance(row, Mapping) or not is_number(row.get("drop")):
            return False
        prices = row.get("prices")
        if not _is_list(prices) or not all(is_number(p) for p in prices):
            return False

    return data.get("unit") in GRID_UNITS


def is_legacy_format_a(data) -> bool:
    if not isinstance(data, Mapping):
        return False
    prices = data.get("prices")
    return (
        _is_list(data.get("dropRanges"))
        and _is_list(data.get("widthRanges"))
        and _is_list(prices)
        and len(prices) > 0
        and _is_list(prices[0])
    )


def is_legacy_format_b(data) -> bool:
    if not isinstance(data, Mapping):
        return False
    rows = data.get("dropRows")
    return (
        _is_list(data.get("widthColumns"))
        and _is_list(rows)
        and len(rows) > 0
        and isinstance(rows[0], Mapping)
        and "drop" in rows[0]
        and "prices" in rows[0]
    )


def is_legacy_format_c(data) -> bool:
    if not isinstance(data, Mapping):
        return False
    rows = data.get("dropRows")
    return (
        _is_list(data.get("widthColumns"))
        and _is_list(rows)
        and len(rows) > 0
        and rows[0] is not None
        and not isinstance(rows[0], (Mapping, list))
        and isinstance(data.get("prices"), Mapping)
    )


def is_legacy_format_d(data) -> bool:
    if not isinstance(data, Mapping):
        return False
    return _is_list(data.get("widths")) and _is_list(data.get("heights")) and _is_list(data.get("prices"))


# Order matters: B and C share field names, and standard grids also look like B.
_DETECTORS = (
    (GridFormat.STANDARD, is_standard_format),
    (GridFormat.LEGACY_A, is_legacy_format_a),
    (GridFormat.LEGACY_B, is_legacy_format_b),
    (GridFormat.LEGACY_C, is_legacy_format_c),
    (GridFormat.LEGACY_D, is_legacy_format_d),
)


def detect_grid_format(data) -> GridFormat:
    """Classify a grid payload. Returns exactly one GridFormat."""
    for grid_format, detector in _DETECTORS:
        if detector(data):
            return grid_format
    return GridFormat.UNRECOGNIZED


def infer_unit(data) -> str:
    """Explicit 'cm'/'mm' wins; otherwise guess from the largest dimension.

    Heuristic only: a mm grid whose every dimension is under 500 is read as cm.
    Replace with the stored unit once every grid source declares one.
    """
    if isinstance(data, Mapping) and data.get("unit") in GRID_UNITS:
        return data["unit"]

    max_value = 0
    if isinstance(data, Mapping):
        for field in DIMENSION_FIELDS:
            values = data.get(field)
            if not _is_list(values):
                continue
            for value in values:
                if isinstance(value, Mapping):
                    value = value.get("drop")
                num = to_number(value)
                if num > max_value:
                    max_value = num

    return "mm" if max_value >= MM_INFERENCE_THRESHOLD else "cm"

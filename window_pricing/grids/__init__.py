"""
Pricing grid engine.

Detect → normalize → validate → look up. Grids are normalized lazily on
every read; the stored payload is never rewritten.
"""

from .formats import GridFormat, detect_grid_format, infer_unit, is_standard_format, to_number
from .lookup import convert_grid_unit, get_price_from_standard_grid
from .normalizer import normalize_grid_data
from .validator import validate_standard_grid

__all__ = [
    "GridFormat",
    "convert_grid_unit",
    "detect_grid_format",
    "get_price_from_standard_grid",
    "infer_unit",
    "is_standard_format",
    "normalize_grid_data",
    "to_number",
    "validate_standard_grid",
]

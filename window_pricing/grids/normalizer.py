"""
Grid normalizer: any known grid shape in, standard grid out.

One normalizer per legacy shape, dispatched from normalize_grid_data() via
detect_grid_format(). Inputs are never mutated. Failures never raise: they
are logged and come back as None so callers can treat the grid as absent.
"""

import logging
from collections.abc import Mapping

from .formats import (
    GridFormat,
    detect_grid_format,
    format_key_number,
    infer_unit,
    to_number,
)

logger = logging.getLogger(__name__)

GRID_VERSION = 1


def _width_order(widths: list) -> list:
    """Indices that put widths in ascending order (stable for ties)."""
    return sorted(range(len(widths)), key=lambda i: widths[i])


def _aligned_prices(raw_prices, order: list) -> list:
    """Reorder a source price row to follow the sorted width columns.

    Cells beyond the width count are kept at the end so a malformed row
    still fails validation instead of being silently trimmed.
    """
    if not isinstance(raw_prices, list):
        return []
    aligned = [to_number(raw_prices[i]) for i in order if i < len(raw_prices)]
    aligned.extend(to_number(p) for p in raw_prices[len(order):])
    return aligned


def _build_grid(widths: list, rows: list, unit: str, source: Mapping) -> dict:
    rows.sort(key=lambda r: r["drop"])
    grid = {
        "widthColumns": sorted(widths),
        "dropRows": rows,
        "unit": unit,
        "version": GRID_VERSION,
    }
    if isinstance(source.get("currency"), str):
        grid["currency"] = source["currency"]
    return grid


def _rows_from_matrix(drops: list, matrix: list, order: list) -> list:
    rows = []
    for idx, drop in enumerate(drops):
        raw = matrix[idx] if idx < len(matrix) else []
        rows.append({"drop": to_number(drop), "prices": _aligned_prices(raw, order)})
    return rows


def normalize_legacy_a(data: Mapping, unit: str) -> dict:
    """dropRanges / widthRanges + prices[drop_idx][width_idx]."""
    widths = [to_number(w) for w in data["widthRanges"]]
    order = _width_order(widths)
    rows = _rows_from_matrix(data["dropRanges"], data["prices"], order)
    return _build_grid(widths, rows, unit, data)


def normalize_legacy_b(data: Mapping, unit: str) -> dict:
    """widthColumns + dropRows[{drop, prices}], possibly unsorted / string-typed."""
    widths = [to_number(w) for w in data["widthColumns"]]
    order = _width_order(widths)
    rows = []
    for row in data["dropRows"]:
        if isinstance(row, Mapping):
            rows.append({"drop": to_number(row.get("drop")),
                         "prices": _aligned_prices(row.get("prices"), order)})
        else:
            rows.append({"drop": to_number(row), "prices": []})
    return _build_grid(widths, rows, unit, data)


def _price_key_candidates(width_token, width: float, drop_token, drop: float) -> list:
    w = format_key_number(width)
    d = format_key_number(drop)
    keys = [f"{w}_{d}", f"{w}-{d}", f"{d}_{w}"]
    # Keys written from the raw strings ("100.0_200", " 100_200") are probed second
    raw_w, raw_d = str(width_token).strip(), str(drop_token).strip()
    if (raw_w, raw_d) != (w, d):
        keys.extend([f"{raw_w}_{raw_d}", f"{raw_w}-{raw_d}", f"{raw_d}_{raw_w}"])
    return keys


def normalize_legacy_c(data: Mapping, unit: str) -> dict:
    """Flat widthColumns / dropRows + prices dict keyed "w_d" (or "w-d", "d_w")."""
    price_map = data["prices"]
    width_tokens = list(data["widthColumns"])
    widths = [to_number(w) for w in width_tokens]
    order = _width_order(widths)

    rows = []
    for drop_token in data["dropRows"]:
        drop = to_number(drop_token)
        prices = []
        for idx in order:
            value = 0
            for key in _price_key_candidates(width_tokens[idx], widths[idx], drop_token, drop):
                if price_map.get(key) is not None:
                    value = price_map[key]
                    break
            prices.append(to_number(value))
        rows.append({"drop": drop, "prices": prices})
    return _build_grid(widths, rows, unit, data)


def normalize_legacy_d(data: Mapping, unit: str) -> dict:
    """widths / heights + prices[height_idx][width_idx]."""
    widths = [to_number(w) for w in data["widths"]]
    order = _width_order(widths)
    rows = _rows_from_matrix(data["heights"], data["prices"], order)
    return _build_grid(widths, rows, unit, data)


def _first_list(data: Mapping, fields: tuple) -> list:
    for field in fields:
        value = data.get(field)
        if isinstance(value, list) and value:
            return value
    return []


def normalize_best_effort(data: Mapping, unit: str):
    """Last resort for mixed-up payloads, e.g. `widths` next to object `dropRows`."""
    logger.warning("Unrecognized pricing grid format, attempting best-effort parse")
    possible_widths = _first_list(data, ("widthColumns", "widthRanges", "widths"))
    possible_drops = _first_list(data, ("dropRows", "dropRanges", "heights"))
    possible_prices = data.get("prices")

    if not possible_widths or not possible_drops:
        logger.warning("Could not normalize pricing grid: no width/drop arrays found")
        return None

    widths = [to_number(w) for w in possible_widths]
    order = _width_order(widths)

    if isinstance(possible_drops[0], Mapping) and "drop" in possible_drops[0]:
        rows = []
        for row in possible_drops:
            if isinstance(row, Mapping):
                rows.append({"drop": to_number(row.get("drop")),
                             "prices": _aligned_prices(row.get("prices"), order)})
    elif isinstance(possible_prices, list) and possible_prices and isinstance(possible_prices[0], list):
        rows = _rows_from_matrix(possible_drops, possible_prices, order)
    else:
        logger.warning("Could not determine pricing grid price structure")
        return None

    return _build_grid(widths, rows, unit, data)


_NORMALIZERS = {
    GridFormat.LEGACY_A: normalize_legacy_a,
    GridFormat.LEGACY_B: normalize_legacy_b,
    GridFormat.LEGACY_C: normalize_legacy_c,
    GridFormat.LEGACY_D: normalize_legacy_d,
    GridFormat.UNRECOGNIZED: normalize_best_effort,
}


def normalize_grid_data(data):
    """
    Normalize any grid payload to the standard shape.

    Returns the standard grid dict, or None when nothing usable can be
    extracted. Already-standard input is returned unchanged.
    """
    if not isinstance(data, Mapping):
        logger.warning("Invalid pricing grid: expected an object, got %s", type(data).__name__)
        return None

    grid_format = detect_grid_format(data)
    if grid_format == GridFormat.STANDARD:
        return data

    try:
        return _NORMALIZERS[grid_format](data, infer_unit(data))
    except Exception as e:
        logger.error("Error normalizing %s pricing grid: %s", grid_format.value, e)
        return None

"""Structural checks on a standard pricing grid. Pure, never modifies the grid."""


def validate_standard_grid(grid: dict) -> dict:
    """
    Returns {"valid": bool, "errors": [str]}.

    Zero and negative prices are allowed, they are "no charge" cells.
    """
    errors = []
    widths = list(grid.get("widthColumns") or [])
    rows = list(grid.get("dropRows") or [])

    if not widths:
        errors.append("No width columns defined")
    if not rows:
        errors.append("No drop rows defined")

    for idx, row in enumerate(rows):
        prices = row.get("prices") or []
        if len(prices) != len(widths):
            errors.append(
                f"Row {idx} (drop {row.get('drop')}) has {len(prices)} prices "
                f"but expected {len(widths)}"
            )

    drops = [row.get("drop") for row in rows]
    if len(set(drops)) != len(drops):
        errors.append("Duplicate drop values found")

    if len(set(widths)) != len(widths):
        errors.append("Duplicate width values found")

    if any(w <= 0 for w in widths):
        errors.append("Width values must be positive")
    if any(d is None or d <= 0 for d in drops):
        errors.append("Drop values must be positive")

    return {"valid": not errors, "errors": errors}

"""
Integrated fabric calculation: measurements in, priced result out.

    params → cache lookup by hash
           → (miss) window covering, making cost + bundled options, selected options
           → fabric usage → cost aggregation
           → cache write → result

Only an unknown window covering aborts the calculation. Missing making costs
or options fall back to default fabric factors and set resolved_with_defaults.
Cache and store hiccups are logged and absorbed.
"""

import logging
from typing import Optional

from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from ..calculation_cache import CalculationCache, calculation_hash
from ..config import Settings, settings as default_settings
from ..option_store import OptionStore
from .cost_aggregator import CostAggregator
from .fabric_usage import (
    calculate_fabric_usage,
    compare_orientations,
    iter_bundled_options,
    resolve_fabric_adjustments,
)

logger = logging.getLogger(__name__)


class WindowCoveringNotFound(LookupError):
    """The window covering being priced does not exist. Nothing sane to default to."""

    def __init__(self, window_covering_id: str):
        super().__init__(f"Window covering not found: {window_covering_id}")
        self.window_covering_id = window_covering_id


async def _read_cache(cache: Optional[CalculationCache], key: str):
    if cache is None:
        return None
    try:
        return await run_in_threadpool(cache.get, key)
    except Exception as e:
        logger.warning("Calculation cache read failed for %s, treating as miss: %s", key, e)
        return None


async def _write_cache(cache: Optional[CalculationCache], key: str, params: dict, result: dict):
    if cache is None:
        return
    try:
        await run_in_threadpool(cache.upsert, key, params, result)
    except Exception as e:
        logger.warning("Calculation cache write failed for %s: %s", key, e)


async def _fetch_making_cost(store: OptionStore, making_cost_id: str, warnings: list):
    try:
        making_cost = await run_in_threadpool(store.get_making_cost, making_cost_id)
    except Exception as e:
        logger.warning("Making cost fetch failed for %s: %s", making_cost_id, e)
        warnings.append(f"Making cost {making_cost_id} could not be loaded, using default fabric factors")
        return None
    if making_cost is None:
        warnings.append(f"Making cost {making_cost_id} not found, using default fabric factors")
    return making_cost


async def _fetch_options(store: OptionStore, option_ids: list, warnings: list):
    """Returns (options, all_found)."""
    if not option_ids:
        return [], True
    try:
        options = await run_in_threadpool(store.get_options, option_ids)
    except Exception as e:
        logger.warning("Option fetch failed for %s: %s", option_ids, e)
        warnings.append("Selected options could not be loaded, priced without them")
        return [], False

    found = {o.get("id") for o in options}
    missing = [i for i in option_ids if i not in found]
    if missing:
        warnings.append(f"Options not found: {', '.join(missing)}")
    return options, not missing


def _bundled_option_ids(making_cost: Optional[dict]) -> set:
    if not making_cost:
        return set()
    return {
        option.get("option_id")
        for _, option in iter_bundled_options(making_cost.get("bundled_options"))
        if option.get("option_id")
    }


async def calculate_integrated_fabric_usage(params, store: OptionStore,
                                            cache: Optional[CalculationCache] = None,
                                            settings: Optional[Settings] = None) -> dict:
    """
    Calculate fabric usage and total cost for one window covering.

    Args:
        params: FabricCalculationParams (or an equivalent dict)
        store: where window coverings, making costs, and options are read from
        cache: optional calculation cache (read-through, write-through)
        settings: overrides for rates and default factors

    Returns:
        IntegratedCalculationResult dict

    Raises:
        WindowCoveringNotFound: window_covering_id does not exist
    """
    settings = settings or default_settings
    if isinstance(params, BaseModel):
        params = params.model_dump()

    cache_key = calculation_hash(params)
    cached = await _read_cache(cache, cache_key)
    if cached is not None:
        logger.debug("Calculation cache hit %s", cache_key)
        return {**cached, "from_cache": True, "cache_key": cache_key}

    window_covering = await run_in_threadpool(store.get_window_covering, params["window_covering_id"])
    if window_covering is None:
        raise WindowCoveringNotFound(params["window_covering_id"])

    warnings = []
    measurements = params["measurements"]
    fabric_details = params["fabric_details"]

    making_cost = None
    if params.get("making_cost_id"):
        making_cost = await _fetch_making_cost(store, params["making_cost_id"], warnings)

    selected, all_options_found = await _fetch_options(store, params.get("selected_options") or [], warnings)
    bundled_ids = _bundled_option_ids(making_cost)
    additional = [o for o in selected if o.get("id") not in bundled_ids]

    adjustments = resolve_fabric_adjustments(
        making_cost.get("bundled_options") if making_cost else None,
        default_fullness=settings.DEFAULT_FULLNESS_RATIO,
        default_waste=settings.DEFAULT_WASTE_FACTOR,
    )
    warnings.extend(adjustments.pop("warnings", []))
    usage_kwargs = {
        "rail_width": measurements["rail_width"],
        "drop": measurements["drop"],
        "pooling": measurements.get("pooling") or 0.0,
        "fabric_width": fabric_details["fabric_width"],
        "fullness_ratio": adjustments["fullness_ratio"],
        "waste_factor": adjustments["waste_factor"],
        "pattern_repeat_factor": adjustments["pattern_repeat_factor"],
        "seam_complexity_factor": adjustments["seam_complexity_factor"],
        "hem_allowance_cm": settings.HEM_ALLOWANCE_CM,
    }
    usage = calculate_fabric_usage(roll_direction=fabric_details.get("roll_direction"), **usage_kwargs)
    comparison = compare_orientations(fabric_details.get("fabric_cost_per_yard") or 0.0, **usage_kwargs)
    warnings.extend(usage["warnings"])

    aggregator = CostAggregator(
        hourly_rate=window_covering.get("labor_rate") or settings.LABOR_RATE_DEFAULT,
        high_waste_threshold=settings.HIGH_WASTE_WARNING_THRESHOLD,
    )
    priced = aggregator.aggregate(
        measurements, fabric_details, usage, adjustments,
        making_cost=making_cost, additional_options=additional,
    )
    warnings.extend(priced["warnings"])

    result = {
        "fabric_usage": {
            "yards": usage["yards"],
            "meters": usage["meters"],
            "orientation": usage["orientation"],
            "seams_required": usage["seams_required"],
            "widths_required": usage["widths_required"],
            "seam_labor_hours": usage["seam_labor_hours"],
        },
        "costs": priced["costs"],
        "breakdown": priced["breakdown"],
        "warnings": warnings,
        "labor_hours": priced["labor_hours"],
        "adjustments": dict(adjustments),
        "orientation_comparison": comparison,
        "resolved_with_defaults": making_cost is None or not all_options_found,
        "from_cache": False,
        "cache_key": cache_key,
    }

    await _write_cache(cache, cache_key, params, result)
    return result

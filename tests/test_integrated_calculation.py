"""
Integrated fabric calculation tests: store + cache + calculators together.

Tests:
1-3.   Full calculation (bundled options, adjustments, result shape)
4-9.   Missing or unreadable records (defaults flag, warnings, unknown window covering)
10-15. Calculation cache (hits, stale versions, TTL expiry, failing cache, key shape)

Uses the in-memory store and cache; async entry point driven by asyncio.run.
"""

import asyncio
from datetime import datetime, timedelta

import pytest

from window_pricing import models
from window_pricing.calculation_cache import (
    InMemoryCalculationCache,
    SqlCalculationCache,
    calculation_hash,
)
from window_pricing.calculators.integrated import (
    WindowCoveringNotFound,
    calculate_integrated_fabric_usage,
)
from window_pricing.config import Settings
from window_pricing.option_store import InMemoryOptionStore
from window_pricing.schemas import FabricCalculationParams


# --- Test fixtures ---

def _store():
    return InMemoryOptionStore(
        window_coverings={
            "wc-curtain": {"id": "wc-curtain", "name": "Lined curtain", "description": None,
                           "labor_rate": 30.0},
            "wc-blind": {"id": "wc-blind", "name": "Roman blind", "description": None,
                         "labor_rate": None},
        },
        making_costs={
            "mc-pinch": {
                "id": "mc-pinch",
                "window_covering_id": "wc-curtain",
                "name": "Pinch pleat making",
                "drop_ranges": [
                    {"min": 0, "max": 250, "price": 120},
                    {"min": 251, "max": 400, "price": 160},
                ],
                "bundled_options": {
                    "heading": [{"option_id": "opt-pinch", "name": "Pinch pleat",
                                 "affects_fabric_calculation": True,
                                 "pattern_repeat_factor": 1.0, "fabric_waste_factor": 0.05}],
                    "hardware": [{"option_id": "opt-track", "name": "Track",
                                  "affects_fabric_calculation": False}],
                },
            },
        },
        options={
            "opt-track": {"id": "opt-track", "name": "Track", "option_type": "hardware",
                          "cost_type": "fixed", "base_cost": 40.0, "quantity": 1},
            "opt-tieback": {"id": "opt-tieback", "name": "Tieback", "option_type": "other",
                            "cost_type": "fixed", "base_cost": 15.0, "quantity": 2},
        },
    )


def _params(**overrides):
    params = {
        "window_covering_id": "wc-curtain",
        "making_cost_id": "mc-pinch",
        "measurements": {"rail_width": 300, "drop": 220, "pooling": 0},
        "selected_options": ["opt-track", "opt-tieback"],
        "fabric_details": {"fabric_width": 137, "fabric_cost_per_yard": 20.0,
                           "roll_direction": "vertical"},
    }
    params.update(overrides)
    return params


def _run(params, store=None, cache=None, settings=None):
    return asyncio.run(calculate_integrated_fabric_usage(params, store or _store(), cache, settings))


class ExplodingCache:
    """Cache whose every call fails."""

    def get(self, key):
        raise RuntimeError("cache offline")

    def upsert(self, key, params, result):
        raise RuntimeError("cache offline")


class UnreachableStore(InMemoryOptionStore):
    """Window coverings load; making cost and option lookups fail."""

    def get_making_cost(self, making_cost_id):
        raise ConnectionError("store timeout")

    def get_options(self, option_ids):
        raise ConnectionError("store timeout")


# ============================================================
# 1-3. Full calculation
# ============================================================

def test_full_calculation():
    result = _run(_params())

    # Heading adds its waste to fullness; declared waste replaces the 10% default
    assert result["adjustments"]["fullness_ratio"] == pytest.approx(2.55)
    assert result["adjustments"]["waste_factor"] == pytest.approx(0.05)

    usage = result["fabric_usage"]
    assert usage["widths_required"] == 6
    assert usage["seams_required"] == 5
    assert usage["meters"] == 15.5
    assert usage["yards"] == 16.9

    costs = result["costs"]
    assert costs["fabric_cost"] == pytest.approx(16.9 * 20.0)
    assert costs["making_cost"] == 120
    assert costs["additional_options_cost"] == 30.0
    assert result["resolved_with_defaults"] is False
    assert result["from_cache"] is False


def test_bundled_options_are_not_charged_again():
    result = _run(_params())
    additional = [line["name"] for line in result["breakdown"]["additional_options"]]
    bundled = [line["name"] for line in result["breakdown"]["making_cost_options"]]
    assert additional == ["Tieback"]
    assert bundled == ["Pinch pleat making", "Pinch pleat", "Track"]


def test_accepts_params_model_and_labor_rate_fallback():
    settings = Settings(LABOR_RATE_DEFAULT=40.0)
    params = FabricCalculationParams(**_params(window_covering_id="wc-blind", making_cost_id=None,
                                               selected_options=[]))
    result = _run(params, settings=settings)
    assert result["costs"]["labor_cost"] == pytest.approx(result["labor_hours"] * 40.0)
    assert result["orientation_comparison"]["recommendation"] in ("horizontal", "vertical")
    # No making cost requested is still "resolved with defaults"
    assert result["resolved_with_defaults"] is True


# ============================================================
# 4-9. Missing or unreadable records
# ============================================================

def test_missing_making_cost_uses_defaults():
    result = _run(_params(making_cost_id="mc-gone"))
    assert result["resolved_with_defaults"] is True
    assert result["adjustments"]["fullness_ratio"] == 2.5
    assert result["adjustments"]["waste_factor"] == pytest.approx(0.10)
    assert result["costs"]["making_cost"] == 0.0
    assert any("mc-gone" in w for w in result["warnings"])
    # Without the making cost the track is no longer bundled, so it is charged
    additional = [line["name"] for line in result["breakdown"]["additional_options"]]
    assert additional == ["Track", "Tieback"]


def test_missing_option_flags_defaults():
    result = _run(_params(selected_options=["opt-tieback", "opt-ghost"]))
    assert result["resolved_with_defaults"] is True
    assert "Options not found: opt-ghost" in result["warnings"]
    assert result["costs"]["additional_options_cost"] == 30.0


def test_missing_measurement_warns_and_still_prices():
    params = _params(fabric_details={"fabric_width": 0, "fabric_cost_per_yard": 20.0})
    result = _run(params)
    assert result["fabric_usage"]["yards"] == 0.0
    assert result["costs"]["fabric_cost"] == 0.0
    assert any("fabric width" in w for w in result["warnings"])


def test_unknown_window_covering_raises():
    with pytest.raises(WindowCoveringNotFound) as exc:
        _run(_params(window_covering_id="wc-nope"))
    assert exc.value.window_covering_id == "wc-nope"


def test_failing_store_lookups_degrade_to_defaults(caplog):
    store = UnreachableStore(window_coverings=_store().window_coverings)
    result = _run(_params(), store=store)

    assert result["resolved_with_defaults"] is True
    assert result["adjustments"]["fullness_ratio"] == 2.5
    assert result["costs"]["making_cost"] == 0.0
    assert result["costs"]["additional_options_cost"] == 0.0
    assert "Making cost mc-pinch could not be loaded, using default fabric factors" in result["warnings"]
    assert "Selected options could not be loaded, priced without them" in result["warnings"]
    assert not any("not found" in w for w in result["warnings"])
    assert "store timeout" in caplog.text


def test_unreadable_bundled_waste_factor_still_prices():
    store = _store()
    heading = store.making_costs["mc-pinch"]["bundled_options"]["heading"][0]
    heading["fabric_waste_factor"] = "5%"

    result = _run(_params(), store=store)
    assert result["adjustments"]["waste_factor"] == pytest.approx(0.10)
    assert "warnings" not in result["adjustments"]
    assert "Ignoring unreadable waste factor '5%' on Pinch pleat" in result["warnings"]
    assert result["costs"]["making_cost"] == 120


# ============================================================
# 10-15. Calculation cache
# ============================================================

def test_repeat_request_served_from_cache():
    cache = InMemoryCalculationCache()
    store = _store()
    first = _run(_params(), store=store, cache=cache)

    # Served from cache even after the source record disappears
    del store.window_coverings["wc-curtain"]
    second = _run(_params(), store=store, cache=cache)

    assert second["from_cache"] is True
    assert second["cache_key"] == first["cache_key"]
    assert second["costs"] == first["costs"]
    assert len(cache.entries) == 1


def test_stale_cache_version_recalculates():
    cache = InMemoryCalculationCache(version=1)
    _run(_params(), cache=cache)
    cache.version = 2
    result = _run(_params(), cache=cache)
    assert result["from_cache"] is False
    assert cache.entries[result["cache_key"]]["version"] == 2


def test_expired_entry_recalculates():
    cache = InMemoryCalculationCache(ttl_hours=1)
    first = _run(_params(), cache=cache)
    assert _run(_params(), cache=cache)["from_cache"] is True

    cache.entries[first["cache_key"]]["stored_at"] -= timedelta(hours=2)
    result = _run(_params(), cache=cache)
    assert result["from_cache"] is False


def test_sql_cache_ttl_and_version(db):
    cache = SqlCalculationCache(db, version=1, ttl_hours=1)
    first = _run(_params(), cache=cache)
    assert _run(_params(), cache=cache)["from_cache"] is True

    row = db.get(models.FabricCalculationCache, first["cache_key"])
    row.updated_at = datetime.utcnow() - timedelta(hours=2)
    db.commit()
    assert _run(_params(), cache=cache)["from_cache"] is False

    # The recalculation overwrote the entry, so it is fresh again
    assert _run(_params(), cache=cache)["from_cache"] is True
    assert db.query(models.FabricCalculationCache).count() == 1

    assert _run(_params(), cache=SqlCalculationCache(db, version=2))["from_cache"] is False


def test_failing_cache_does_not_fail_calculation(caplog):
    result = _run(_params(), cache=ExplodingCache())
    assert result["from_cache"] is False
    assert result["costs"]["making_cost"] == 120
    assert "cache offline" in caplog.text


def test_calculation_hash_is_stable_and_discriminating():
    a = calculation_hash({"x": 1, "y": [1, 2]})
    b = calculation_hash({"y": [1, 2], "x": 1})
    c = calculation_hash({"x": 1, "y": [1, 3]})
    assert a == b
    assert a != c
    assert len(a) == 32
    assert a.isalnum()

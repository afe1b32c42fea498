"""
Option store: read access to window coverings, making costs, and options.

These records are maintained elsewhere (admin configuration screens). The
calculator only reads them, always as plain dicts, through this interface.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from sqlalchemy.orm import Session

from . import models


def window_covering_to_dict(record: models.WindowCovering) -> dict:
    return {
        "id": record.id,
        "name": record.name,
        "description": record.description,
        "labor_rate": record.labor_rate,
    }


def making_cost_to_dict(record: models.MakingCost) -> dict:
    return {
        "id": record.id,
        "window_covering_id": record.window_covering_id,
        "name": record.name,
        "drop_ranges": record.drop_ranges or [],
        "bundled_options": record.bundled_options or {},
    }


def option_to_dict(record: models.WindowCoveringOption) -> dict:
    return {
        "id": record.id,
        "window_covering_id": record.window_covering_id,
        "name": record.name,
        "option_type": record.option_type,
        "cost_type": record.cost_type,
        "base_cost": record.base_cost,
        "quantity": record.quantity,
        "affects_fabric_calculation": record.affects_fabric_calculation,
        "fabric_waste_factor": record.fabric_waste_factor,
        "pattern_repeat_factor": record.pattern_repeat_factor,
        "seam_complexity_factor": record.seam_complexity_factor,
    }


class OptionStore(ABC):
    """Blocking lookups. Missing records come back as None / are left out."""

    @abstractmethod
    def get_window_covering(self, window_covering_id: str) -> Optional[dict]:
        pass

    @abstractmethod
    def get_making_cost(self, making_cost_id: str) -> Optional[dict]:
        pass

    @abstractmethod
    def get_options(self, option_ids: List[str]) -> List[dict]:
        pass


class SqlOptionStore(OptionStore):

    def __init__(self, db: Session):
        self.db = db

    def get_window_covering(self, window_covering_id: str) -> Optional[dict]:
        record = self.db.get(models.WindowCovering, window_covering_id)
        return window_covering_to_dict(record) if record else None

    def get_making_cost(self, making_cost_id: str) -> Optional[dict]:
        record = self.db.get(models.MakingCost, making_cost_id)
        return making_cost_to_dict(record) if record else None

    def get_options(self, option_ids: List[str]) -> List[dict]:
        if not option_ids:
            return []
        records = self.db.query(models.WindowCoveringOption).filter(
            models.WindowCoveringOption.id.in_(option_ids)
        ).all()
        by_id = {r.id: option_to_dict(r) for r in records}
        # Keep the caller's selection order
        return [by_id[i] for i in option_ids if i in by_id]


class InMemoryOptionStore(OptionStore):
    """Dict-backed store for tests and scripts."""

    def __init__(self, window_coverings: dict = None, making_costs: dict = None,
                 options: dict = None):
        self.window_coverings = window_coverings or {}
        self.making_costs = making_costs or {}
        self.options = options or {}

    def get_window_covering(self, window_covering_id: str) -> Optional[dict]:
        return self.window_coverings.get(window_covering_id)

    def get_making_cost(self, making_cost_id: str) -> Optional[dict]:
        return self.making_costs.get(making_cost_id)

    def get_options(self, option_ids: List[str]) -> List[dict]:
        return [self.options[i] for i in option_ids if i in self.options]

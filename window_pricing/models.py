from sqlalchemy import Column, Integer, String, Float, DateTime, Text, ForeignKey, Boolean, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
import enum
import uuid

from .database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


# --- Enums (stored as VARCHAR so new values don't need a migration) ---

class OptionType(str, enum.Enum):
    HEADING = "heading"
    HARDWARE = "hardware"
    LINING = "lining"
    OTHER = "other"


class CostType(str, enum.Enum):
    FIXED = "fixed"
    PER_METER = "per-meter"
    PER_YARD = "per-yard"
    PER_SQM = "per-sqm"
    PERCENTAGE = "percentage"


# --- Configuration records (maintained by admin screens elsewhere) ---

class WindowCovering(Base):
    """A product being priced: curtain, roman blind, roller blind, etc."""
    __tablename__ = "window_coverings"

    id = Column(String, primary_key=True, default=_uuid)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    labor_rate = Column(Float, nullable=True)  # Falls back to LABOR_RATE_DEFAULT
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    options = relationship("WindowCoveringOption", back_populates="window_covering",
                           cascade="all, delete-orphan")
    making_costs = relationship("MakingCost", back_populates="window_covering",
                                cascade="all, delete-orphan")


class MakingCost(Base):
    """Workroom making charge, banded by drop, with the options it already includes."""
    __tablename__ = "making_costs"

    id = Column(String, primary_key=True, default=_uuid)
    window_covering_id = Column(String, ForeignKey("window_coverings.id"), nullable=True)
    name = Column(String, nullable=False)
    drop_ranges = Column(JSON, default=list)  # [{"min": 0, "max": 150, "price": 45.0}, ...]
    # {"heading": [{option_id, name, affects_fabric_calculation, fabric_waste_factor,
    #               pattern_repeat_factor, seam_complexity_factor}], "hardware": [...], "lining": [...]}
    bundled_options = Column(JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    window_covering = relationship("WindowCovering", back_populates="making_costs")


class WindowCoveringOption(Base):
    """Selectable extra, priced by cost_type unless bundled into the making cost."""
    __tablename__ = "window_covering_options"

    id = Column(String, primary_key=True, default=_uuid)
    window_covering_id = Column(String, ForeignKey("window_coverings.id"), nullable=True)
    name = Column(String, nullable=False)
    option_type = Column(String, default=OptionType.OTHER.value)
    cost_type = Column(String, default=CostType.FIXED.value)
    base_cost = Column(Float, default=0.0)
    quantity = Column(Float, default=1.0)
    affects_fabric_calculation = Column(Boolean, default=False)
    fabric_waste_factor = Column(Float, nullable=True)
    pattern_repeat_factor = Column(Float, nullable=True)
    seam_complexity_factor = Column(Float, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    window_covering = relationship("WindowCovering", back_populates="options")


class PricingGrid(Base):
    """Raw grid payload as uploaded. Normalized on every read, never rewritten."""
    __tablename__ = "pricing_grids"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    grid_data = Column(JSON, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


# --- Calculation cache ---

class FabricCalculationCache(Base):
    """Content-addressed store of integrated calculation results."""
    __tablename__ = "fabric_calculation_cache"

    calculation_hash = Column(String, primary_key=True)
    params_json = Column(JSON, nullable=False)
    result_json = Column(JSON, nullable=False)
    cache_version = Column(Integer, default=1)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

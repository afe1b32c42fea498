from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime

GridUnit = Literal["cm", "mm"]
RollDirection = Literal["horizontal", "vertical"]


# --- Pricing grids ---

class StandardDropRow(BaseModel):
    drop: float
    prices: List[float]


class StandardPricingGrid(BaseModel):
    widthColumns: List[float]
    dropRows: List[StandardDropRow]
    unit: GridUnit
    currency: Optional[str] = None
    version: Optional[int] = None


class GridValidation(BaseModel):
    valid: bool
    errors: List[str] = []


class GridPayload(BaseModel):
    grid_data: Any


class GridLookupRequest(GridPayload):
    width: float
    drop: float
    unit: GridUnit = "cm"


class GridConvertRequest(GridPayload):
    target_unit: GridUnit


class NormalizedGrid(BaseModel):
    format: str
    unit: Optional[GridUnit] = None
    grid: Optional[StandardPricingGrid] = None
    validation: Optional[GridValidation] = None


class GridPriceResponse(BaseModel):
    width: float
    drop: float
    unit: GridUnit
    price: Optional[float] = None


class PricingGridCreate(BaseModel):
    name: str
    grid_data: Dict[str, Any]
    notes: Optional[str] = None


class PricingGridOut(BaseModel):
    id: int
    name: str
    notes: Optional[str] = None
    format: str
    grid: Optional[StandardPricingGrid] = None
    validation: Optional[GridValidation] = None
    created_at: datetime
    updated_at: datetime


# --- Window coverings / making costs / options ---

class WindowCoveringCreate(BaseModel):
    id: Optional[str] = None
    name: str
    description: Optional[str] = None
    labor_rate: Optional[float] = None


class WindowCovering(WindowCoveringCreate):
    id: str
    created_at: datetime
    class Config:
        from_attributes = True


class DropRange(BaseModel):
    min: float
    max: float
    price: float


class BundledOption(BaseModel):
    option_id: Optional[str] = None
    name: str
    affects_fabric_calculation: bool = False
    fabric_waste_factor: Optional[float] = None
    pattern_repeat_factor: Optional[float] = None
    seam_complexity_factor: Optional[float] = None


class MakingCostCreate(BaseModel):
    id: Optional[str] = None
    name: str
    drop_ranges: List[DropRange] = []
    # keyed by option type: heading | hardware | lining
    bundled_options: Dict[str, List[BundledOption]] = {}


class MakingCost(MakingCostCreate):
    id: str
    window_covering_id: Optional[str] = None
    class Config:
        from_attributes = True


class OptionCreate(BaseModel):
    id: Optional[str] = None
    name: str
    option_type: str = "other"
    cost_type: Literal["fixed", "per-meter", "per-yard", "per-sqm", "percentage"] = "fixed"
    base_cost: float = 0.0
    quantity: float = 1.0
    affects_fabric_calculation: bool = False
    fabric_waste_factor: Optional[float] = None
    pattern_repeat_factor: Optional[float] = None
    seam_complexity_factor: Optional[float] = None


class Option(OptionCreate):
    id: str
    window_covering_id: Optional[str] = None
    class Config:
        from_attributes = True


# --- Integrated fabric calculation ---

class Measurements(BaseModel):
    rail_width: float = Field(..., description="cm")
    drop: float = Field(..., description="cm")
    pooling: float = Field(0.0, ge=0, description="cm")


class FabricDetails(BaseModel):
    fabric_width: float = Field(..., description="Roll width in cm")
    fabric_cost_per_yard: float = 0.0
    roll_direction: RollDirection = "vertical"


class FabricCalculationParams(BaseModel):
    window_covering_id: str
    making_cost_id: Optional[str] = None
    measurements: Measurements
    selected_options: List[str] = []
    fabric_details: FabricDetails


class FabricUsage(BaseModel):
    yards: float
    meters: float
    orientation: RollDirection
    seams_required: int
    widths_required: int
    seam_labor_hours: float


class CostSummary(BaseModel):
    fabric_cost: float
    making_cost: float
    additional_options_cost: float
    labor_cost: float
    total_cost: float


class BreakdownItem(BaseModel):
    name: str
    cost: float
    calculation: str


class CalculationBreakdown(BaseModel):
    making_cost_options: List[BreakdownItem] = []
    additional_options: List[BreakdownItem] = []


class IntegratedCalculationResult(BaseModel):
    fabric_usage: FabricUsage
    costs: CostSummary
    breakdown: CalculationBreakdown
    warnings: List[str] = []
    labor_hours: float
    adjustments: Dict[str, Any] = {}
    orientation_comparison: Dict[str, Any] = {}
    resolved_with_defaults: bool
    from_cache: bool = False
    cache_key: str

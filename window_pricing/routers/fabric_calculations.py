"""
Fabric Calculation API.

POST /api/fabric-calculations   Fabric usage + priced breakdown for one window covering
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import schemas
from ..calculation_cache import SqlCalculationCache
from ..calculators.integrated import WindowCoveringNotFound, calculate_integrated_fabric_usage
from ..config import settings
from ..database import get_db
from ..option_store import SqlOptionStore

router = APIRouter(prefix="/fabric-calculations", tags=["fabric-calculations"])


@router.post("", response_model=schemas.IntegratedCalculationResult)
async def calculate(params: schemas.FabricCalculationParams, db: Session = Depends(get_db)):
    """
    Run the integrated calculation. Identical requests are served from the
    calculation cache. Missing making costs or options still produce a
    result (resolved_with_defaults=true); an unknown window covering is a 404.
    """
    cache = SqlCalculationCache(
        db,
        version=settings.CALCULATION_CACHE_VERSION,
        ttl_hours=settings.CALCULATION_CACHE_TTL_HOURS,
    )
    try:
        return await calculate_integrated_fabric_usage(params, SqlOptionStore(db), cache)
    except WindowCoveringNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

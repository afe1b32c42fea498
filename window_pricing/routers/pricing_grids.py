"""
Pricing Grid API: normalize, validate, look up, and store pricing grids.

POST /api/pricing-grids/normalize     Any grid payload → standard grid + validation
POST /api/pricing-grids/validate      Validate a (normalized) grid payload
POST /api/pricing-grids/lookup        Price for width × drop on an ad-hoc payload
POST /api/pricing-grids/convert       Standard grid in another unit
POST /api/pricing-grids               Store a raw grid payload
GET  /api/pricing-grids               List stored grids, normalized
GET  /api/pricing-grids/{id}          One stored grid, normalized on read
GET  /api/pricing-grids/{id}/price    Price lookup on a stored grid
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from ..grids import (
    convert_grid_unit,
    detect_grid_format,
    get_price_from_standard_grid,
    normalize_grid_data,
    validate_standard_grid,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pricing-grids", tags=["pricing-grids"])


def _normalize_or_422(grid_data) -> dict:
    grid = normalize_grid_data(grid_data)
    if grid is None:
        raise HTTPException(status_code=422, detail="Pricing grid could not be normalized")
    return grid


def _grid_out(record: models.PricingGrid) -> dict:
    grid = normalize_grid_data(record.grid_data)
    return {
        "id": record.id,
        "name": record.name,
        "notes": record.notes,
        "format": detect_grid_format(record.grid_data).value,
        "grid": grid,
        "validation": validate_standard_grid(grid) if grid else None,
        "created_at": record.created_at,
        "updated_at": record.updated_at,
    }


def _get_record(grid_id: int, db: Session) -> models.PricingGrid:
    record = db.get(models.PricingGrid, grid_id)
    if not record:
        raise HTTPException(status_code=404, detail="Pricing grid not found")
    return record


@router.post("/normalize", response_model=schemas.NormalizedGrid)
def normalize(payload: schemas.GridPayload):
    """Detect the payload's shape and return it in standard form.

    An unusable payload is not an error here; grid comes back null.
    """
    grid = normalize_grid_data(payload.grid_data)
    return {
        "format": detect_grid_format(payload.grid_data).value,
        "unit": grid["unit"] if grid else None,
        "grid": grid,
        "validation": validate_standard_grid(grid) if grid else None,
    }


@router.post("/validate", response_model=schemas.GridValidation)
def validate(payload: schemas.GridPayload):
    return validate_standard_grid(_normalize_or_422(payload.grid_data))


@router.post("/lookup", response_model=schemas.GridPriceResponse)
def lookup(request: schemas.GridLookupRequest):
    grid = _normalize_or_422(request.grid_data)
    return {
        "width": request.width,
        "drop": request.drop,
        "unit": request.unit,
        "price": get_price_from_standard_grid(grid, request.width, request.drop, request.unit),
    }


@router.post("/convert", response_model=schemas.StandardPricingGrid)
def convert(request: schemas.GridConvertRequest):
    return convert_grid_unit(_normalize_or_422(request.grid_data), request.target_unit)


@router.post("", response_model=schemas.PricingGridOut)
def create_grid(grid: schemas.PricingGridCreate, db: Session = Depends(get_db)):
    """Store the payload exactly as uploaded. Unusable payloads are rejected."""
    _normalize_or_422(grid.grid_data)
    record = models.PricingGrid(name=grid.name, grid_data=grid.grid_data, notes=grid.notes)
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info("Stored pricing grid %s (%s)", record.id, detect_grid_format(record.grid_data).value)
    return _grid_out(record)


@router.get("", response_model=List[schemas.PricingGridOut])
def list_grids(db: Session = Depends(get_db)):
    return [_grid_out(r) for r in db.query(models.PricingGrid).order_by(models.PricingGrid.id).all()]


@router.get("/{grid_id}", response_model=schemas.PricingGridOut)
def get_grid(grid_id: int, db: Session = Depends(get_db)):
    return _grid_out(_get_record(grid_id, db))


@router.get("/{grid_id}/price", response_model=schemas.GridPriceResponse)
def get_grid_price(grid_id: int, width: float, drop: float, unit: schemas.GridUnit = "cm",
                   db: Session = Depends(get_db)):
    record = _get_record(grid_id, db)
    grid = _normalize_or_422(record.grid_data)
    return {
        "width": width,
        "drop": drop,
        "unit": unit,
        "price": get_price_from_standard_grid(grid, width, drop, unit),
    }

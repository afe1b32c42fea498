from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from .. import models, schemas
from ..database import get_db

router = APIRouter(prefix="/window-coverings", tags=["window-coverings"])


def _get_window_covering(window_covering_id: str, db: Session) -> models.WindowCovering:
    record = db.get(models.WindowCovering, window_covering_id)
    if not record:
        raise HTTPException(status_code=404, detail="Window covering not found")
    return record


@router.post("", response_model=schemas.WindowCovering)
def create_window_covering(window_covering: schemas.WindowCoveringCreate, db: Session = Depends(get_db)):
    data = window_covering.model_dump(exclude_none=True)
    if "id" in data and db.get(models.WindowCovering, data["id"]):
        raise HTTPException(status_code=409, detail="Window covering already exists")
    record = models.WindowCovering(**data)
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@router.get("", response_model=List[schemas.WindowCovering])
def list_window_coverings(db: Session = Depends(get_db)):
    return db.query(models.WindowCovering).order_by(models.WindowCovering.name).all()


@router.get("/{window_covering_id}", response_model=schemas.WindowCovering)
def get_window_covering(window_covering_id: str, db: Session = Depends(get_db)):
    return _get_window_covering(window_covering_id, db)


@router.post("/{window_covering_id}/making-costs", response_model=schemas.MakingCost)
def create_making_cost(window_covering_id: str, making_cost: schemas.MakingCostCreate,
                       db: Session = Depends(get_db)):
    _get_window_covering(window_covering_id, db)
    data = making_cost.model_dump(exclude_none=True)
    record = models.MakingCost(window_covering_id=window_covering_id, **data)
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@router.get("/{window_covering_id}/making-costs", response_model=List[schemas.MakingCost])
def list_making_costs(window_covering_id: str, db: Session = Depends(get_db)):
    return _get_window_covering(window_covering_id, db).making_costs


@router.post("/{window_covering_id}/options", response_model=schemas.Option)
def create_option(window_covering_id: str, option: schemas.OptionCreate, db: Session = Depends(get_db)):
    _get_window_covering(window_covering_id, db)
    record = models.WindowCoveringOption(window_covering_id=window_covering_id,
                                         **option.model_dump(exclude_none=True))
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@router.get("/{window_covering_id}/options", response_model=List[schemas.Option])
def list_options(window_covering_id: str, db: Session = Depends(get_db)):
    return _get_window_covering(window_covering_id, db).options

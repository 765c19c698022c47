# backend/salon/routers/locations.py
"""
Salon locations. A location is retired by clearing is_active, never deleted.
The active-worker cap cannot drop below the workers already active.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.tables import Locations as DBLocations, Workers as DBWorkers
from ..services.scheduling.errors import CapacityError
from ..schemas.locations import (
    LocationCreate,
    LocationUpdate,
    LocationRead,
)

router = APIRouter(prefix="/locations", tags=["locations"])

logger = logging.getLogger(__name__)


@router.get("/", response_model=list[LocationRead])
def list_locations(db: Session = Depends(get_db)):
    return (
        db.query(DBLocations)
        .filter(DBLocations.is_active == 1)
        .order_by(DBLocations.name)
        .all()
    )


@router.get("/{id}", response_model=LocationRead)
def get_location(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBLocations, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.post("/", response_model=LocationRead, status_code=status.HTTP_201_CREATED)
def create_location(
    data: LocationCreate,
    db: Session = Depends(get_db),
):
    obj = DBLocations(**data.model_dump())
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@router.patch("/{id}", response_model=LocationRead)
def update_location(
    id: int,
    data: LocationUpdate,
    db: Session = Depends(get_db),
):
    obj = db.get(DBLocations, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")

    changes = data.model_dump(exclude_unset=True)
    if "is_active" in changes:
        changes["is_active"] = int(changes["is_active"])
    if changes.get("max_active_workers") is not None:
        active = (
            db.query(DBWorkers)
            .filter(DBWorkers.location_id == id, DBWorkers.is_active == 1)
            .count()
        )
        if changes["max_active_workers"] < active:
            raise CapacityError(
                f"Location already has {active} active workers; deactivate some first."
            )

    for field, value in changes.items():
        setattr(obj, field, value)

    db.commit()
    db.refresh(obj)
    logger.info(f"Location updated: id={id}, fields={sorted(changes)}")
    return obj

# backend/salon/routers/workers.py
# PATCH = ALLOWED (activation checks the location's active-worker cap)

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.tables import (
    Appointments as DBAppointments,
    CalendarBlocks as DBCalendarBlocks,
    Locations as DBLocations,
    Workers as DBWorkers,
)
from ..schemas.appointments import AppointmentRead
from ..schemas.availability import WorkerCalendarRead
from ..schemas.blocks import BlockRead
from ..schemas.workers import (
    WorkerCreate,
    WorkerUpdate,
    WorkerRead,
)
from ..services.scheduling.availability import expand_date_range
from ..services.scheduling.errors import CapacityError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/workers", tags=["workers"])
admin_router = APIRouter(prefix="/admin/workers", tags=["workers"])


def ensure_capacity(db: Session, location: DBLocations, exclude_worker_id: int | None = None) -> None:
    """Raise CapacityError when the location already has its maximum of active workers."""
    query = db.query(DBWorkers).filter(
        DBWorkers.location_id == location.id,
        DBWorkers.is_active == 1,
    )
    if exclude_worker_id is not None:
        query = query.filter(DBWorkers.id != exclude_worker_id)

    if query.count() >= location.max_active_workers:
        logger.info(
            f"Active worker cap reached: location_id={location.id}, "
            f"max={location.max_active_workers}"
        )
        raise CapacityError(
            f"Location allows at most {location.max_active_workers} active workers."
        )


# ---------------------------------------------------------------------
# Base CRUD
# ---------------------------------------------------------------------

@router.get("/", response_model=list[WorkerRead])
def list_workers(
    location_id: int | None = None,
    db: Session = Depends(get_db),
):
    query = db.query(DBWorkers).filter(DBWorkers.is_active == 1)
    if location_id is not None:
        query = query.filter(DBWorkers.location_id == location_id)
    return query.order_by(DBWorkers.name).all()


@router.get("/{id}", response_model=WorkerRead)
def get_worker(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBWorkers, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.post("/", response_model=WorkerRead, status_code=status.HTTP_201_CREATED)
def create_worker(
    data: WorkerCreate,
    db: Session = Depends(get_db),
):
    location = db.get(DBLocations, data.location_id)
    if not location:
        raise HTTPException(status_code=404, detail="Location not found")
    if data.is_active:
        ensure_capacity(db, location)

    obj = DBWorkers(**{**data.model_dump(), "is_active": int(data.is_active)})
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@router.patch("/{id}", response_model=WorkerRead)
def update_worker(
    id: int,
    data: WorkerUpdate,
    db: Session = Depends(get_db),
):
    obj = db.get(DBWorkers, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")

    changes = data.model_dump(exclude_unset=True)
    if "is_active" in changes:
        if changes["is_active"] and not obj.is_active:
            ensure_capacity(db, obj.location, exclude_worker_id=obj.id)
        changes["is_active"] = int(changes["is_active"])

    for field, value in changes.items():
        setattr(obj, field, value)

    db.commit()
    db.refresh(obj)
    return obj


# ---------------------------------------------------------------------
# Admin: worker calendar
# ---------------------------------------------------------------------

@admin_router.get("/{worker_id}/calendar", response_model=WorkerCalendarRead)
def get_worker_calendar(
    worker_id: int,
    date_from: str = Query(..., alias="from"),
    date_to: str = Query(..., alias="to"),
    db: Session = Depends(get_db),
):
    """Appointments (all statuses) and blocks of a worker over a date range."""
    expand_date_range(date_from, date_to)

    appointments = (
        db.query(DBAppointments)
        .filter(
            DBAppointments.worker_id == worker_id,
            DBAppointments.date >= date_from,
            DBAppointments.date <= date_to,
        )
        .order_by(DBAppointments.date, DBAppointments.start_time)
        .all()
    )
    blocks = (
        db.query(DBCalendarBlocks)
        .filter(
            DBCalendarBlocks.worker_id == worker_id,
            DBCalendarBlocks.date >= date_from,
            DBCalendarBlocks.date <= date_to,
        )
        .order_by(DBCalendarBlocks.date, DBCalendarBlocks.start_time)
        .all()
    )

    return WorkerCalendarRead(
        worker_id=worker_id,
        date_from=date_from,
        date_to=date_to,
        appointments=[AppointmentRead.model_validate(a) for a in appointments],
        blocks=[BlockRead.model_validate(b) for b in blocks],
    )

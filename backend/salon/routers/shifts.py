# backend/salon/routers/shifts.py
"""
Shift endpoints.

GET  /worker-shifts                  - public: a worker's shifts over a range
GET  /shift-settings/{location_id}   - morning/afternoon windows
PUT  /shift-settings/{location_id}   - replace them (validated as a whole)
POST /shifts/week                    - upsert a week plan
POST /shifts/swap                    - exchange two workers' shifts on a date
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.tables import (
    Locations as DBLocations,
    ShiftSettings as DBShiftSettings,
    WorkerShifts as DBWorkerShifts,
)
from ..schemas.shifts import (
    ShiftSettingsRead,
    ShiftSettingsWrite,
    ShiftSwapRequest,
    ShiftSwapResult,
    WeekPlanRequest,
    WeekPlanResult,
    WorkerShiftRead,
)
from ..services.scheduling import ShiftAssignment, plan_week, swap_shifts
from ..services.scheduling.availability import expand_date_range
from ..services.scheduling.shifts import validate_shift_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["shifts"])


@router.get("/worker-shifts", response_model=list[WorkerShiftRead])
def list_worker_shifts(
    location_id: int,
    worker_id: int,
    date_from: str = Query(..., alias="from"),
    date_to: str = Query(..., alias="to"),
    db: Session = Depends(get_db),
):
    expand_date_range(date_from, date_to)
    return (
        db.query(DBWorkerShifts)
        .filter(
            DBWorkerShifts.location_id == location_id,
            DBWorkerShifts.worker_id == worker_id,
            DBWorkerShifts.date >= date_from,
            DBWorkerShifts.date <= date_to,
        )
        .order_by(DBWorkerShifts.date)
        .all()
    )


@router.get("/shift-settings/{location_id}", response_model=ShiftSettingsRead)
def get_shift_settings(location_id: int, db: Session = Depends(get_db)):
    obj = db.get(DBShiftSettings, location_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.put("/shift-settings/{location_id}", response_model=ShiftSettingsRead)
def put_shift_settings(
    location_id: int,
    data: ShiftSettingsWrite,
    db: Session = Depends(get_db),
):
    if not db.get(DBLocations, location_id):
        raise HTTPException(status_code=404, detail="Location not found")

    values = data.model_dump()
    validate_shift_settings(values)

    obj = db.get(DBShiftSettings, location_id)
    if obj is None:
        obj = DBShiftSettings(location_id=location_id, **values)
        db.add(obj)
    else:
        for field, value in values.items():
            setattr(obj, field, value)
        obj.updated_at = datetime.now(timezone.utc).isoformat(timespec="seconds")

    db.commit()
    db.refresh(obj)
    logger.info(
        f"Shift settings saved: location_id={location_id}, "
        f"morning={obj.morning_start}-{obj.morning_end}, "
        f"afternoon={obj.afternoon_start}-{obj.afternoon_end}"
    )
    return obj


@router.post("/shifts/week", response_model=WeekPlanResult)
def post_week_plan(data: WeekPlanRequest, db: Session = Depends(get_db)):
    count = plan_week(
        db,
        data.location_id,
        [ShiftAssignment(**item.model_dump()) for item in data.shifts],
    )
    return WeekPlanResult(count=count)


@router.post("/shifts/swap", response_model=ShiftSwapResult)
def post_shift_swap(data: ShiftSwapRequest, db: Session = Depends(get_db)):
    shift_a, shift_b = swap_shifts(
        db,
        data.location_id,
        data.date,
        data.worker_a_id,
        data.worker_b_id,
    )
    return ShiftSwapResult(
        shifts=[
            WorkerShiftRead.model_validate(shift_a),
            WorkerShiftRead.model_validate(shift_b),
        ]
    )

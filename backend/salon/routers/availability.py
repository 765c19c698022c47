# backend/salon/routers/availability.py
"""
Availability API endpoints.

GET /availability         - bookable start times for worker/service/date
GET /availability/summary - per-day off/free/busy overview for a range
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.availability import AvailabilityRead, DaySummary
from ..services.scheduling import get_available_slots, summarize_calendar


router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("", response_model=AvailabilityRead)
def get_availability(
    location_id: int,
    worker_id: int,
    service_id: int,
    target_date: str = Query(..., alias="date"),
    db: Session = Depends(get_db),
):
    """Available start times for one worker, service and date."""
    result = get_available_slots(db, location_id, worker_id, service_id, target_date)
    return AvailabilityRead.model_validate(result)


@router.get("/summary", response_model=list[DaySummary])
def get_availability_summary(
    location_id: int,
    worker_id: int,
    service_id: int,
    date_from: str = Query(..., alias="from"),
    date_to: str = Query(..., alias="to"),
    db: Session = Depends(get_db),
):
    """Off / free / busy for each day in [from, to]."""
    return summarize_calendar(db, location_id, worker_id, service_id, date_from, date_to)

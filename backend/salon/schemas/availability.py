# backend/salon/schemas/availability.py
"""
Pydantic schemas for availability API.
"""

from typing import Literal, Optional
from pydantic import BaseModel

from .appointments import AppointmentRead
from .blocks import BlockRead


class AvailabilityRead(BaseModel):
    """Bookable start times for one worker, service and date."""
    date: str
    shift_type: str
    shift_start: Optional[str] = None
    shift_end: Optional[str] = None
    duration_min: int = 0
    slots: list[str]

    model_config = {"from_attributes": True}


class DaySummary(BaseModel):
    date: str
    shift_type: str
    availability: Literal["off", "free", "busy"]


class WorkerCalendarRead(BaseModel):
    """Admin view of a worker's appointments and blocks over a date range."""
    worker_id: int
    date_from: str
    date_to: str
    appointments: list[AppointmentRead]
    blocks: list[BlockRead]

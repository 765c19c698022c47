# backend/salon/schemas/appointments.py

from typing import Literal, Optional
from pydantic import BaseModel, Field

from .fields import DateStr, TimeStr

AppointmentStatus = Literal["pending", "confirmed", "completed", "cancelled", "no_show"]


class AppointmentCreate(BaseModel):
    """Public booking; the client comes from the X-Client-Id header."""
    location_id: int
    worker_id: int
    service_id: int
    date: DateStr
    start_time: TimeStr
    note: Optional[str] = None


class AdminAppointmentWrite(BaseModel):
    location_id: int
    worker_id: int
    service_id: int
    date: DateStr
    start_time: TimeStr

    client_name: str = Field(min_length=1)
    client_phone: str = Field(min_length=1)
    client_email: Optional[str] = None

    note: Optional[str] = None
    status: AppointmentStatus = "confirmed"
    source: Literal["web", "admin"] = "admin"


class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus
    reason: Optional[str] = None


class CancelWorkerDayRequest(BaseModel):
    location_id: int
    worker_id: int
    date: DateStr
    reason: str = Field(min_length=1)


class CancelWorkerDayResult(BaseModel):
    status: str = "ok"
    cancelled: int


class AppointmentRead(BaseModel):
    id: int
    location_id: int
    worker_id: int
    client_id: int
    service_id: Optional[int] = None

    service_name_snapshot: str
    duration_min_snapshot: int
    price_snapshot: float

    date: str
    start_time: str
    end_time: str
    note: Optional[str] = None
    status: str
    source: str

    cancelled_by: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[str] = None

    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    model_config = {"from_attributes": True}

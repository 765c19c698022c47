# backend/salon/routers/appointments.py
"""
Appointment endpoints.

Public (client from X-Client-Id):
    POST /appointments, GET /my-appointments

Admin:
    /admin/appointments - list, create, update, status, delete,
    cancel a worker's whole day
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.tables import Appointments as DBAppointments, Clients as DBClients
from ..schemas.appointments import (
    AdminAppointmentWrite,
    AppointmentCreate,
    AppointmentRead,
    AppointmentStatusUpdate,
    CancelWorkerDayRequest,
    CancelWorkerDayResult,
)
from ..services.scheduling import (
    AppointmentDraft,
    ClientDetails,
    book_appointment,
    cancel_worker_day,
    save_staff_appointment,
    set_appointment_status,
)
from ..services.scheduling.timeutils import parse_time
from .deps import get_current_client

logger = logging.getLogger(__name__)

router = APIRouter(tags=["appointments"])
admin_router = APIRouter(prefix="/admin/appointments", tags=["appointments"])


# ---------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------

@router.post("/appointments", response_model=AppointmentRead, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: AppointmentCreate,
    client: DBClients = Depends(get_current_client),
    db: Session = Depends(get_db),
):
    draft = AppointmentDraft(
        location_id=data.location_id,
        worker_id=data.worker_id,
        service_id=data.service_id,
        date=data.date,
        start=parse_time(data.start_time),
        client_id=client.id,
        note=(data.note or "").strip() or None,
    )
    return book_appointment(db, draft)


@router.get("/my-appointments", response_model=list[AppointmentRead])
def list_my_appointments(
    client: DBClients = Depends(get_current_client),
    db: Session = Depends(get_db),
):
    return (
        db.query(DBAppointments)
        .filter(DBAppointments.client_id == client.id)
        .order_by(DBAppointments.date, DBAppointments.start_time)
        .all()
    )


# ---------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------

def _staff_draft(data: AdminAppointmentWrite) -> tuple[AppointmentDraft, ClientDetails]:
    draft = AppointmentDraft(
        location_id=data.location_id,
        worker_id=data.worker_id,
        service_id=data.service_id,
        date=data.date,
        start=parse_time(data.start_time),
        note=(data.note or "").strip() or None,
        status=data.status,
        source=data.source,
    )
    client = ClientDetails(
        full_name=data.client_name,
        phone=data.client_phone,
        email=data.client_email,
    )
    return draft, client


@admin_router.get("/", response_model=list[AppointmentRead])
def list_appointments(
    location_id: int | None = None,
    worker_id: int | None = None,
    date: str | None = None,
    status_filter: str | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
):
    query = db.query(DBAppointments)
    if location_id is not None:
        query = query.filter(DBAppointments.location_id == location_id)
    if worker_id is not None:
        query = query.filter(DBAppointments.worker_id == worker_id)
    if date:
        query = query.filter(DBAppointments.date == date)
    if status_filter:
        query = query.filter(DBAppointments.status == status_filter)
    return query.order_by(DBAppointments.date, DBAppointments.start_time).all()


@admin_router.post("/", response_model=AppointmentRead, status_code=status.HTTP_201_CREATED)
def create_staff_appointment(
    data: AdminAppointmentWrite,
    db: Session = Depends(get_db),
):
    draft, client = _staff_draft(data)
    return save_staff_appointment(db, draft, client)


@admin_router.post("/cancel-worker-day", response_model=CancelWorkerDayResult)
def post_cancel_worker_day(
    data: CancelWorkerDayRequest,
    db: Session = Depends(get_db),
):
    cancelled = cancel_worker_day(
        db,
        data.location_id,
        data.worker_id,
        data.date,
        data.reason,
        cancelled_by="admin",
    )
    return CancelWorkerDayResult(cancelled=cancelled)


@admin_router.put("/{id}", response_model=AppointmentRead)
def update_staff_appointment(
    id: int,
    data: AdminAppointmentWrite,
    db: Session = Depends(get_db),
):
    draft, client = _staff_draft(data)
    return save_staff_appointment(db, draft, client, appointment_id=id)


@admin_router.patch("/{id}/status", response_model=AppointmentRead)
def update_appointment_status(
    id: int,
    data: AppointmentStatusUpdate,
    db: Session = Depends(get_db),
):
    return set_appointment_status(db, id, data.status, actor="admin", reason=data.reason)


@admin_router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_appointment(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBAppointments, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    worker_id, day = obj.worker_id, obj.date
    db.delete(obj)
    db.commit()
    logger.info(f"Appointment deleted: id={id}, worker_id={worker_id}, date={day}")

# backend/salon/routers/worker_services.py
# Domain relation: workers -> services (duration/price per worker)
# POST creates the catalog service by name when it does not exist yet

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ..database import get_db
from ..models.tables import (
    Services as DBServices,
    WorkerServices as DBWorkerServices,
    Workers as DBWorkers,
)
from ..schemas.worker_services import (
    WorkerServiceCreate,
    WorkerServiceUpdate,
    WorkerServiceRead,
)
from ..services.scheduling import get_scheduling_config
from ..services.scheduling.errors import BookingValidationError

router = APIRouter(prefix="/worker-services", tags=["worker_services"])


def _check_duration(duration_min: int) -> None:
    config = get_scheduling_config()
    if not config.min_duration_minutes <= duration_min <= config.max_duration_minutes:
        raise BookingValidationError(
            f"duration_min must be between {config.min_duration_minutes} "
            f"and {config.max_duration_minutes}.",
            field="duration_min",
        )


def _to_read(obj: DBWorkerServices) -> WorkerServiceRead:
    return WorkerServiceRead(
        id=obj.id,
        worker_id=obj.worker_id,
        service_id=obj.service_id,
        service_name=obj.service.name,
        duration_min=obj.duration_min,
        price=obj.price,
        is_active=bool(obj.is_active),
    )


@router.get("/", response_model=list[WorkerServiceRead])
def list_worker_services(
    worker_id: int | None = None,
    db: Session = Depends(get_db),
):
    query = (
        db.query(DBWorkerServices)
        .options(joinedload(DBWorkerServices.service))
        .filter(DBWorkerServices.is_active == 1)
    )
    if worker_id is not None:
        query = query.filter(DBWorkerServices.worker_id == worker_id)
    return [_to_read(obj) for obj in query.order_by(DBWorkerServices.id).all()]


@router.post("/", response_model=WorkerServiceRead, status_code=status.HTTP_201_CREATED)
def create_worker_service(
    data: WorkerServiceCreate,
    db: Session = Depends(get_db),
):
    if not db.get(DBWorkers, data.worker_id):
        raise HTTPException(status_code=404, detail="Worker not found")
    _check_duration(data.duration_min)

    name = data.service_name.strip()
    service = (
        db.query(DBServices)
        .filter(func.lower(DBServices.name) == name.lower())
        .first()
    )
    if service is None:
        service = DBServices(name=name)
        db.add(service)
        db.flush()

    exists = (
        db.query(DBWorkerServices)
        .filter(
            DBWorkerServices.worker_id == data.worker_id,
            DBWorkerServices.service_id == service.id,
        )
        .first()
    )
    if exists:
        db.rollback()
        raise HTTPException(status_code=409, detail="Service already assigned to worker")

    obj = DBWorkerServices(
        worker_id=data.worker_id,
        service_id=service.id,
        duration_min=data.duration_min,
        price=data.price,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return _to_read(obj)


@router.patch("/{id}", response_model=WorkerServiceRead)
def update_worker_service(
    id: int,
    data: WorkerServiceUpdate,
    db: Session = Depends(get_db),
):
    obj = db.get(DBWorkerServices, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")

    changes = data.model_dump(exclude_unset=True)
    if changes.get("duration_min") is not None:
        _check_duration(changes["duration_min"])
    if "is_active" in changes:
        changes["is_active"] = int(changes["is_active"])
    for field, value in changes.items():
        setattr(obj, field, value)

    db.commit()
    db.refresh(obj)
    return _to_read(obj)

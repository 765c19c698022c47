# backend/salon/schemas/worker_services.py

from typing import Optional
from pydantic import BaseModel, Field


class WorkerServiceCreate(BaseModel):
    worker_id: int
    service_name: str = Field(min_length=1)
    duration_min: int = Field(gt=0)
    price: float = Field(default=0, ge=0)

    model_config = {"from_attributes": True}


class WorkerServiceUpdate(BaseModel):
    duration_min: Optional[int] = Field(default=None, gt=0)
    price: Optional[float] = Field(default=None, ge=0)
    is_active: Optional[bool] = None

    model_config = {"from_attributes": True}


class WorkerServiceRead(BaseModel):
    id: int
    worker_id: int
    service_id: int
    service_name: str
    duration_min: int
    price: float
    is_active: bool

    model_config = {"from_attributes": True}

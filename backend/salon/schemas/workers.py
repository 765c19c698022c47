# backend/salon/schemas/workers.py

from typing import Optional
from pydantic import BaseModel, Field


class WorkerCreate(BaseModel):
    location_id: int
    name: str = Field(min_length=1)
    is_active: bool = True
    notification_email: Optional[str] = None

    model_config = {"from_attributes": True}


class WorkerUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    is_active: Optional[bool] = None
    notification_email: Optional[str] = None

    model_config = {"from_attributes": True}


class WorkerRead(BaseModel):
    id: int
    location_id: int
    name: str
    is_active: bool
    notification_email: Optional[str] = None

    model_config = {"from_attributes": True}

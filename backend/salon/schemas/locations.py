# backend/salon/schemas/locations.py

from typing import Optional
from pydantic import BaseModel, Field


class LocationCreate(BaseModel):
    name: str = Field(min_length=1)
    max_active_workers: int = Field(default=1, ge=1)

    model_config = {"from_attributes": True}


class LocationUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    is_active: Optional[bool] = None
    max_active_workers: Optional[int] = Field(default=None, ge=1)

    model_config = {"from_attributes": True}


class LocationRead(BaseModel):
    id: int
    name: str
    is_active: bool
    max_active_workers: int

    created_at: Optional[str] = None

    model_config = {"from_attributes": True}

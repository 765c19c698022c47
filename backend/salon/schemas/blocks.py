# backend/salon/schemas/blocks.py

from typing import Optional
from pydantic import BaseModel, Field

from .fields import DateStr, TimeStr


class BlockWrite(BaseModel):
    location_id: int
    worker_id: int
    date: DateStr
    start_time: TimeStr
    duration_min: int = Field(gt=0)
    note: Optional[str] = None


class BlockRead(BaseModel):
    id: int
    location_id: int
    worker_id: int
    date: str
    start_time: str
    end_time: str
    duration_min: int
    note: Optional[str] = None
    created_at: Optional[str] = None

    model_config = {"from_attributes": True}

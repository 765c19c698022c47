# backend/salon/schemas/shifts.py

from typing import Literal, Optional
from pydantic import BaseModel, Field

from .fields import DateStr, TimeStr

ShiftType = Literal["morning", "afternoon", "off"]


class ShiftSettingsWrite(BaseModel):
    work_start: TimeStr
    work_end: TimeStr
    morning_start: TimeStr
    morning_end: TimeStr
    afternoon_start: TimeStr
    afternoon_end: TimeStr


class ShiftSettingsRead(BaseModel):
    location_id: int
    work_start: str
    work_end: str
    morning_start: str
    morning_end: str
    afternoon_start: str
    afternoon_end: str
    updated_at: Optional[str] = None

    model_config = {"from_attributes": True}


class WorkerShiftRead(BaseModel):
    worker_id: int
    date: str
    shift_type: str

    model_config = {"from_attributes": True}


class ShiftAssignmentIn(BaseModel):
    worker_id: int
    date: DateStr
    shift_type: ShiftType


class WeekPlanRequest(BaseModel):
    location_id: int
    shifts: list[ShiftAssignmentIn] = Field(min_length=1)


class WeekPlanResult(BaseModel):
    status: str = "ok"
    count: int


class ShiftSwapRequest(BaseModel):
    location_id: int
    date: DateStr
    worker_a_id: int
    worker_b_id: int


class ShiftSwapResult(BaseModel):
    status: str = "ok"
    shifts: list[WorkerShiftRead]

"""Scheduling domain schemas - Pydantic models for validation"""

from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class SlotsResponse(BaseModel):
    """Offerable slots for one date"""

    date: date
    slots: list[str]  # "HH:MM", ascending
    disabled: bool = False


class DisabledDatesResponse(BaseModel):
    start: date
    end: date
    disabled_dates: list[date]


class WorkingHourUpdate(BaseModel):
    """Schema for creating or replacing a weekday's working hours"""

    start_time: time
    end_time: time
    slot_duration_minutes: int = 30
    is_active: bool = True

    @field_validator("slot_duration_minutes")
    @classmethod
    def validate_duration(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("slot_duration_minutes must be greater than 0")
        return v

    @model_validator(mode="after")
    def validate_range(self) -> "WorkingHourUpdate":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class WorkingHourResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    day_of_week: int
    start_time: time
    end_time: time
    slot_duration_minutes: int
    is_active: bool


class BlockedDateCreate(BaseModel):
    blocked_date: date
    reason: Optional[str] = Field(default=None, max_length=255)


class BlockedDateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    blocked_date: date
    reason: Optional[str] = None
    created_at: Optional[datetime] = None

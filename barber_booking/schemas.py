# barber_booking/schemas.py

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .config import DEFAULT_END, DEFAULT_START, DEFAULT_WORKING_DAYS
from .timeutils import normalize_time, time_to_minutes


class BookingStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"


class Shift(BaseModel):
    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def canonical_time(cls, value: str) -> str:
        return normalize_time(value)

    @model_validator(mode="after")
    def start_before_end(self):
        if time_to_minutes(self.start) >= time_to_minutes(self.end):
            raise ValueError("shift start must be before shift end")
        return self


class DaySchedule(BaseModel):
    day_of_week: int = Field(ge=0, le=6)  # 0=Sun, 1=Mon....
    shifts: List[Shift] = []

    @model_validator(mode="after")
    def shifts_do_not_overlap(self):
        ordered = sorted(self.shifts, key=lambda shift: time_to_minutes(shift.start))
        for earlier, later in zip(ordered, ordered[1:]):
            if time_to_minutes(later.start) < time_to_minutes(earlier.end):
                raise ValueError(
                    f"shift {later.start}-{later.end} overlaps {earlier.start}-{earlier.end}"
                )
        return self


class WorkingHoursConfig(BaseModel):
    working_days: List[int] = Field(default_factory=lambda: list(DEFAULT_WORKING_DAYS))
    daily_schedule: List[DaySchedule] = []
    default_start: str = DEFAULT_START
    default_end: str = DEFAULT_END

    @field_validator("working_days")
    @classmethod
    def valid_days(cls, days: List[int]) -> List[int]:
        for day in days:
            if not (0 <= day <= 6):
                raise ValueError("working_days must be integers between 0 and 6")
        if len(days) != len(set(days)):
            raise ValueError("working_days cannot contain duplicates")
        return days

    @field_validator("default_start", "default_end")
    @classmethod
    def canonical_time(cls, value: str) -> str:
        return normalize_time(value)

    @model_validator(mode="after")
    def default_start_before_end(self):
        if time_to_minutes(self.default_start) >= time_to_minutes(self.default_end):
            raise ValueError("default_start must be before default_end")
        days = [schedule.day_of_week for schedule in self.daily_schedule]
        if len(days) != len(set(days)):
            raise ValueError("daily_schedule cannot list the same day_of_week twice")
        return self

    def shifts_for(self, day: int) -> List[Shift]:
        for schedule in self.daily_schedule:
            if schedule.day_of_week == day:
                return schedule.shifts
        return []


class Slot(BaseModel):
    time: str
    is_booked: bool = False
    booking_id: Optional[int] = None

    @field_validator("time")
    @classmethod
    def canonical_time(cls, value: str) -> str:
        return normalize_time(value)


class SlotPublic(Slot):
    display_time: str


class ServiceItem(BaseModel):
    id: Optional[int] = None
    name: str = ""
    duration: int = Field(ge=0)


class BookingCreate(BaseModel):
    barber_id: int
    services: List[int] = Field(min_length=1)
    date: date
    slot_time: str
    client_email: Optional[str] = None


class BookingPublic(BaseModel):
    id: int
    barber_id: int
    services: List[int]
    date: date
    slot_time: str
    slot_end_time: str
    total_duration: int
    status: BookingStatus
    client_email: Optional[str] = None
    created_at: datetime


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class GenerateAvailabilityRequest(BaseModel):
    days: int = Field(default=30, ge=1, le=366)


class GenerateAvailabilityResponse(BaseModel):
    barber_id: int
    days_generated: int
    slots_created: int


class AvailabilityResponse(BaseModel):
    barber_id: int
    date: date
    service_duration: int
    total_slots: int
    booked_slots: int
    available_start_slots: int
    slots: List[SlotPublic]
    message: Optional[str] = None

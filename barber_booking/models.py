# barber_booking/models.py

from typing import Optional, List
from datetime import datetime, timezone, date as Date

from sqlalchemy import DateTime, UniqueConstraint
from sqlalchemy.types import JSON
from sqlmodel import SQLModel, Field, Column


class Barber(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    # WorkingHoursConfig document; empty means "use the defaults"
    working_hours: dict = Field(default_factory=dict, sa_column=Column(JSON))


class Service(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    duration: int  # minutes
    price: float = 0
    is_active: bool = True


class DayAvailability(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("barber_id", "date", name="uq_barber_date"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    barber_id: int = Field(foreign_key="barber.id", index=True)
    date: Date = Field(index=True)
    # [{"time": "09:00", "is_booked": false, "booking_id": null}, ...]
    slots: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    # bumped on every slot write; writers update only if it is unchanged
    version: int = 1


class Booking(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    barber_id: int = Field(foreign_key="barber.id", index=True)
    date: Date = Field(index=True)
    services: List[int] = Field(default_factory=list, sa_column=Column(JSON))
    slot_time: str
    slot_end_time: str
    total_duration: int
    status: str = "pending"
    client_email: Optional[str] = Field(default=None, index=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

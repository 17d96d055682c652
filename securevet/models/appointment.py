"""Pydantic models for appointments."""
import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from securevet.models.medical_record import MedicalRecord


class AppointmentStatus(str, Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    DONE = "Done"


TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class AppointmentRequestIn(BaseModel):
    pet_id: str = Field(..., min_length=1)
    date: dt.date
    time: str = Field(..., pattern=TIME_PATTERN)
    reason: str = Field(..., min_length=1, max_length=500)

    @field_validator("pet_id", mode="before")
    @classmethod
    def coerce_pet_id(cls, v):
        # older clients send numeric ids
        return str(v) if v is not None else v


class BookForClientIn(AppointmentRequestIn):
    client_id: str = Field(..., min_length=1)


class Appointment(BaseModel):
    id: str
    pet_id: str
    owner_id: str
    date: str
    time: str
    reason: str = ""
    status: AppointmentStatus = AppointmentStatus.PENDING
    assigned_to: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[str] = None


class AppointmentView(Appointment):
    """Appointment enriched with display names; never persisted."""

    pet_name: str = "Unknown"
    owner_name: Optional[str] = None
    staff_name: Optional[str] = None


class CompletionResult(BaseModel):
    appointment: Appointment
    record: MedicalRecord


class ClaimResult(BaseModel):
    appointment: Appointment
    # False when the caller already held the appointment and nothing was written
    changed: bool

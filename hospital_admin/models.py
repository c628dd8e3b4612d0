from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class AppointmentStatus(str, Enum):
    SCHEDULED = "Scheduled"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class _Record(BaseModel):
    """Base for records exchanged with the hospital API (camelCase on the wire)."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class Patient(_Record):
    id: int | str | None = None  # assigned by the server
    first_name: str | None = None
    last_name: str | None = None
    date_of_birth: date | None = None
    gender: str | None = None
    phone_number: str | None = None
    address: str | None = None


class Doctor(_Record):
    id: int | str | None = None
    first_name: str | None = None
    last_name: str | None = None
    specialization: str | None = None
    phone_number: str | None = None
    email: str | None = None


class PatientSnapshot(_Record):
    """Patient fields denormalized into an appointment as last fetched."""
    id: int | str
    first_name: str | None = None
    last_name: str | None = None


class DoctorSnapshot(_Record):
    id: int | str
    first_name: str | None = None
    last_name: str | None = None
    specialization: str | None = None


class Appointment(_Record):
    id: int | str | None = None
    patient: PatientSnapshot | None = None
    doctor: DoctorSnapshot | None = None
    appointment_time: datetime | None = None  # timezone-naive
    reason: str | None = None
    status: AppointmentStatus = AppointmentStatus.SCHEDULED

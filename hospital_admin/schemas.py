"""Per-entity configuration for the generic resource manager.

An EntitySchema says which collection endpoint an entity lives at, which
draft fields its form holds, which of them must be filled in, which fields the
search box looks at, how a table row is rendered and how a draft is turned
into a request payload.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Type

from pydantic import BaseModel

from .models import Appointment, AppointmentStatus, Doctor, Patient

Draft = dict[str, Any]


def to_minute_precision(value: datetime | str | None) -> str:
    """Render a stored timestamp as ``YYYY-MM-DDTHH:MM`` for the time input."""
    if not value:
        return ""
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    return value.strftime("%Y-%m-%dT%H:%M")


def with_zero_seconds(value: str) -> str:
    return f"{value}:00"


def format_appointment_time(value: datetime | None) -> str:
    """``2024-05-01T10:30`` -> ``May 1, 2024, 10:30 AM``"""
    if value is None:
        return ""
    return f"{value:%b} {value.day}, {value.year}, {value:%I:%M %p}"


def full_name(record) -> str:
    if record is None:
        return ""
    return " ".join(p for p in (record.first_name, record.last_name) if p)


def _blank(value) -> str:
    return "" if value is None else value


def _status(value) -> str:
    # raises ValueError for anything outside Scheduled/Completed/Cancelled
    return AppointmentStatus(value).value


def _appointment_time(value) -> str:
    """Normalise a draft time to ``YYYY-MM-DDTHH:MM``; blank stays blank."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return ""
    if not isinstance(value, datetime):
        text = str(value).strip()
        # a bare date parses as midnight, but the form needs a date and a time
        if len(text) <= 10:
            raise ValueError(f"appointmentTime needs a date and a time, got {text!r}")
        value = datetime.fromisoformat(text)
    if value.tzinfo is not None:
        raise ValueError("appointmentTime must not carry a timezone")
    return to_minute_precision(value)


@dataclass
class EntitySchema:
    name: str
    plural: str
    collection: str
    model: Type[BaseModel]
    draft_fields: dict[str, Any]
    labels: dict[str, str]
    required: tuple[str, ...]
    search_fields: tuple[Callable[[Any], str | None], ...]
    columns: dict[str, Callable[[Any], str]]
    save_error: str | None = None
    validators: dict[str, Callable[[Any], Any]] = field(default_factory=dict)
    draft_from_item: Callable[[Any], Draft] | None = None
    payload_from_draft: Callable[[Draft], dict] | None = None

    # messages ------------------------------------------------------------

    @property
    def noun(self) -> str:
        return self.name.lower()

    def load_failed(self) -> str:
        return f"Failed to fetch {self.plural}."

    def saved(self, updated: bool) -> str:
        return f"{self.name} {'updated' if updated else 'added'} successfully."

    def save_failed(self) -> str:
        return self.save_error or f"Failed to save {self.noun}. Please check your input."

    def deleted(self) -> str:
        return f"{self.name} deleted successfully."

    def delete_failed(self) -> str:
        return f"Failed to delete {self.noun}."

    def delete_prompt(self) -> str:
        return f"Are you sure you want to delete this {self.noun}?"

    def empty_message(self, search_term: str) -> str:
        msg = f"No {self.plural} found."
        if search_term:
            msg += " Try a different search term."
        return msg

    # drafts and payloads -------------------------------------------------

    def empty_draft(self) -> Draft:
        return dict(self.draft_fields)

    def draft_from(self, item) -> Draft:
        if self.draft_from_item is not None:
            return self.draft_from_item(item)
        dumped = item.model_dump(by_alias=True, mode="json")
        return {key: _blank(dumped.get(key)) for key in self.draft_fields}

    def payload_from(self, draft: Draft) -> dict:
        if self.payload_from_draft is not None:
            return self.payload_from_draft(draft)
        return {key: draft[key] for key in self.draft_fields}

    def clean(self, key: str, value):
        if key not in self.draft_fields:
            raise KeyError(key)
        validator = self.validators.get(key)
        return validator(value) if validator else value

    def missing(self, draft: Draft) -> list[str]:
        return [self.labels[k] for k in self.required if str(_blank(draft.get(k))).strip() == ""]

    # list view -----------------------------------------------------------

    def matches(self, item, term: str) -> bool:
        if not term:
            return True
        term = term.lower()
        for get in self.search_fields:
            value = get(item)
            if value and term in str(value).lower():
                return True
        return False

    def row(self, item) -> dict[str, str]:
        row = {"id": item.id}
        row.update({header: render(item) for header, render in self.columns.items()})
        return row


PATIENTS = EntitySchema(
    name="Patient",
    plural="patients",
    collection="patients",
    model=Patient,
    draft_fields={
        "firstName": "", "lastName": "", "dateOfBirth": "",
        "gender": "", "phoneNumber": "", "address": "",
    },
    labels={
        "firstName": "First Name", "lastName": "Last Name", "dateOfBirth": "Date of Birth",
        "gender": "Gender", "phoneNumber": "Phone Number", "address": "Address",
    },
    required=("firstName", "lastName"),
    search_fields=(
        lambda p: p.first_name,
        lambda p: p.last_name,
        lambda p: p.phone_number,
    ),
    columns={
        "Name": full_name,
        "Date of Birth": lambda p: p.date_of_birth.isoformat() if p.date_of_birth else "",
        "Gender": lambda p: _blank(p.gender),
        "Phone": lambda p: _blank(p.phone_number),
        "Address": lambda p: _blank(p.address),
    },
)

DOCTORS = EntitySchema(
    name="Doctor",
    plural="doctors",
    collection="doctors",
    model=Doctor,
    draft_fields={
        "firstName": "", "lastName": "", "specialization": "",
        "phoneNumber": "", "email": "",
    },
    labels={
        "firstName": "First Name", "lastName": "Last Name", "specialization": "Specialization",
        "phoneNumber": "Phone Number", "email": "Email",
    },
    required=("firstName", "lastName"),
    search_fields=(
        lambda d: d.first_name,
        lambda d: d.last_name,
        lambda d: d.specialization,
        lambda d: d.email,
    ),
    columns={
        "Name": full_name,
        "Specialization": lambda d: _blank(d.specialization),
        "Phone": lambda d: _blank(d.phone_number),
        "Email": lambda d: _blank(d.email),
    },
)


def doctor_label(doctor) -> str:
    if doctor is None:
        return ""
    name = full_name(doctor)
    return f"{name} ({doctor.specialization})" if doctor.specialization else name


def _appointment_draft(item: Appointment) -> Draft:
    return {
        "patientId": item.patient.id if item.patient else "",
        "doctorId": item.doctor.id if item.doctor else "",
        "appointmentTime": to_minute_precision(item.appointment_time),
        "reason": _blank(item.reason),
        "status": item.status.value,
    }


def _appointment_payload(draft: Draft) -> dict:
    return {
        "patient": {"id": draft["patientId"]},
        "doctor": {"id": draft["doctorId"]},
        "appointmentTime": with_zero_seconds(draft["appointmentTime"]),
        "reason": draft["reason"],
        "status": draft["status"],
    }


APPOINTMENTS = EntitySchema(
    name="Appointment",
    plural="appointments",
    collection="appointments",
    model=Appointment,
    draft_fields={
        "patientId": "", "doctorId": "", "appointmentTime": "",
        "reason": "", "status": AppointmentStatus.SCHEDULED.value,
    },
    labels={
        "patientId": "Patient", "doctorId": "Doctor", "appointmentTime": "Appointment Time",
        "reason": "Reason", "status": "Status",
    },
    required=("patientId", "doctorId", "appointmentTime", "status"),
    search_fields=(
        lambda a: a.patient and a.patient.first_name,
        lambda a: a.patient and a.patient.last_name,
        lambda a: a.doctor and a.doctor.first_name,
        lambda a: a.doctor and a.doctor.last_name,
        lambda a: a.reason,
    ),
    columns={
        "Patient": lambda a: full_name(a.patient),
        "Doctor": lambda a: doctor_label(a.doctor),
        "Time": lambda a: format_appointment_time(a.appointment_time),
        "Reason": lambda a: _blank(a.reason),
        "Status": lambda a: a.status.value,
    },
    save_error=(
        "Failed to save appointment. Please check your input "
        "and ensure Patient/Doctor IDs are valid."
    ),
    validators={"status": _status, "appointmentTime": _appointment_time},
    draft_from_item=_appointment_draft,
    payload_from_draft=_appointment_payload,
)

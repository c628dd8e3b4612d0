"""List/search view plus edit form for one entity type.

A ResourceManager owns the in-memory collection, the search term and the
form draft. Remote failures never escape it: they are logged and reported
through the NotificationChannel, and the caller gets ``False`` back.
After every successful mutation the whole collection is fetched again.
"""
from __future__ import annotations
import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Union

import httpx

from .client import ResourceClient
from .models import Doctor, Patient
from .notifications import NotificationChannel, NotificationKind
from .schemas import APPOINTMENTS, DOCTORS, PATIENTS, Draft, EntitySchema, doctor_label, full_name

logger = logging.getLogger(__name__)

# Yes/no prompt shown before a delete. May be sync or async.
Confirmer = Callable[[str], Union[bool, Awaitable[bool]]]

# What the client raises for transport errors and non-2xx responses, plus
# ValueError for bodies that are not JSON or do not fit the model.
_REMOTE_ERRORS = (httpx.HTTPError, ValueError)


def always(answer: bool) -> Confirmer:
    """Confirmer that answers every prompt the same way."""
    def _confirm(prompt: str) -> bool:
        logger.debug("confirm %r -> %s", prompt, answer)
        return answer
    return _confirm


class ResourceManager:
    def __init__(self, schema: EntitySchema, channel: NotificationChannel,
                 client: ResourceClient | None = None, confirm: Confirmer | None = None):
        self.schema = schema
        self.channel = channel
        self.client = client or ResourceClient(schema.collection)
        self.confirm = confirm or always(False)
        self.items: list = []
        self.search_term = ""
        self.is_form_open = False
        self.current_item = None  # None means the form is in create mode
        self.draft: Draft = schema.empty_draft()

    @property
    def editing(self) -> bool:
        return self.current_item is not None

    async def activate(self) -> None:
        await self.load()

    async def load(self) -> bool:
        """Replace ``items`` with the server's collection."""
        try:
            raw = await self.client.list()
            items = [self.schema.model.model_validate(r) for r in raw]
        except _REMOTE_ERRORS:
            logger.exception("Error fetching %s", self.schema.plural)
            self.channel.notify(self.schema.load_failed(), NotificationKind.ERROR)
            return False
        self.items = items
        logger.info("Loaded %d %s", len(items), self.schema.plural)
        return True

    # form ----------------------------------------------------------------

    def begin_create(self) -> None:
        self.current_item = None
        self.draft = self.schema.empty_draft()
        self.is_form_open = True

    def begin_edit(self, item) -> None:
        self.current_item = item
        self.draft = self.schema.draft_from(item)
        self.is_form_open = True

    def set_draft(self, **values) -> None:
        """Update draft fields. Unknown fields raise KeyError, invalid values ValueError."""
        cleaned = {key: self.schema.clean(key, value) for key, value in values.items()}
        self.draft.update(cleaned)

    def cancel(self) -> None:
        self.is_form_open = False

    async def submit(self) -> bool:
        missing = self.schema.missing(self.draft)
        if missing:
            self.channel.notify(
                f"Please fill in all required fields: {', '.join(missing)}.", NotificationKind.ERROR
            )
            return False

        payload = self.schema.payload_from(self.draft)
        target = self.current_item
        try:
            if target is None:
                await self.client.create(payload)
            else:
                await self.client.update(target.id, payload)
        except _REMOTE_ERRORS:
            logger.exception("Error saving %s", self.schema.noun)
            self.channel.notify(self.schema.save_failed(), NotificationKind.ERROR)
            return False

        self.is_form_open = False
        self.channel.notify(self.schema.saved(updated=target is not None), NotificationKind.SUCCESS)
        await self.load()
        return True

    # delete --------------------------------------------------------------

    async def delete(self, item_id, confirm: Confirmer | None = None) -> bool:
        answer = (confirm or self.confirm)(self.schema.delete_prompt())
        if inspect.isawaitable(answer):
            answer = await answer
        if not answer:
            return False

        try:
            await self.client.delete(item_id)
        except _REMOTE_ERRORS:
            logger.exception("Error deleting %s %s", self.schema.noun, item_id)
            self.channel.notify(self.schema.delete_failed(), NotificationKind.ERROR)
            return False

        self.channel.notify(self.schema.deleted(), NotificationKind.SUCCESS)
        await self.load()
        return True

    # list view -----------------------------------------------------------

    def filtered(self) -> list:
        return [item for item in self.items if self.schema.matches(item, self.search_term)]

    def rows(self) -> list[dict]:
        return [self.schema.row(item) for item in self.filtered()]

    def empty_message(self) -> str:
        return self.schema.empty_message(self.search_term)

    def select(self, item_id):
        """Return the loaded item with this identifier, or None."""
        return next((i for i in self.items if str(i.id) == str(item_id)), None)


class AppointmentManager(ResourceManager):
    """Appointments, plus read-only patient/doctor lookups for the form pickers."""

    def __init__(self, channel: NotificationChannel, client: ResourceClient | None = None,
                 patients_client: ResourceClient | None = None,
                 doctors_client: ResourceClient | None = None,
                 confirm: Confirmer | None = None):
        super().__init__(APPOINTMENTS, channel, client, confirm)
        base_url = self.client.base_url
        self.patients_client = patients_client or ResourceClient(PATIENTS.collection, base_url=base_url)
        self.doctors_client = doctors_client or ResourceClient(DOCTORS.collection, base_url=base_url)
        self.patients: list[Patient] = []
        self.doctors: list[Doctor] = []
        self.references_loaded = False

    async def activate(self) -> None:
        await asyncio.gather(self.load(), self.load_references())

    async def load_references(self) -> bool:
        try:
            # wait for both before reporting, so no request is left in flight
            results = await asyncio.gather(
                self.patients_client.list(), self.doctors_client.list(), return_exceptions=True
            )
            for result in results:
                if isinstance(result, BaseException):
                    raise result
            raw_patients, raw_doctors = results
            patients = [Patient.model_validate(p) for p in raw_patients]
            doctors = [Doctor.model_validate(d) for d in raw_doctors]
        except _REMOTE_ERRORS:
            logger.exception("Error fetching patients or doctors")
            self.channel.notify("Failed to load patient and doctor data.", NotificationKind.ERROR)
            return False
        self.patients, self.doctors = patients, doctors
        self.references_loaded = True
        return True

    def reference_options(self) -> dict[str, list[tuple]]:
        return {
            "patients": [(p.id, full_name(p)) for p in self.patients],
            "doctors": [(d.id, doctor_label(d)) for d in self.doctors],
        }


def build_managers(channel: NotificationChannel, base_url: str | None = None,
                   confirm: Confirmer | None = None) -> dict[str, ResourceManager]:
    """One manager per entity, all sharing ``channel``."""
    return {
        "patients": ResourceManager(PATIENTS, channel, ResourceClient("patients", base_url), confirm),
        "doctors": ResourceManager(DOCTORS, channel, ResourceClient("doctors", base_url), confirm),
        "appointments": AppointmentManager(channel, ResourceClient("appointments", base_url), confirm=confirm),
    }

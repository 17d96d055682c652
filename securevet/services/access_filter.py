"""Role-scoped views of appointments and medical records.

- client: only appointments / records they own
- staff: unclaimed appointments plus the ones assigned to them; all records
- admin: everything

The same predicates back bulk listing and single fetches. This module only
reads; the lifecycle manager re-checks ownership before any write.
"""
from typing import Dict, Iterable, List, Optional

from securevet.core.errors import NotFoundError
from securevet.core.store import APPOINTMENTS, MEDICAL_RECORDS, PETS, USERS, DocumentStore
from securevet.models.appointment import AppointmentView
from securevet.models.user import Actor, Role
from securevet.services.policy import Operation, authorize, sees_all
from securevet.services.time_utils import appointment_sort_key


def can_view_appointment(actor: Actor, appt: Dict) -> bool:
    if actor.role == Role.ADMIN:
        return True
    if actor.role == Role.STAFF:
        holder = appt.get("assigned_to")
        return not holder or holder == actor.uid
    return appt.get("owner_id") == actor.uid


def can_view_record(actor: Actor, record: Dict, pet: Optional[Dict]) -> bool:
    if sees_all(actor):
        return True
    owner = (pet or {}).get("owner_id") or record.get("owner_id")
    return owner == actor.uid


class _Names:
    """Per-call cache of the documents referenced by a batch of appointments."""

    def __init__(self, store: DocumentStore, appts: Iterable[Dict]):
        appts = list(appts)
        self.pets = store.get_many(PETS, (a.get("pet_id") for a in appts))
        user_ids = [a.get("owner_id") for a in appts] + [a.get("assigned_to") for a in appts]
        self.users = store.get_many(USERS, user_ids)

    def pet(self, pet_id) -> str:
        return (self.pets.get(pet_id) or {}).get("name") or "Unknown"

    def user(self, uid, default=None):
        if not uid:
            return default
        return (self.users.get(uid) or {}).get("name") or default


class AccessFilter:
    def __init__(self, store: DocumentStore):
        self.store = store

    # -------------------------
    # Appointments
    # -------------------------
    def _raw_appointments(self, actor: Actor) -> List[Dict]:
        if actor.role == Role.CLIENT:
            return self.store.query(APPOINTMENTS, {"owner_id": actor.uid})
        if actor.role == Role.STAFF:
            unclaimed = self.store.query(APPOINTMENTS, {"assigned_to": None})
            mine = self.store.query(APPOINTMENTS, {"assigned_to": actor.uid})
            merged = {a["id"]: a for a in unclaimed + mine}
            return list(merged.values())
        return self.store.query(APPOINTMENTS)

    def enrich(self, actor: Actor, appts: List[Dict]) -> List[AppointmentView]:
        names = _Names(self.store, appts)
        out = []
        for a in appts:
            view = AppointmentView(
                **a,
                pet_name=names.pet(a.get("pet_id")),
                staff_name=names.user(a.get("assigned_to")),
            )
            if actor.role != Role.CLIENT:
                view.owner_name = names.user(a.get("owner_id"), "Unknown")
            out.append(view)
        return out

    def appointments_for(self, actor: Actor) -> List[AppointmentView]:
        authorize(actor, Operation.APPOINTMENT_VIEW)
        # The query already scopes by role; the predicate is the authority.
        visible = [a for a in self._raw_appointments(actor) if can_view_appointment(actor, a)]
        visible.sort(key=appointment_sort_key)
        return self.enrich(actor, visible)

    def appointment_for(self, actor: Actor, appointment_id: str) -> AppointmentView:
        authorize(actor, Operation.APPOINTMENT_VIEW)
        appt = self.store.get(APPOINTMENTS, appointment_id)
        # Invisible and missing look the same to the caller.
        if appt is None or not can_view_appointment(actor, appt):
            raise NotFoundError("Appointment not found")
        return self.enrich(actor, [appt])[0]

    # -------------------------
    # Medical records
    # -------------------------
    def records_for(self, actor: Actor, pet_id: Optional[str] = None) -> List[Dict]:
        """Raw (still encrypted) record documents the actor may read, newest first."""
        authorize(actor, Operation.RECORD_VIEW)
        filters = {}
        if pet_id:
            filters["pet_id"] = pet_id
        if not sees_all(actor):
            filters["owner_id"] = actor.uid

        records = self.store.query(MEDICAL_RECORDS, filters or None)
        pets = self.store.get_many(PETS, (r.get("pet_id") for r in records))

        visible = []
        for r in records:
            pet = pets.get(r.get("pet_id"))
            if can_view_record(actor, r, pet):
                visible.append({**r, "pet_name": (pet or {}).get("name")})

        visible.sort(key=lambda r: (r.get("date") or "", r.get("created_at") or ""), reverse=True)
        return visible

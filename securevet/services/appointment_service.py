"""Appointment lifecycle.

    Pending --claim--> Confirmed --complete--> Done

- request: a client asks for a slot for one of their pets (Pending, unassigned)
- claim: staff/admin takes a Pending appointment (Confirmed, assigned to them).
  The first staff claimant wins; admins may take over a claimed appointment.
- complete: the assignee (or an admin) finishes a Confirmed appointment. A
  medical record for the pet is written in the same commit.
- book_for_client: staff create an appointment that starts Confirmed and
  assigned to themselves.

There is no way back: no cancel, no reject, no reopen. Status and
``assigned_to`` are only ever written here, and every transition goes
through ``DocumentStore.update_if`` so concurrent claims are decided by the
store, not by a read that may already be stale.
"""
import logging
from typing import Callable, Dict, Optional

from securevet.core.crypto import FieldCipher
from securevet.core.errors import (
    AuthorizationError,
    ConflictError,
    InvalidTransitionError,
    ValidationError,
)
from securevet.core.logging import log_event
from securevet.core.store import (
    APPOINTMENTS,
    MEDICAL_RECORDS,
    PETS,
    USERS,
    DocumentStore,
    WritePlan,
)
from securevet.models.appointment import (
    Appointment,
    AppointmentRequestIn,
    AppointmentStatus,
    BookForClientIn,
    ClaimResult,
    CompletionResult,
)
from securevet.models.audit import AuditAction
from securevet.models.medical_record import MedicalRecord
from securevet.models.user import Actor, Role
from securevet.services.audit import AuditRecorder
from securevet.services.policy import Operation, authorize
from securevet.services.time_utils import clinic_today, now_iso

logger = logging.getLogger(__name__)

AUTO_DIAGNOSIS = "Routine Visit"
AUTO_NOTES_TEMPLATE = "Completed appointment for {reason}."


class AppointmentService:
    def __init__(
        self,
        store: DocumentStore,
        audit: AuditRecorder,
        cipher: FieldCipher,
        today: Callable = clinic_today,
    ):
        self.store = store
        self.audit = audit
        self.cipher = cipher
        self.today = today

    # -------------------------
    # Creation
    # -------------------------
    def request(self, actor: Actor, payload: AppointmentRequestIn) -> Appointment:
        """Client asks for an appointment for a pet they own."""
        authorize(actor, Operation.APPOINTMENT_REQUEST)

        pet = self.store.get(PETS, payload.pet_id)
        if pet is None or pet.get("owner_id") != actor.uid:
            raise AuthorizationError("Invalid Pet")

        data = {
            "pet_id": payload.pet_id,
            "owner_id": actor.uid,
            "date": payload.date.isoformat(),
            "time": payload.time,
            "reason": payload.reason,
            "status": AppointmentStatus.PENDING.value,
            "assigned_to": None,
            "created_by": actor.uid,
            "created_at": now_iso(),
        }
        appt_id = self.store.insert(APPOINTMENTS, data)

        self.audit.record(actor, AuditAction.APPT_REQUEST, f"Client requested appt #{appt_id}")
        return Appointment(id=appt_id, **data)

    def book_for_client(self, actor: Actor, payload: BookForClientIn) -> Appointment:
        """Staff books on behalf of a client; skips Pending entirely."""
        authorize(actor, Operation.APPOINTMENT_BOOK)

        if payload.date < self.today():
            raise ValidationError(
                "Cannot book appointments for past dates. Please select a future date."
            )

        client = self.store.get(USERS, payload.client_id)
        if client is None or client.get("role") != Role.CLIENT.value:
            raise ValidationError("Selected client does not exist.")

        client_pets = self.store.query(PETS, {"owner_id": payload.client_id})
        if not client_pets:
            raise ValidationError("This client has no pets registered. Please add a pet first.")
        if payload.pet_id not in {p["id"] for p in client_pets}:
            raise ValidationError("Selected pet does not belong to this client.")

        data = {
            "pet_id": payload.pet_id,
            "owner_id": payload.client_id,
            "date": payload.date.isoformat(),
            "time": payload.time,
            "reason": payload.reason,
            "status": AppointmentStatus.CONFIRMED.value,
            "assigned_to": actor.uid,
            "created_by": actor.uid,
            "created_at": now_iso(),
        }
        appt_id = self.store.insert(APPOINTMENTS, data)

        self.audit.record(
            actor,
            AuditAction.APPT_CREATE_AUTO,
            f"Staff booked & auto-approved appointment #{appt_id} for client",
        )
        return Appointment(id=appt_id, **data)

    # -------------------------
    # Transitions
    # -------------------------
    def claim(self, actor: Actor, appointment_id: str) -> ClaimResult:
        """Pending -> Confirmed, assigned to the acting staff member."""
        authorize(actor, Operation.APPOINTMENT_CLAIM)

        def plan(current: Dict) -> Optional[WritePlan]:
            status = current.get("status")
            holder = current.get("assigned_to")

            if status == AppointmentStatus.DONE.value:
                raise InvalidTransitionError("Appointment is already completed.")

            if holder and holder != actor.uid:
                if actor.role != Role.ADMIN:
                    raise ConflictError("Already assigned to another staff member.")
            elif holder == actor.uid and status == AppointmentStatus.CONFIRMED.value:
                # already theirs
                return None

            return WritePlan(
                updates={
                    "status": AppointmentStatus.CONFIRMED.value,
                    "assigned_to": actor.uid,
                    "confirmed_at": now_iso(),
                }
            )

        result = self.store.update_if(APPOINTMENTS, appointment_id, plan)
        if result.applied:
            log_event("appointment_claimed", {"id": appointment_id, "by": actor.uid})
            self.audit.record(
                actor,
                AuditAction.APPT_ASSIGN,
                f"Staff assigned self to appt #{appointment_id}",
            )
        return ClaimResult(appointment=Appointment(**result.document), changed=result.applied)

    def complete(self, actor: Actor, appointment_id: str) -> CompletionResult:
        """Confirmed -> Done, and write the visit's medical record."""
        authorize(actor, Operation.APPOINTMENT_COMPLETE)
        built: Dict = {}

        def plan(current: Dict) -> WritePlan:
            status = current.get("status")
            if status == AppointmentStatus.DONE.value:
                raise InvalidTransitionError("Appointment is already completed.")
            if status != AppointmentStatus.CONFIRMED.value:
                raise InvalidTransitionError("Appointment must be confirmed before it is completed.")
            if actor.role != Role.ADMIN and current.get("assigned_to") != actor.uid:
                raise AuthorizationError("Only the assigned staff member can complete this appointment.")

            reason = current.get("reason") or ""
            notes = AUTO_NOTES_TEMPLATE.format(reason=reason)
            stamp = now_iso()
            built["notes"] = notes
            built["record"] = {
                "pet_id": current["pet_id"],
                "owner_id": current.get("owner_id"),
                "appointment_id": current["id"],
                "date": self.today().isoformat(),
                "diagnosis": AUTO_DIAGNOSIS,
                "treatment": reason,
                "created_by": actor.uid,
                "created_at": stamp,
                **self.cipher.encrypt(notes).as_fields(),
            }
            return WritePlan(
                updates={"status": AppointmentStatus.DONE.value, "completed_at": stamp},
                inserts=[(MEDICAL_RECORDS, built["record"])],
            )

        result = self.store.update_if(APPOINTMENTS, appointment_id, plan)
        record_id = result.inserted_ids[0]
        record = built["record"]

        self.audit.record(
            actor,
            AuditAction.RECORD_CREATE_AUTO,
            f"Auto medical record for appt #{appointment_id}",
        )
        logger.info("Appointment %s completed by %s; record %s", appointment_id, actor.uid, record_id)

        return CompletionResult(
            appointment=Appointment(**result.document),
            record=MedicalRecord(
                id=record_id,
                pet_id=record["pet_id"],
                owner_id=record["owner_id"],
                appointment_id=record["appointment_id"],
                date=record["date"],
                diagnosis=record["diagnosis"],
                treatment=record["treatment"],
                notes=built["notes"],
                created_by=record["created_by"],
                created_at=record["created_at"],
            ),
        )

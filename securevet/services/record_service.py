"""Medical records: manual entry by staff and role-scoped reads.

Records are append-only. Auto-generated records come from
``AppointmentService.complete``; this service covers the manual path and
listing, decrypting notes on the way out.
"""
import logging
from typing import List, Optional

from securevet.core.crypto import DecryptionError, FieldCipher
from securevet.core.errors import NotFoundError
from securevet.core.store import MEDICAL_RECORDS, PETS, DocumentStore
from securevet.models.audit import AuditAction
from securevet.models.medical_record import MedicalRecord, MedicalRecordIn
from securevet.models.user import Actor
from securevet.services.access_filter import AccessFilter
from securevet.services.audit import AuditRecorder
from securevet.services.policy import Operation, authorize
from securevet.services.time_utils import clinic_today, now_iso

logger = logging.getLogger(__name__)


class RecordService:
    def __init__(self, store: DocumentStore, audit: AuditRecorder, cipher: FieldCipher):
        self.store = store
        self.audit = audit
        self.cipher = cipher
        self.access = AccessFilter(store)

    def _open(self, doc) -> MedicalRecord:
        notes = None
        if doc.get("notes_encrypted"):
            try:
                notes = self.cipher.decrypt_fields(doc)
            except (DecryptionError, KeyError):
                # One unreadable record should not hide the rest of the history.
                logger.error("Could not decrypt notes for medical record %s", doc.get("id"))
        data = {k: v for k, v in doc.items() if k not in ("notes_encrypted", "iv", "key_id", "notes")}
        return MedicalRecord(**data, notes=notes)

    def list_records(self, actor: Actor, pet_id: Optional[str] = None) -> List[MedicalRecord]:
        return [self._open(d) for d in self.access.records_for(actor, pet_id)]

    def create_manual(self, actor: Actor, payload: MedicalRecordIn) -> MedicalRecord:
        authorize(actor, Operation.RECORD_CREATE)

        pet = self.store.get(PETS, payload.pet_id)
        if pet is None:
            raise NotFoundError("Pet not found")

        data = {
            "pet_id": payload.pet_id,
            "owner_id": pet.get("owner_id"),
            "appointment_id": None,
            "date": (payload.date or clinic_today()).isoformat(),
            "diagnosis": payload.diagnosis,
            "treatment": payload.treatment,
            "created_by": actor.uid,
            "created_at": now_iso(),
            **self.cipher.encrypt(payload.notes).as_fields(),
        }
        record_id = self.store.insert(MEDICAL_RECORDS, data)

        self.audit.record(
            actor,
            AuditAction.RECORD_CREATE_MANUAL,
            f"Manual medical record for pet #{payload.pet_id}",
        )
        return MedicalRecord(
            id=record_id,
            pet_id=data["pet_id"],
            owner_id=data["owner_id"],
            date=data["date"],
            diagnosis=data["diagnosis"],
            treatment=data["treatment"],
            notes=payload.notes,
            created_by=actor.uid,
            created_at=data["created_at"],
            pet_name=pet.get("name"),
        )

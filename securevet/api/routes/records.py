"""Medical record routes.

Notes are stored encrypted and decrypted on read for whoever may see the
record: staff and admins see every record, clients only their own pets'.
"""
from typing import Optional

from fastapi import APIRouter, Body, Depends

from securevet.api.deps import get_current_user, get_record_service, require_role
from securevet.models.medical_record import MedicalRecordIn
from securevet.services.policy import Operation

router = APIRouter(prefix="/records", tags=["records"])


@router.get("/")
def list_records(
    pet_id: Optional[str] = None,
    user=Depends(get_current_user),
    records=Depends(get_record_service),
):
    return {"items": records.list_records(user, pet_id)}


@router.post("/", status_code=201)
def create_record(
    payload: MedicalRecordIn = Body(...),
    user=Depends(require_role(Operation.RECORD_CREATE)),
    records=Depends(get_record_service),
):
    record = records.create_manual(user, payload)
    return {"message": "Saved", "id": record.id, "record": record}

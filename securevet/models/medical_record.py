"""Pydantic models for medical records.

Stored documents hold ``notes_encrypted``, ``iv`` and ``key_id``; the API
only ever returns the decrypted ``notes``.
"""
import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field


class MedicalRecordIn(BaseModel):
    pet_id: str = Field(..., min_length=1)
    date: Optional[dt.date] = None
    diagnosis: str = Field(..., min_length=1)
    treatment: str = ""
    notes: str = ""


class MedicalRecord(BaseModel):
    id: str
    pet_id: str
    owner_id: Optional[str] = None
    appointment_id: Optional[str] = None
    date: str
    diagnosis: str
    treatment: str = ""
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[str] = None
    pet_name: Optional[str] = None

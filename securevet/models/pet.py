"""Pydantic models for pets."""
from typing import Optional

from pydantic import BaseModel, Field


class PetIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=80)
    type: str = "Dog"
    breed: Optional[str] = None
    age: Optional[float] = Field(None, ge=0)
    weight: Optional[float] = Field(None, ge=0, description="kg")
    # Only staff/admin may set this; clients always own what they add
    owner_id: Optional[str] = None


class Pet(BaseModel):
    id: str
    owner_id: str
    name: str
    type: Optional[str] = None
    breed: Optional[str] = None
    age: Optional[float] = None
    weight: Optional[float] = None

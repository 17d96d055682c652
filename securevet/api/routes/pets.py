"""Pet routes."""
from typing import Optional

from fastapi import APIRouter, Body, Depends

from securevet.api.deps import get_current_user, get_pet_service
from securevet.models.pet import PetIn

router = APIRouter(prefix="/pets", tags=["pets"])


@router.get("/")
def list_pets(
    owner_id: Optional[str] = None,
    user=Depends(get_current_user),
    pets=Depends(get_pet_service),
):
    """Clients get their own pets; staff/admin get all, optionally by owner."""
    return {"items": pets.list_pets(user, owner_id)}


@router.post("/", status_code=201)
def add_pet(
    payload: PetIn = Body(...),
    user=Depends(get_current_user),
    pets=Depends(get_pet_service),
):
    pet = pets.add_pet(user, payload)
    return {"message": "Pet added", "id": pet.id, "pet": pet}


@router.get("/{pet_id}")
def get_pet(pet_id: str, user=Depends(get_current_user), pets=Depends(get_pet_service)):
    return pets.get_pet(user, pet_id)

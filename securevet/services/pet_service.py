"""Pet registration and lookup."""
from typing import List, Optional

from securevet.core.errors import NotFoundError, ValidationError
from securevet.core.store import PETS, USERS, DocumentStore
from securevet.models.pet import Pet, PetIn
from securevet.models.user import Actor, Role
from securevet.services.policy import Operation, authorize, is_allowed, sees_all


class PetService:
    def __init__(self, store: DocumentStore):
        self.store = store

    def add_pet(self, actor: Actor, payload: PetIn) -> Pet:
        """Clients add their own pets; staff/admin add pets for a client.

        The owner is fixed here and never changes afterwards.
        """
        authorize(actor, Operation.PET_CREATE)

        owner_id = actor.uid
        if payload.owner_id and payload.owner_id != actor.uid:
            authorize(actor, Operation.PET_CREATE_FOR_OTHERS)
            owner_id = payload.owner_id
        elif is_allowed(actor, Operation.PET_CREATE_FOR_OTHERS) and not payload.owner_id:
            raise ValidationError("owner_id is required when staff register a pet")

        owner = self.store.get(USERS, owner_id)
        if owner is None:
            raise NotFoundError("Owner not found")
        if owner.get("role") != Role.CLIENT.value:
            raise ValidationError("Pets can only belong to client accounts")

        data = payload.model_dump(exclude={"owner_id"})
        data["owner_id"] = owner_id
        pet_id = self.store.insert(PETS, data)
        return Pet(id=pet_id, **data)

    def list_pets(self, actor: Actor, owner_id: Optional[str] = None) -> List[Pet]:
        authorize(actor, Operation.PET_VIEW)
        if not sees_all(actor):
            owner_id = actor.uid
        docs = self.store.query(PETS, {"owner_id": owner_id} if owner_id else None)
        pets = [Pet(**d) for d in docs]
        pets.sort(key=lambda p: (p.name or "").lower())
        return pets

    def get_pet(self, actor: Actor, pet_id: str) -> Pet:
        authorize(actor, Operation.PET_VIEW)
        doc = self.store.get(PETS, pet_id)
        if doc is None or (not sees_all(actor) and doc.get("owner_id") != actor.uid):
            raise NotFoundError("Pet not found")
        return Pet(**doc)

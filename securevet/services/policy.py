"""Capability policy.

Every service operation and every route guard asks ``authorize`` (or
``is_allowed``) about a named operation. Role logic lives here only.
"""
from enum import Enum
from typing import Dict, FrozenSet

from securevet.core.errors import AuthorizationError
from securevet.models.user import Actor, Role


class Operation(str, Enum):
    APPOINTMENT_REQUEST = "appointment.request"
    APPOINTMENT_CLAIM = "appointment.claim"
    APPOINTMENT_COMPLETE = "appointment.complete"
    APPOINTMENT_BOOK = "appointment.book_for_client"
    APPOINTMENT_VIEW = "appointment.view"
    PET_CREATE = "pet.create"
    PET_CREATE_FOR_OTHERS = "pet.create_for_others"
    PET_VIEW = "pet.view"
    RECORD_CREATE = "record.create"
    RECORD_VIEW = "record.view"
    CLIENT_LIST = "client.list"
    USER_MANAGE = "user.manage"
    AUDIT_READ = "audit.read"
    PASSWORD_REQUEST_MANAGE = "password_request.manage"


ALL_ROLES = frozenset(Role)
STAFF_ROLES = frozenset({Role.STAFF, Role.ADMIN})
ADMIN_ONLY = frozenset({Role.ADMIN})

CAPABILITIES: Dict[Operation, FrozenSet[Role]] = {
    Operation.APPOINTMENT_REQUEST: frozenset({Role.CLIENT}),
    Operation.APPOINTMENT_CLAIM: STAFF_ROLES,
    Operation.APPOINTMENT_COMPLETE: STAFF_ROLES,
    Operation.APPOINTMENT_BOOK: STAFF_ROLES,
    Operation.APPOINTMENT_VIEW: ALL_ROLES,
    Operation.PET_CREATE: ALL_ROLES,
    Operation.PET_CREATE_FOR_OTHERS: STAFF_ROLES,
    Operation.PET_VIEW: ALL_ROLES,
    Operation.RECORD_CREATE: STAFF_ROLES,
    Operation.RECORD_VIEW: ALL_ROLES,
    Operation.CLIENT_LIST: STAFF_ROLES,
    Operation.USER_MANAGE: ADMIN_ONLY,
    Operation.AUDIT_READ: ADMIN_ONLY,
    Operation.PASSWORD_REQUEST_MANAGE: ADMIN_ONLY,
}


def is_allowed(actor: Actor, operation: Operation) -> bool:
    return actor.role in CAPABILITIES.get(operation, frozenset())


def authorize(actor: Actor, operation: Operation) -> None:
    if not is_allowed(actor, operation):
        raise AuthorizationError("Access Denied: Insufficient Permissions")


def sees_all(actor: Actor) -> bool:
    """Staff-side roles see every client's pets and records."""
    return actor.role in STAFF_ROLES

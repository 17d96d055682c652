"""
API dependencies: token verification, role guards, and service wiring.

Every route receives an explicit ``Actor``; nothing reads an ambient
"current user". Tests swap ``get_store`` / ``get_cipher`` through
``app.dependency_overrides``.
"""

from functools import lru_cache
from typing import Callable, Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import auth

from securevet.core import firebase, security
from securevet.core.config import settings
from securevet.core.crypto import FieldCipher, build_cipher
from securevet.core.errors import AuthenticationError, AuthorizationError
from securevet.core.store import DocumentStore, FirestoreStore
from securevet.models.user import Actor, Role
from securevet.services.access_filter import AccessFilter
from securevet.services.account_service import AccountService, AdminService
from securevet.services.appointment_service import AppointmentService
from securevet.services.audit import AuditRecorder
from securevet.services.notifications import EmailNotifier
from securevet.services.pet_service import PetService
from securevet.services.policy import Operation, is_allowed
from securevet.services.record_service import RecordService

security_scheme = HTTPBearer(auto_error=False)


# -------------------------
# Infrastructure
# -------------------------
def get_store() -> DocumentStore:
    return FirestoreStore(firebase.get_db())


@lru_cache
def get_cipher() -> FieldCipher:
    return build_cipher()


@lru_cache
def get_notifier() -> EmailNotifier:
    return EmailNotifier()


def get_audit(store: DocumentStore = Depends(get_store)) -> AuditRecorder:
    return AuditRecorder(store)


def get_account_service(
    store: DocumentStore = Depends(get_store),
    audit: AuditRecorder = Depends(get_audit),
) -> AccountService:
    return AccountService(store, audit)


# -------------------------
# Identity
# -------------------------
def _actor_from_session(token: str) -> Actor:
    claims = security.decode_access_token(token)
    try:
        return Actor(
            uid=claims["sub"],
            email=claims.get("email"),
            name=claims.get("name"),
            role=claims.get("role"),
        )
    except (KeyError, ValueError) as exc:
        raise AuthenticationError("Invalid token") from exc


def _role_or_none(value) -> Optional[Role]:
    if value is None:
        return None
    try:
        return Role(value)
    except ValueError as exc:
        raise AuthorizationError(f"Unknown role {value!r}") from exc


def _actor_from_firebase(token: str, accounts: AccountService) -> Actor:
    try:
        decoded = auth.verify_id_token(token)
    except Exception as exc:
        raise AuthenticationError("Invalid ID token") from exc

    uid = decoded["uid"]
    claim_role = _role_or_none(decoded.get("role"))
    profile = accounts.ensure_profile(uid, decoded.get("email"), decoded.get("name"), claim_role)

    # the custom claim wins; without one the Firestore profile decides
    role = claim_role or _role_or_none(profile.get("role")) or Role.CLIENT
    return Actor(
        uid=uid,
        email=decoded.get("email") or profile.get("email"),
        name=decoded.get("name") or profile.get("name"),
        role=role,
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security_scheme),
    accounts: AccountService = Depends(get_account_service),
) -> Actor:
    """
    Resolve the caller from the Authorization header.

    Expects:
        Authorization: Bearer <token>
    where the token is a session token issued by /auth/login, or a Firebase
    ID token when AUTH_PROVIDER=firebase. A Firebase user seen for the
    first time gets a clinic profile here.
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Access Denied: No Token")

    token = credentials.credentials
    if settings.AUTH_PROVIDER == "firebase":
        return _actor_from_firebase(token, accounts)
    return _actor_from_session(token)


def require_role(operation: Operation) -> Callable:
    """
    Return a FastAPI dependency that rejects callers whose role is not in
    the capability set of ``operation``.
    """

    def _checker(user: Actor = Depends(get_current_user)) -> Actor:
        if not is_allowed(user, operation):
            raise HTTPException(
                status_code=403,
                detail="Access Denied: Insufficient Permissions",
            )
        return user

    return _checker


# -------------------------
# Services
# -------------------------
def get_access_filter(store: DocumentStore = Depends(get_store)) -> AccessFilter:
    return AccessFilter(store)


def get_appointment_service(
    store: DocumentStore = Depends(get_store),
    audit: AuditRecorder = Depends(get_audit),
    cipher: FieldCipher = Depends(get_cipher),
) -> AppointmentService:
    return AppointmentService(store, audit, cipher)


def get_record_service(
    store: DocumentStore = Depends(get_store),
    audit: AuditRecorder = Depends(get_audit),
    cipher: FieldCipher = Depends(get_cipher),
) -> RecordService:
    return RecordService(store, audit, cipher)


def get_pet_service(store: DocumentStore = Depends(get_store)) -> PetService:
    return PetService(store)


def get_admin_service(
    store: DocumentStore = Depends(get_store),
    audit: AuditRecorder = Depends(get_audit),
    accounts: AccountService = Depends(get_account_service),
) -> AdminService:
    return AdminService(store, audit, accounts)

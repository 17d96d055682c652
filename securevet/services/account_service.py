"""Accounts: registration, login, profile, password, second factor, and
the admin-side user and password-request management.

With AUTH_PROVIDER=firebase, Firebase Authentication owns credentials, so
the credential operations here refuse and only profile data is handled.
"""
import logging
from typing import Dict, List, Optional

from securevet.core import security
from securevet.core.config import settings
from securevet.core.errors import (
    AuthenticationError,
    NotFoundError,
    ValidationError,
)
from securevet.core.store import PASSWORD_REQUESTS, USERS, DocumentStore
from securevet.models.audit import AuditAction, PasswordRequest, PasswordRequestStatus
from securevet.models.user import (
    Actor,
    AdminUserCreateIn,
    AdminUserUpdateIn,
    LoginIn,
    LoginResult,
    PasswordChangeIn,
    ProfileUpdateIn,
    RegisterIn,
    Role,
    TwoFactorEnableIn,
    TwoFactorSetup,
    UserProfile,
)
from securevet.services.audit import AuditRecorder
from securevet.services.policy import Operation, authorize
from securevet.services.time_utils import now_iso

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def to_profile(doc: Dict) -> UserProfile:
    return UserProfile(
        id=doc["id"],
        name=doc.get("name") or "",
        email=doc.get("email"),
        phone=doc.get("phone") or "",
        role=doc.get("role") or Role.CLIENT.value,
        two_factor_enabled=bool(doc.get("two_factor_enabled")),
    )


class AccountService:
    def __init__(
        self,
        store: DocumentStore,
        audit: AuditRecorder,
        local_credentials: Optional[bool] = None,
    ):
        self.store = store
        self.audit = audit
        if local_credentials is None:
            local_credentials = settings.AUTH_PROVIDER == "local"
        self.local_credentials = local_credentials

    # -------------------------
    # Helpers
    # -------------------------
    def _require_local(self):
        if not self.local_credentials:
            raise ValidationError("Credentials are managed by Firebase Authentication")

    def find_by_email(self, email: str) -> Optional[Dict]:
        docs = self.store.query(USERS, {"email": _normalize_email(email)}, limit=1)
        return docs[0] if docs else None

    def load(self, uid: str) -> Dict:
        doc = self.store.get(USERS, uid)
        if doc is None:
            raise NotFoundError("User not found")
        return doc

    def create_account(self, name, email, phone, password, role: Role) -> str:
        email = _normalize_email(email)
        if self.find_by_email(email) is not None:
            raise ValidationError("Email already exists.")
        return self.store.insert(
            USERS,
            {
                "name": name.strip(),
                "email": email,
                "phone": phone or "",
                "password_hash": security.hash_password(password),
                "role": role.value,
                "two_factor_enabled": False,
                "two_factor_secret": None,
                "created_at": now_iso(),
            },
        )

    # -------------------------
    # Self-service
    # -------------------------
    def register(self, payload: RegisterIn) -> UserProfile:
        """Public sign-up. Always creates a client account."""
        self._require_local()
        uid = self.create_account(payload.name, payload.email, payload.phone, payload.password, Role.CLIENT)
        logger.info("Registered client account %s", uid)
        self.audit.record(_normalize_email(payload.email), AuditAction.USER_REGISTER, f"Client registered #{uid}")
        return to_profile(self.load(uid))

    def ensure_profile(
        self,
        uid: str,
        email: Optional[str],
        name: Optional[str] = None,
        role: Optional[Role] = None,
    ) -> Dict:
        """Profile for an identity verified by Firebase, created on first sign-in.

        Firebase Authentication owns the account, so the first request that
        carries a new uid is the sign-up as far as the clinic is concerned.
        New profiles get the role from the token claim, otherwise client.
        """
        doc = self.store.get(USERS, uid)
        if doc is not None:
            return doc

        email = _normalize_email(email) or None
        data = {
            "name": (name or (email or "").split("@")[0]).strip(),
            "email": email,
            "phone": "",
            "role": (role or Role.CLIENT).value,
            "two_factor_enabled": False,
            "two_factor_secret": None,
            "created_at": now_iso(),
        }
        if self.store.create(USERS, uid, data):
            logger.info("Created profile for Firebase user %s", uid)
            self.audit.record(email or uid, AuditAction.USER_REGISTER, f"Profile created on first sign-in #{uid}")
        # a concurrent first request may have won the create; read whichever exists
        return self.load(uid)

    def login(self, payload: LoginIn) -> LoginResult:
        self._require_local()
        email = _normalize_email(payload.email)
        user = self.find_by_email(email)

        if user is None or not security.verify_password(payload.password, user.get("password_hash")):
            self.audit.record(email, AuditAction.LOGIN_FAILED, "Invalid credentials")
            raise AuthenticationError(INVALID_CREDENTIALS)

        if user.get("two_factor_enabled"):
            if not payload.code:
                return LoginResult(require_2fa=True)
            if not security.verify_totp(user.get("two_factor_secret"), payload.code):
                self.audit.record(email, AuditAction.LOGIN_FAILED, "Invalid 2FA code")
                raise AuthenticationError("Invalid 2FA Code")

        profile = to_profile(user)
        token = security.create_access_token(
            {"sub": profile.id, "email": profile.email, "name": profile.name, "role": profile.role.value}
        )
        details = "Successful Login with 2FA" if user.get("two_factor_enabled") else "Successful Login"
        self.audit.record(email, AuditAction.LOGIN_SUCCESS, details)
        return LoginResult(token=token, user=profile)

    def profile(self, actor: Actor) -> UserProfile:
        return to_profile(self.load(actor.uid))

    def update_profile(self, actor: Actor, payload: ProfileUpdateIn) -> UserProfile:
        self.load(actor.uid)
        self.store.update(USERS, actor.uid, {"name": payload.name.strip(), "phone": payload.phone or ""})
        self.audit.record(actor, AuditAction.PROFILE_UPDATE, "User updated profile information")
        return to_profile(self.load(actor.uid))

    def change_password(self, actor: Actor, payload: PasswordChangeIn) -> None:
        self._require_local()
        user = self.load(actor.uid)
        if not security.verify_password(payload.current_password, user.get("password_hash")):
            raise ValidationError("Incorrect password")

        self.store.update(USERS, actor.uid, {"password_hash": security.hash_password(payload.new_password)})
        self.audit.record(actor, AuditAction.PASSWORD_CHANGE, "User changed password")

    def setup_2fa(self, actor: Actor) -> TwoFactorSetup:
        """Hand out a fresh secret. Nothing is stored until ``enable_2fa`` proves it works."""
        self._require_local()
        secret = security.new_totp_secret()
        return TwoFactorSetup(secret=secret, otpauth=security.totp_uri(secret, actor.email or actor.uid))

    def enable_2fa(self, actor: Actor, payload: TwoFactorEnableIn) -> None:
        self._require_local()
        if not security.verify_totp(payload.secret, payload.token):
            raise ValidationError("Invalid Token")
        self.load(actor.uid)
        self.store.update(USERS, actor.uid, {"two_factor_enabled": True, "two_factor_secret": payload.secret})
        self.audit.record(actor, AuditAction.TWO_FACTOR_ENABLE, "User enabled two-factor authentication")

    def disable_2fa(self, actor: Actor) -> None:
        self._require_local()
        self.load(actor.uid)
        self.store.update(USERS, actor.uid, {"two_factor_enabled": False, "two_factor_secret": None})
        self.audit.record(actor, AuditAction.TWO_FACTOR_DISABLE, "User disabled two-factor authentication")

    def forgot_password(self, email: str) -> bool:
        """Log a reset request for an administrator.

        Returns whether the account exists so the caller can decide whether
        to send mail; the HTTP response must not reveal it.
        """
        email = _normalize_email(email)
        self.store.insert(
            PASSWORD_REQUESTS,
            {
                "email": email,
                "status": PasswordRequestStatus.PENDING.value,
                "request_date": now_iso(),
            },
        )
        return self.find_by_email(email) is not None

    def list_clients(self, actor: Actor) -> List[UserProfile]:
        authorize(actor, Operation.CLIENT_LIST)
        docs = self.store.query(USERS, {"role": Role.CLIENT.value})
        return sorted((to_profile(d) for d in docs), key=lambda u: u.name.lower())


class AdminService:
    """User management and password-request handling for administrators."""

    def __init__(self, store: DocumentStore, audit: AuditRecorder, accounts: AccountService):
        self.store = store
        self.audit = audit
        self.accounts = accounts

    def list_users(self, actor: Actor) -> List[UserProfile]:
        authorize(actor, Operation.USER_MANAGE)
        return [to_profile(d) for d in self.store.query(USERS)]

    def create_user(self, actor: Actor, payload: AdminUserCreateIn) -> UserProfile:
        authorize(actor, Operation.USER_MANAGE)

        if self.accounts.local_credentials:
            uid = self.accounts.create_account(
                payload.name, payload.email, payload.phone, payload.password, payload.role
            )
        else:
            # Firebase accounts are created by signing up; admins promote them.
            existing = self.accounts.find_by_email(payload.email)
            if existing is None:
                raise NotFoundError("No existing account found for this email. Ask the user to register first.")
            uid = existing["id"]
            self.store.update(
                USERS, uid, {"name": payload.name, "phone": payload.phone or "", "role": payload.role.value}
            )

        self.audit.record(actor, AuditAction.USER_CREATE, f"Admin created {payload.role.value} account #{uid}")
        return to_profile(self.accounts.load(uid))

    def update_user(self, actor: Actor, user_id: str, payload: AdminUserUpdateIn) -> UserProfile:
        authorize(actor, Operation.USER_MANAGE)
        self.accounts.load(user_id)

        updates = {}
        if payload.name is not None:
            updates["name"] = payload.name.strip()
        if payload.phone is not None:
            updates["phone"] = payload.phone
        if payload.role is not None:
            if user_id == actor.uid and payload.role != Role.ADMIN:
                raise ValidationError("You cannot remove your own admin role")
            updates["role"] = payload.role.value
        if not updates:
            raise ValidationError("Nothing to update")

        self.store.update(USERS, user_id, updates)
        self.audit.record(
            actor, AuditAction.USER_UPDATE, f"Admin updated user #{user_id} ({', '.join(sorted(updates))})"
        )
        return to_profile(self.accounts.load(user_id))

    def delete_user(self, actor: Actor, user_id: str) -> None:
        authorize(actor, Operation.USER_MANAGE)
        if user_id == actor.uid:
            raise ValidationError("You cannot delete your own account")
        self.accounts.load(user_id)
        self.store.delete(USERS, user_id)
        self.audit.record(actor, AuditAction.USER_DELETE, f"Admin deleted user #{user_id}")

    def pending_password_requests(self, actor: Actor) -> List[PasswordRequest]:
        authorize(actor, Operation.PASSWORD_REQUEST_MANAGE)
        docs = self.store.query(PASSWORD_REQUESTS, {"status": PasswordRequestStatus.PENDING.value})
        docs.sort(key=lambda d: d.get("request_date") or "")
        return [PasswordRequest(**d) for d in docs]

    def resolve_password_request(self, actor: Actor, request_id: str) -> PasswordRequest:
        authorize(actor, Operation.PASSWORD_REQUEST_MANAGE)
        doc = self.store.get(PASSWORD_REQUESTS, request_id)
        if doc is None:
            raise NotFoundError("Password request not found")
        updates = {
            "status": PasswordRequestStatus.RESOLVED.value,
            "resolved_by": actor.email or actor.uid,
            "resolved_at": now_iso(),
        }
        self.store.update(PASSWORD_REQUESTS, request_id, updates)
        return PasswordRequest(**{**doc, **updates})

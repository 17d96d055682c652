"""Pydantic models for audit log entries and password-reset requests."""
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class AuditAction(str, Enum):
    USER_REGISTER = "USER_REGISTER"
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    PASSWORD_CHANGE = "PASSWORD_CHANGE"
    TWO_FACTOR_ENABLE = "2FA_ENABLE"
    TWO_FACTOR_DISABLE = "2FA_DISABLE"
    PROFILE_UPDATE = "PROFILE_UPDATE"
    USER_CREATE = "USER_CREATE"
    USER_UPDATE = "USER_UPDATE"
    USER_DELETE = "USER_DELETE"
    APPT_REQUEST = "APPT_REQUEST"
    APPT_ASSIGN = "APPT_ASSIGN"
    APPT_CREATE_AUTO = "APPT_CREATE_AUTO"
    RECORD_CREATE_AUTO = "RECORD_CREATE_AUTO"
    RECORD_CREATE_MANUAL = "RECORD_CREATE_MANUAL"


class AuditLogEntry(BaseModel):
    id: str
    user_email: str
    action: str
    details: str = ""
    timestamp: str


class PasswordRequestStatus(str, Enum):
    PENDING = "Pending"
    RESOLVED = "Resolved"


class PasswordRequest(BaseModel):
    id: str
    email: str
    status: PasswordRequestStatus = PasswordRequestStatus.PENDING
    request_date: str
    resolved_by: Optional[str] = None
    resolved_at: Optional[str] = None

"""Pydantic models for accounts and the authenticated actor."""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class Role(str, Enum):
    CLIENT = "client"
    STAFF = "staff"
    ADMIN = "admin"


class Actor(BaseModel):
    """The authenticated identity performing an operation."""

    uid: str
    email: Optional[str] = None
    name: Optional[str] = None
    role: Role


class UserProfile(BaseModel):
    """Account as exposed over the API (never includes credential material)."""

    id: str
    name: str = ""
    email: Optional[str] = None
    phone: str = ""
    role: Role = Role.CLIENT
    two_factor_enabled: bool = False


class RegisterIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    phone: Optional[str] = ""
    password: str = Field(..., min_length=8)


class LoginIn(BaseModel):
    email: EmailStr
    password: str
    code: Optional[str] = None


class LoginResult(BaseModel):
    require_2fa: bool = False
    token: Optional[str] = None
    user: Optional[UserProfile] = None


class ProfileUpdateIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    phone: Optional[str] = ""


class PasswordChangeIn(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8)


class TwoFactorSetup(BaseModel):
    secret: str
    otpauth: str


class TwoFactorEnableIn(BaseModel):
    secret: str
    token: str


class ForgotPasswordIn(BaseModel):
    email: EmailStr


class AdminUserCreateIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: Role = Role.STAFF
    phone: Optional[str] = ""


class AdminUserUpdateIn(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    role: Optional[Role] = None
    phone: Optional[str] = None

"""Authentication and account self-service routes.

With AUTH_PROVIDER=firebase the frontend signs in with Firebase and only
``/auth/me``, ``/auth/profile`` and ``/auth/forgot-password`` apply; the
clinic profile is created on the first authenticated request.
"""
from fastapi import APIRouter, BackgroundTasks, Body, Depends, Request

from securevet.api.deps import get_account_service, get_current_user, get_notifier
from securevet.core.config import settings
from securevet.core.rate_limit import limiter
from securevet.models.user import (
    ForgotPasswordIn,
    LoginIn,
    PasswordChangeIn,
    ProfileUpdateIn,
    RegisterIn,
    TwoFactorEnableIn,
)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=201)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def register(request: Request, payload: RegisterIn = Body(...), accounts=Depends(get_account_service)):
    profile = accounts.register(payload)
    return {"message": "Registration successful", "user": profile}


@router.post("/login")
@limiter.limit(settings.AUTH_RATE_LIMIT)
def login(request: Request, payload: LoginIn = Body(...), accounts=Depends(get_account_service)):
    return accounts.login(payload)


@router.get("/me")
def get_me(user=Depends(get_current_user), accounts=Depends(get_account_service)):
    return accounts.profile(user)


@router.post("/forgot-password")
@limiter.limit(settings.AUTH_RATE_LIMIT)
def forgot_password(
    request: Request,
    background_tasks: BackgroundTasks,
    payload: ForgotPasswordIn = Body(...),
    accounts=Depends(get_account_service),
    notifier=Depends(get_notifier),
):
    if accounts.forgot_password(payload.email):
        background_tasks.add_task(notifier.password_reset_requested, payload.email)
    # Same answer either way so the endpoint cannot be used to probe accounts
    return {"message": "If an account exists for this email, the clinic will be in touch."}


@router.put("/profile")
def update_profile(
    payload: ProfileUpdateIn = Body(...),
    user=Depends(get_current_user),
    accounts=Depends(get_account_service),
):
    profile = accounts.update_profile(user, payload)
    return {"message": "Profile updated", "user": profile}


@router.put("/password")
def change_password(
    payload: PasswordChangeIn = Body(...),
    user=Depends(get_current_user),
    accounts=Depends(get_account_service),
):
    accounts.change_password(user, payload)
    return {"message": "Password updated"}


@router.post("/2fa/setup")
def setup_2fa(user=Depends(get_current_user), accounts=Depends(get_account_service)):
    return accounts.setup_2fa(user)


@router.post("/2fa/enable")
def enable_2fa(
    payload: TwoFactorEnableIn = Body(...),
    user=Depends(get_current_user),
    accounts=Depends(get_account_service),
):
    accounts.enable_2fa(user, payload)
    return {"message": "2FA Enabled"}


@router.post("/2fa/disable")
def disable_2fa(user=Depends(get_current_user), accounts=Depends(get_account_service)):
    accounts.disable_2fa(user)
    return {"message": "2FA Disabled"}

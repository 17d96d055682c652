"""Admin routes: users, audit log, password-reset requests."""
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from securevet.api.deps import get_admin_service, get_audit, require_role
from securevet.models.user import AdminUserCreateIn, AdminUserUpdateIn
from securevet.services.policy import Operation

router = APIRouter(prefix="/admin", tags=["admin"])

admin_only = require_role(Operation.USER_MANAGE)


@router.get("/users")
def list_users(user=Depends(admin_only), admin=Depends(get_admin_service)):
    return {"items": admin.list_users(user)}


@router.post("/users", status_code=201)
def create_user(
    payload: AdminUserCreateIn = Body(...),
    user=Depends(admin_only),
    admin=Depends(get_admin_service),
):
    created = admin.create_user(user, payload)
    return {"message": "User created", "id": created.id, "user": created}


@router.put("/users/{user_id}")
def update_user(
    user_id: str,
    payload: AdminUserUpdateIn = Body(...),
    user=Depends(admin_only),
    admin=Depends(get_admin_service),
):
    updated = admin.update_user(user, user_id, payload)
    return {"message": "User updated", "user": updated}


@router.delete("/users/{user_id}")
def delete_user(user_id: str, user=Depends(admin_only), admin=Depends(get_admin_service)):
    admin.delete_user(user, user_id)
    return {"message": "Deleted"}


@router.get("/logs")
def list_logs(
    limit: Optional[int] = Query(None, ge=1, le=500),
    user=Depends(require_role(Operation.AUDIT_READ)),
    audit=Depends(get_audit),
):
    return {"items": audit.recent(user, limit)}


@router.get("/password-requests")
def list_password_requests(
    user=Depends(require_role(Operation.PASSWORD_REQUEST_MANAGE)),
    admin=Depends(get_admin_service),
):
    return {"items": admin.pending_password_requests(user)}


@router.put("/password-requests/{request_id}")
def resolve_password_request(
    request_id: str,
    user=Depends(require_role(Operation.PASSWORD_REQUEST_MANAGE)),
    admin=Depends(get_admin_service),
):
    request = admin.resolve_password_request(user, request_id)
    return {"message": "Resolved", "request": request}

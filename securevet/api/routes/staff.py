from fastapi import APIRouter, Depends

from securevet.api.deps import get_account_service, require_role
from securevet.services.policy import Operation

router = APIRouter(prefix="/staff", tags=["staff"])


@router.get("/clients")
def list_clients(
    user=Depends(require_role(Operation.CLIENT_LIST)),
    accounts=Depends(get_account_service),
):
    """Client accounts, for booking on a client's behalf."""
    return {"items": accounts.list_clients(user)}

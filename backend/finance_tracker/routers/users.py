from fastapi import APIRouter, Depends

from finance_tracker.core.errors import Forbidden, NotFound
from finance_tracker.core.logging import get_logger
from finance_tracker.db.store import storage_errors
from finance_tracker.models.api import MessageResponse, RoleUpdateRequest
from finance_tracker.routers.deps import get_store, parse_record_id, require_admin
from finance_tracker.services.auth import serialize_account

logger = get_logger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("")
def list_users(_admin: dict = Depends(require_admin), store=Depends(get_store)):
    with storage_errors("fetching users"):
        rows = store.list_accounts()
    return {"success": True, "users": [serialize_account(row) for row in rows]}


@router.put("/{account_id}/role")
def update_user_role(
    account_id: str,
    payload: RoleUpdateRequest,
    admin: dict = Depends(require_admin),
    store=Depends(get_store),
):
    target_id = parse_record_id(account_id)
    if target_id is None:
        raise NotFound("User not found")
    if target_id == admin["account_id"]:
        raise Forbidden("Admins cannot change their own role")
    with storage_errors("updating user role"):
        row = store.update_account_role(target_id, payload.role)
    if not row:
        raise NotFound("User not found")
    logger.info("Account %s set role of %s to %s", admin["account_id"], target_id, payload.role)
    return {"success": True, "message": "User role updated successfully", "user": serialize_account(row)}


@router.delete("/{account_id}", response_model=MessageResponse)
def delete_user(account_id: str, admin: dict = Depends(require_admin), store=Depends(get_store)):
    target_id = parse_record_id(account_id)
    if target_id is None:
        raise NotFound("User not found")
    if target_id == admin["account_id"]:
        raise Forbidden("Admins cannot delete their own account")
    with storage_errors("deleting user"):
        deleted = store.delete_account(target_id)
    if not deleted:
        raise NotFound("User not found")
    logger.info("Account %s deleted account %s", admin["account_id"], target_id)
    return {"success": True, "message": "User deleted successfully"}

import uuid
from datetime import date

from fastapi import Depends, Request

from finance_tracker.core.errors import Forbidden
from finance_tracker.db.store import PostgresStore, storage_errors
from finance_tracker.roles import can_manage_users, can_write
from finance_tracker.services.auth import parse_bearer_token, resolve_account
from finance_tracker.services.transactions import today_utc

_store = PostgresStore()


def get_store() -> PostgresStore:
    return _store


def get_today() -> date:
    return today_utc()


def require_account(req: Request, store=Depends(get_store)) -> dict:
    token = parse_bearer_token(req)
    with storage_errors("authenticating"):
        account = resolve_account(store, token)
    req.state.account = account
    return account


def require_writer(account: dict = Depends(require_account)) -> dict:
    if not can_write(account["role"]):
        raise Forbidden("Access denied. Read-only users cannot modify data.")
    return account


def require_admin(account: dict = Depends(require_account)) -> dict:
    if not can_manage_users(account["role"]):
        raise Forbidden("Access denied. Admin role required.")
    return account


def parse_record_id(value: str) -> str | None:
    """Return the canonical UUID string, or None when ``value`` is not one."""
    try:
        return str(uuid.UUID(value))
    except (TypeError, ValueError):
        return None

import hashlib
import secrets
from typing import Any

from fastapi import Request
from passlib.hash import bcrypt

from finance_tracker.core.config import settings
from finance_tracker.core.errors import Forbidden, Unauthenticated, ValidationFailed, field_error
from finance_tracker.core.logging import get_logger
from finance_tracker.roles import ADMIN, USER

logger = get_logger(__name__)

TOKEN_PREFIX = "pft_"


def new_access_token() -> tuple[str, str]:
    plain = f"{TOKEN_PREFIX}{secrets.token_urlsafe(32)}"
    return plain, hash_token(plain)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def parse_bearer_token(req: Request) -> str:
    header = req.headers.get("authorization", "")
    parts = header.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise Unauthenticated("Access denied. No token provided.")
    return parts[1].strip()


def resolve_account(store, token: str) -> dict[str, Any]:
    account = store.get_account_by_token(hash_token(token))
    if not account:
        logger.info("Rejected bearer token with unknown or revoked hash")
        raise Unauthenticated("Invalid token")
    return account


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def serialize_account(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": str(row["account_id"]),
        "name": row["name"],
        "email": row["email"],
        "role": row["role"],
        "createdAt": row.get("created_at"),
    }


def validate_registration(data: dict[str, Any]) -> tuple[str, str, str, str]:
    name = (data.get("name") or "").strip()
    email = normalize_email(data.get("email"))
    password = data.get("password") or ""
    role = data.get("role") or USER

    errors = []
    if not name:
        errors.append(field_error("name", "name is required"))
    if not settings.email_re.fullmatch(email):
        errors.append(field_error("email", "a valid email is required"))
    if len(password) < settings.password_min_len:
        errors.append(field_error("password", f"password must be at least {settings.password_min_len} characters"))
    elif len(password.encode("utf-8")) > 72:
        errors.append(field_error("password", "password must be at most 72 bytes"))
    if errors:
        raise ValidationFailed(errors)

    if role == ADMIN and not settings.allow_admin_signup:
        raise Forbidden("Admin accounts cannot be self-registered")
    return name, email, password, role


def register_account(store, data: dict[str, Any]) -> tuple[str, dict[str, Any]]:
    name, email, password, role = validate_registration(data)
    pw_hash = bcrypt.using(rounds=settings.bcrypt_rounds).hash(password)
    token, token_hash = new_access_token()
    account = store.create_account(name, email, pw_hash, role, token_hash)
    logger.info("Registered account %s with role %s", account["account_id"], role)
    return token, account


def login(store, email: str, password: str) -> tuple[str, dict[str, Any]]:
    row = store.get_credentials(normalize_email(email))
    # Unknown email and wrong password are reported identically.
    if not row or not bcrypt.verify(password or "", row["password_hash"]):
        raise Unauthenticated("Invalid credentials")
    token, token_hash = new_access_token()
    store.add_token(row["account_id"], token_hash)
    account = {key: value for key, value in row.items() if key != "password_hash"}
    return token, account


def logout(store, token: str) -> None:
    store.revoke_token(hash_token(token))

from fastapi import APIRouter, Depends, Request

from finance_tracker.db.store import storage_errors
from finance_tracker.models.api import AuthResponse, LoginRequest, MessageResponse, RegisterRequest
from finance_tracker.routers.deps import get_store, require_account
from finance_tracker.services import auth

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=201, response_model=AuthResponse)
def register(payload: RegisterRequest, store=Depends(get_store)):
    with storage_errors("registering user"):
        token, account = auth.register_account(store, payload.model_dump())
    return {
        "success": True,
        "message": "User registered successfully",
        "token": token,
        "user": auth.serialize_account(account),
    }


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, store=Depends(get_store)):
    with storage_errors("logging in"):
        token, account = auth.login(store, payload.email, payload.password)
    return {
        "success": True,
        "message": "Login successful",
        "token": token,
        "user": auth.serialize_account(account),
    }


@router.get("/verify")
def verify(account: dict = Depends(require_account)):
    return {"success": True, "user": auth.serialize_account(account)}


@router.post("/logout", response_model=MessageResponse)
def logout(req: Request, _account: dict = Depends(require_account), store=Depends(get_store)):
    with storage_errors("logging out"):
        auth.logout(store, auth.parse_bearer_token(req))
    return {"success": True, "message": "Logged out"}

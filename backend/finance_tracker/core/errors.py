from typing import Any

from fastapi import HTTPException


class ApiError(HTTPException):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(status_code=type(self).status_code, detail=message or self.default_message)

    def payload(self) -> dict[str, Any]:
        return {"success": False, "message": self.detail}


class Unauthenticated(ApiError):
    status_code = 401
    default_message = "Authentication required"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message)
        self.headers = {"WWW-Authenticate": "Bearer"}


class Forbidden(ApiError):
    status_code = 403
    default_message = "Access denied"


class NotFound(ApiError):
    status_code = 404
    default_message = "Resource not found"


class Conflict(ApiError):
    status_code = 409
    default_message = "Resource already exists"


class ValidationFailed(ApiError):
    status_code = 400
    default_message = "Validation failed"

    def __init__(self, errors: list[dict[str, str]], message: str | None = None) -> None:
        super().__init__(message)
        self.errors = errors

    def payload(self) -> dict[str, Any]:
        return {"success": False, "message": self.detail, "errors": self.errors}


def field_error(field: str, message: str) -> dict[str, str]:
    return {"field": field, "message": message}


def errors_from_pydantic(raw_errors: list[dict[str, Any]]) -> list[dict[str, str]]:
    """Flatten pydantic error dicts into ``{field, message}`` pairs.

    The leading ``body``/``query``/``path`` segment of ``loc`` is dropped so
    clients see the field name they sent.
    """
    errors: list[dict[str, str]] = []
    for err in raw_errors:
        loc = [str(part) for part in err.get("loc", ())]
        if loc and loc[0] in ("body", "query", "path", "header"):
            loc = loc[1:]
        errors.append(field_error(".".join(loc) or "body", str(err.get("msg", "Invalid value"))))
    return errors


class ServerFault(ApiError):
    status_code = 500
    default_message = "Internal server error"

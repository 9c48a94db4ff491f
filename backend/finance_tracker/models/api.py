import datetime as dt
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

TransactionType = Literal["income", "expense"]
Role = Literal["admin", "user", "read-only"]


class TransactionPayload(BaseModel):
    # ownerId/userId and any other unknown keys are dropped here.
    model_config = ConfigDict(extra="ignore")

    # Matches the NUMERIC(14, 2) column.
    amount: Decimal = Field(gt=0, max_digits=14, decimal_places=2)
    type: TransactionType
    category: str
    description: str | None = ""
    date: dt.date

    @field_validator("category")
    @classmethod
    def _category_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("category is required")
        return value

    @field_validator("description")
    @classmethod
    def _description_default(cls, value: str | None) -> str:
        return (value or "").strip()


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str
    role: Role | None = None


class LoginRequest(BaseModel):
    email: str
    password: str


class RoleUpdateRequest(BaseModel):
    role: Role


class AccountOut(BaseModel):
    id: str
    name: str
    email: str
    role: Role
    createdAt: dt.datetime | None = None


class TransactionOut(BaseModel):
    id: str
    ownerId: str
    amount: float
    type: TransactionType
    category: str
    description: str = ""
    date: dt.date
    createdAt: dt.datetime | None = None
    updatedAt: dt.datetime | None = None


class Pagination(BaseModel):
    currentPage: int
    totalPages: int
    totalItems: int
    itemsPerPage: int


class TransactionListResponse(BaseModel):
    success: bool = True
    transactions: list[TransactionOut]
    pagination: Pagination


class TransactionResponse(BaseModel):
    success: bool = True
    message: str | None = None
    transaction: TransactionOut


class AuthResponse(BaseModel):
    success: bool = True
    message: str | None = None
    token: str
    user: AccountOut


class MessageResponse(BaseModel):
    success: bool = True
    message: str

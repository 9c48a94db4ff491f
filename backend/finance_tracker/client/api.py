"""HTTP client for the finance tracker API.

The bearer token is passed to every call explicitly; the client never keeps a
logged-in identity of its own, so one instance can serve several accounts.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any

import httpx

from finance_tracker.core.logging import get_logger

logger = get_logger(__name__)


class ApiClientError(Exception):
    def __init__(self, status_code: int, message: str, errors: list[dict[str, str]] | None = None) -> None:
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.errors = errors or []


@dataclass(frozen=True)
class Transaction:
    id: str
    amount: float
    type: str
    category: str
    date: date
    description: str = ""
    owner_id: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Transaction":
        return cls(
            id=data["id"],
            amount=float(data["amount"]),
            type=data["type"],
            category=data["category"],
            date=date.fromisoformat(str(data["date"])[:10]),
            description=data.get("description") or "",
            owner_id=data.get("ownerId"),
        )


@dataclass(frozen=True)
class TransactionsPage:
    transactions: list[Transaction] = field(default_factory=list)
    current_page: int = 1
    total_pages: int = 0
    total_items: int = 0
    items_per_page: int = 10

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "TransactionsPage":
        pagination = data.get("pagination") or {}
        return cls(
            transactions=[Transaction.from_api(item) for item in data.get("transactions") or []],
            current_page=int(pagination.get("currentPage", 1)),
            total_pages=int(pagination.get("totalPages", 0)),
            total_items=int(pagination.get("totalItems", 0)),
            items_per_page=int(pagination.get("itemsPerPage", 10)),
        )

    @property
    def is_complete(self) -> bool:
        """True when this page holds every matching transaction."""
        return len(self.transactions) >= self.total_items


def _transaction_body(
    amount: float,
    type: str,
    category: str,
    date_value: date | str,
    description: str | None = None,
) -> dict[str, Any]:
    return {
        "amount": amount,
        "type": type,
        "category": category,
        "description": description or "",
        "date": date_value.isoformat() if isinstance(date_value, date) else date_value,
    }


class FinanceApiClient:
    def __init__(
        self,
        base_url: str = "http://localhost:8000/api",
        http: httpx.Client | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._http = http or httpx.Client(timeout=timeout)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "FinanceApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        token: str | None = None,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        if params:
            params = {key: value for key, value in params.items() if value not in (None, "")}
        response = self._http.request(method, f"{self._base_url}{path}", headers=headers, params=params, json=json)
        try:
            data = response.json() if response.content else {}
        except ValueError:
            data = {}
        if response.is_error:
            message = data.get("message") or response.reason_phrase
            logger.debug("%s %s failed with %s: %s", method, path, response.status_code, message)
            raise ApiClientError(response.status_code, message, data.get("errors"))
        return data

    # Accounts

    def register(self, name: str, email: str, password: str, role: str = "user") -> dict[str, Any]:
        return self._request(
            "POST",
            "/auth/register",
            json={"name": name, "email": email, "password": password, "role": role},
        )

    def login(self, email: str, password: str) -> dict[str, Any]:
        return self._request("POST", "/auth/login", json={"email": email, "password": password})

    def verify(self, token: str) -> dict[str, Any]:
        return self._request("GET", "/auth/verify", token=token)["user"]

    def logout(self, token: str) -> None:
        self._request("POST", "/auth/logout", token=token)

    # Transactions

    def list_transactions(
        self,
        token: str,
        page: int = 1,
        limit: int | None = None,
        search: str | None = None,
        type: str | None = None,
        category: str | None = None,
        time_range: str | None = None,
    ) -> TransactionsPage:
        params = {
            "page": page,
            "limit": limit,
            "search": search,
            "type": type,
            "category": category,
            "timeRange": time_range,
        }
        return TransactionsPage.from_api(self._request("GET", "/transactions", token=token, params=params))

    def get_transaction(self, token: str, transaction_id: str) -> Transaction:
        data = self._request("GET", f"/transactions/{transaction_id}", token=token)
        return Transaction.from_api(data["transaction"])

    def create_transaction(
        self,
        token: str,
        amount: float,
        type: str,
        category: str,
        date: date | str,
        description: str | None = None,
    ) -> Transaction:
        body = _transaction_body(amount, type, category, date, description)
        data = self._request("POST", "/transactions", token=token, json=body)
        return Transaction.from_api(data["transaction"])

    def update_transaction(
        self,
        token: str,
        transaction_id: str,
        amount: float,
        type: str,
        category: str,
        date: date | str,
        description: str | None = None,
    ) -> Transaction:
        body = _transaction_body(amount, type, category, date, description)
        data = self._request("PUT", f"/transactions/{transaction_id}", token=token, json=body)
        return Transaction.from_api(data["transaction"])

    def delete_transaction(self, token: str, transaction_id: str) -> None:
        self._request("DELETE", f"/transactions/{transaction_id}", token=token)

    # User management

    def list_users(self, token: str) -> list[dict[str, Any]]:
        return self._request("GET", "/users", token=token)["users"]

    def update_user_role(self, token: str, account_id: str, role: str) -> dict[str, Any]:
        return self._request("PUT", f"/users/{account_id}/role", token=token, json={"role": role})["user"]

    def delete_user(self, token: str, account_id: str) -> None:
        self._request("DELETE", f"/users/{account_id}", token=token)

import itertools
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from psycopg.errors import CheckViolation, NumericValueOutOfRange

from finance_tracker.core.errors import Conflict
from finance_tracker.services.auth import new_access_token
from finance_tracker.services.transactions import MUTABLE_FIELDS


def column_amount(value) -> Decimal:
    """Coerce like NUMERIC(14, 2) CHECK (amount > 0), refusing lossy values."""
    amount = Decimal(str(value))
    if amount != amount.quantize(Decimal("0.01")) or amount >= Decimal(10) ** 12:
        raise NumericValueOutOfRange(f"amount {amount} does not fit numeric(14,2)")
    if amount <= 0:
        raise CheckViolation("amount must be positive")
    return amount


class InMemoryStore:
    """Dict-backed stand-in for PostgresStore used by the HTTP tests."""

    def __init__(self) -> None:
        self.accounts: dict[str, dict] = {}
        self.passwords: dict[str, str] = {}
        self.tokens: dict[str, dict] = {}
        self.transactions: dict[str, dict] = {}
        self.fail_with: Exception | None = None
        self._clock = itertools.count()

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def _now(self) -> datetime:
        return datetime(2024, 1, 1, tzinfo=timezone.utc).replace(microsecond=next(self._clock))

    # Helpers

    def seed_account(self, name: str, email: str, role: str = "user") -> tuple[str, dict]:
        token, token_hash = new_access_token()
        account = self.create_account(name, email, "not-a-hash", role, token_hash)
        return token, account

    # Accounts

    def create_account(self, name, email, password_hash, role, token_hash):
        self._maybe_fail()
        if any(row["email"] == email for row in self.accounts.values()):
            raise Conflict("User already exists")
        account_id = str(uuid.uuid4())
        row = {
            "account_id": account_id,
            "name": name,
            "email": email,
            "role": role,
            "created_at": self._now(),
        }
        self.accounts[account_id] = row
        self.passwords[account_id] = password_hash
        self.add_token(account_id, token_hash)
        return dict(row)

    def get_credentials(self, email):
        self._maybe_fail()
        for account_id, row in self.accounts.items():
            if row["email"] == email:
                return {**row, "password_hash": self.passwords[account_id]}
        return None

    def list_accounts(self):
        self._maybe_fail()
        return sorted((dict(row) for row in self.accounts.values()), key=lambda r: r["created_at"], reverse=True)

    def update_account_role(self, account_id, role):
        self._maybe_fail()
        row = self.accounts.get(account_id)
        if not row:
            return None
        row["role"] = role
        return dict(row)

    def delete_account(self, account_id):
        self._maybe_fail()
        if self.accounts.pop(account_id, None) is None:
            return False
        self.transactions = {
            tx_id: tx for tx_id, tx in self.transactions.items() if tx["owner_id"] != account_id
        }
        self.tokens = {key: tok for key, tok in self.tokens.items() if tok["account_id"] != account_id}
        return True

    # Access tokens

    def add_token(self, account_id, token_hash):
        self.tokens[token_hash] = {"account_id": account_id, "revoked": False}

    def get_account_by_token(self, token_hash):
        self._maybe_fail()
        token = self.tokens.get(token_hash)
        if not token or token["revoked"]:
            return None
        row = self.accounts.get(token["account_id"])
        return dict(row) if row else None

    def revoke_token(self, token_hash):
        if token_hash in self.tokens:
            self.tokens[token_hash]["revoked"] = True

    # Transactions

    def _matches(self, row, query) -> bool:
        if row["owner_id"] != query.owner_id:
            return False
        if query.tx_type and row["type"] != query.tx_type:
            return False
        if query.category and row["category"] != query.category:
            return False
        if query.search:
            term = query.search.lower()
            if term not in row["description"].lower() and term not in row["category"].lower():
                return False
        if query.date_from is not None and not (query.date_from <= row["date"] <= query.date_to):
            return False
        return True

    def list_transactions(self, query):
        self._maybe_fail()
        matching = [dict(row) for row in self.transactions.values() if self._matches(row, query)]
        matching.sort(key=lambda r: r["transaction_id"])
        matching.sort(key=lambda r: r["date"], reverse=True)
        return matching[query.skip : query.skip + query.take], len(matching)

    def get_transaction(self, owner_id, transaction_id):
        self._maybe_fail()
        row = self.transactions.get(transaction_id)
        if not row or row["owner_id"] != owner_id:
            return None
        return dict(row)

    def create_transaction(self, owner_id, fields):
        self._maybe_fail()
        transaction_id = str(uuid.uuid4())
        now = self._now()
        row = {
            "transaction_id": transaction_id,
            "owner_id": owner_id,
            **{name: fields[name] for name in MUTABLE_FIELDS},
            "created_at": now,
            "updated_at": now,
        }
        row["amount"] = column_amount(row["amount"])
        self.transactions[transaction_id] = row
        return dict(row)

    def update_transaction(self, owner_id, transaction_id, fields):
        self._maybe_fail()
        row = self.transactions.get(transaction_id)
        if not row or row["owner_id"] != owner_id:
            return None
        changes = {name: fields[name] for name in MUTABLE_FIELDS}
        changes["amount"] = column_amount(changes["amount"])
        row.update(changes)
        row["updated_at"] = self._now()
        return dict(row)

    def delete_transaction(self, owner_id, transaction_id):
        self._maybe_fail()
        row = self.transactions.get(transaction_id)
        if not row or row["owner_id"] != owner_id:
            return False
        del self.transactions[transaction_id]
        return True

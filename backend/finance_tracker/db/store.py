from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

from psycopg import Error as PsycopgError
from psycopg.errors import UniqueViolation

from finance_tracker.core.errors import Conflict, ServerFault
from finance_tracker.core.logging import get_logger
from finance_tracker.db.pool import db_conn
from finance_tracker.services.transactions import MUTABLE_FIELDS, TransactionQuery

logger = get_logger(__name__)

ACCOUNT_COLUMNS = """
    a.account_id::text AS account_id,
    a.name,
    a.email,
    a.role,
    a.created_at
"""

TRANSACTION_COLUMNS = """
    t.transaction_id::text AS transaction_id,
    t.owner_id::text AS owner_id,
    t.amount,
    t.type,
    t.category,
    t.description,
    t.date,
    t.created_at,
    t.updated_at
"""


@contextmanager
def storage_errors(action: str):
    """Translate database failures into a generic server fault."""
    try:
        yield
    except PsycopgError:
        logger.exception("Storage failure while %s", action)
        raise ServerFault()


class PostgresStore:
    def __init__(self, connection_factory=db_conn) -> None:
        self._connect = connection_factory

    # Accounts

    def create_account(
        self,
        name: str,
        email: str,
        password_hash: str,
        role: str,
        token_hash: str,
    ) -> dict[str, Any]:
        with self._connect() as conn, conn.cursor() as cur:
            try:
                cur.execute(
                    """
                    INSERT INTO accounts (name, email, password_hash, role)
                    VALUES (%s, %s, %s, %s)
                    RETURNING account_id::text AS account_id, name, email, role, created_at
                    """,
                    (name, email, password_hash, role),
                )
                account = cur.fetchone()
                cur.execute(
                    "INSERT INTO access_tokens (account_id, token_hash) VALUES (%s::uuid, %s)",
                    (account["account_id"], token_hash),
                )
                conn.commit()
            except UniqueViolation:
                conn.rollback()
                raise Conflict("User already exists")
        return account

    def get_credentials(self, email: str) -> dict[str, Any] | None:
        with self._connect() as conn, conn.cursor() as cur:
            cur.execute(
                f"SELECT {ACCOUNT_COLUMNS}, a.password_hash FROM accounts a WHERE a.email=%s",
                (email,),
            )
            return cur.fetchone()

    def list_accounts(self) -> list[dict[str, Any]]:
        with self._connect() as conn, conn.cursor() as cur:
            cur.execute(f"SELECT {ACCOUNT_COLUMNS} FROM accounts a ORDER BY a.created_at DESC")
            return cur.fetchall()

    def update_account_role(self, account_id: str, role: str) -> dict[str, Any] | None:
        with self._connect() as conn, conn.cursor() as cur:
            cur.execute(
                """
                UPDATE accounts
                SET role=%s
                WHERE account_id=%s::uuid
                RETURNING account_id::text AS account_id, name, email, role, created_at
                """,
                (role, account_id),
            )
            row = cur.fetchone()
            conn.commit()
            return row

    def delete_account(self, account_id: str) -> bool:
        with self._connect() as conn, conn.cursor() as cur:
            cur.execute(
                "DELETE FROM accounts WHERE account_id=%s::uuid RETURNING account_id::text",
                (account_id,),
            )
            deleted = cur.fetchone() is not None
            conn.commit()
            return deleted

    # Access tokens

    def add_token(self, account_id: str, token_hash: str) -> None:
        with self._connect() as conn, conn.cursor() as cur:
            cur.execute(
                "INSERT INTO access_tokens (account_id, token_hash) VALUES (%s::uuid, %s)",
                (account_id, token_hash),
            )
            conn.commit()

    def get_account_by_token(self, token_hash: str) -> dict[str, Any] | None:
        with self._connect() as conn, conn.cursor() as cur:
            cur.execute(
                f"""
                SELECT {ACCOUNT_COLUMNS}
                FROM access_tokens k
                JOIN accounts a ON a.account_id=k.account_id
                WHERE k.token_hash=%s AND k.revoked_at IS NULL
                """,
                (token_hash,),
            )
            row = cur.fetchone()
            if not row:
                return None
            cur.execute(
                "UPDATE access_tokens SET last_used_at=%s WHERE token_hash=%s",
                (datetime.now(timezone.utc), token_hash),
            )
            conn.commit()
            return row

    def revoke_token(self, token_hash: str) -> None:
        with self._connect() as conn, conn.cursor() as cur:
            cur.execute(
                "UPDATE access_tokens SET revoked_at=%s WHERE token_hash=%s AND revoked_at IS NULL",
                (datetime.now(timezone.utc), token_hash),
            )
            conn.commit()

    # Transactions

    def list_transactions(self, query: TransactionQuery) -> tuple[list[dict[str, Any]], int]:
        where, params = query.where_clause()
        with self._connect() as conn, conn.cursor() as cur:
            cur.execute(
                f"""
                SELECT {TRANSACTION_COLUMNS}
                FROM transactions t
                WHERE {where}
                ORDER BY t.date DESC, t.transaction_id ASC
                LIMIT %s OFFSET %s
                """,
                (*params, query.take, query.skip),
            )
            rows = cur.fetchall()
            cur.execute(f"SELECT COUNT(*) AS total FROM transactions t WHERE {where}", params)
            total = int(cur.fetchone()["total"])
        return rows, total

    def get_transaction(self, owner_id: str, transaction_id: str) -> dict[str, Any] | None:
        with self._connect() as conn, conn.cursor() as cur:
            cur.execute(
                f"""
                SELECT {TRANSACTION_COLUMNS}
                FROM transactions t
                WHERE t.transaction_id=%s::uuid AND t.owner_id=%s::uuid
                """,
                (transaction_id, owner_id),
            )
            return cur.fetchone()

    def create_transaction(self, owner_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        with self._connect() as conn, conn.cursor() as cur:
            cur.execute(
                f"""
                INSERT INTO transactions AS t (owner_id, amount, type, category, description, date)
                VALUES (%s::uuid, %s, %s, %s, %s, %s)
                RETURNING {TRANSACTION_COLUMNS}
                """,
                (owner_id, *(fields[name] for name in MUTABLE_FIELDS)),
            )
            row = cur.fetchone()
            conn.commit()
            return row

    def update_transaction(
        self,
        owner_id: str,
        transaction_id: str,
        fields: dict[str, Any],
    ) -> dict[str, Any] | None:
        assignments = ", ".join(f"{name}=%s" for name in MUTABLE_FIELDS)
        with self._connect() as conn, conn.cursor() as cur:
            cur.execute(
                f"""
                UPDATE transactions AS t
                SET {assignments}, updated_at=%s
                WHERE t.transaction_id=%s::uuid AND t.owner_id=%s::uuid
                RETURNING {TRANSACTION_COLUMNS}
                """,
                (
                    *(fields[name] for name in MUTABLE_FIELDS),
                    datetime.now(timezone.utc),
                    transaction_id,
                    owner_id,
                ),
            )
            row = cur.fetchone()
            conn.commit()
            return row

    def delete_transaction(self, owner_id: str, transaction_id: str) -> bool:
        with self._connect() as conn, conn.cursor() as cur:
            cur.execute(
                """
                DELETE FROM transactions
                WHERE transaction_id=%s::uuid AND owner_id=%s::uuid
                RETURNING transaction_id::text
                """,
                (transaction_id, owner_id),
            )
            deleted = cur.fetchone() is not None
            conn.commit()
            return deleted

from contextlib import contextmanager

from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from finance_tracker.core.config import settings
from finance_tracker.core.logging import get_logger
from finance_tracker.db.schema import SCHEMA_STATEMENTS

logger = get_logger(__name__)

DB_POOL = ConnectionPool(
    settings.database_url,
    min_size=settings.db_pool_min,
    max_size=settings.db_pool_max,
    timeout=settings.db_pool_timeout,
    max_waiting=settings.db_pool_max_waiting,
    open=False,
    kwargs={"row_factory": dict_row},
)


def open_db_pool(apply_schema: bool = False) -> None:
    DB_POOL.open()
    if apply_schema:
        migrate()


def close_db_pool() -> None:
    DB_POOL.close()


@contextmanager
def db_conn():
    with DB_POOL.connection() as conn:
        yield conn


def migrate() -> None:
    """Create the tables and indexes if they do not exist yet."""
    with db_conn() as conn, conn.cursor() as cur:
        for statement in SCHEMA_STATEMENTS:
            cur.execute(statement)
        conn.commit()
    logger.info("Database schema ensured (%d statements)", len(SCHEMA_STATEMENTS))

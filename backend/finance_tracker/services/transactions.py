import calendar
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any

from finance_tracker.core.config import settings
from finance_tracker.core.errors import ValidationFailed, field_error

TRANSACTION_TYPES = ("income", "expense")
TIME_RANGES = ("week", "month", "year")
DEFAULT_TIME_RANGE = "month"

# Fields a caller may change on an existing transaction.
MUTABLE_FIELDS = ("amount", "type", "category", "description", "date")


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def shift_months(day: date, months: int) -> date:
    month_index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def resolve_time_range(time_range: str | None, today: date) -> tuple[date, date] | None:
    """Return the inclusive ``(start, end)`` window for a named range.

    ``None`` or a blank value means no date restriction. Unknown names are
    treated as ``month``.
    """
    if time_range is None or not time_range.strip():
        return None
    key = time_range.strip().lower()
    if key not in TIME_RANGES:
        key = DEFAULT_TIME_RANGE
    if key == "week":
        start = today - timedelta(days=7)
    elif key == "year":
        start = shift_months(today, -12)
    else:
        start = shift_months(today, -1)
    return start, today


def build_search_pattern(query: str | None) -> str | None:
    if not query:
        return None
    cleaned = query.strip()
    if not cleaned:
        return None
    # LIKE wildcards in the term are matched literally.
    escaped = cleaned.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


@dataclass(frozen=True)
class TransactionQuery:
    owner_id: str
    page: int = 1
    limit: int = 10
    search: str | None = None
    tx_type: str | None = None
    category: str | None = None
    date_from: date | None = None
    date_to: date | None = None

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def take(self) -> int:
        return self.limit

    def where_clause(self) -> tuple[str, list[Any]]:
        clauses = ["t.owner_id=%s::uuid"]
        params: list[Any] = [self.owner_id]
        if self.tx_type:
            clauses.append("t.type=%s")
            params.append(self.tx_type)
        if self.category:
            clauses.append("t.category=%s")
            params.append(self.category)
        pattern = build_search_pattern(self.search)
        if pattern:
            clauses.append("(t.description ILIKE %s OR t.category ILIKE %s)")
            params.extend([pattern, pattern])
        if self.date_from is not None and self.date_to is not None:
            clauses.append("t.date BETWEEN %s AND %s")
            params.extend([self.date_from, self.date_to])
        return " AND ".join(clauses), params


def build_transaction_query(
    owner_id: str,
    page: int = 1,
    limit: int | None = None,
    search: str | None = None,
    tx_type: str | None = None,
    category: str | None = None,
    time_range: str | None = None,
    today: date | None = None,
) -> TransactionQuery:
    if limit is None:
        limit = settings.default_page_limit

    errors = []
    if page < 1:
        errors.append(field_error("page", "page must be a positive integer"))
    if limit < 1 or limit > settings.max_page_limit:
        errors.append(field_error("limit", f"limit must be between 1 and {settings.max_page_limit}"))
    if tx_type and tx_type not in TRANSACTION_TYPES:
        errors.append(field_error("type", "type must be income or expense"))
    if errors:
        raise ValidationFailed(errors)

    window = resolve_time_range(time_range, today or today_utc())
    date_from, date_to = window if window else (None, None)
    return TransactionQuery(
        owner_id=owner_id,
        page=page,
        limit=limit,
        search=(search or "").strip() or None,
        tx_type=tx_type or None,
        category=category if category and category.strip() else None,
        date_from=date_from,
        date_to=date_to,
    )


def build_pagination(total: int, page: int, limit: int) -> dict[str, int]:
    return {
        "currentPage": page,
        "totalPages": math.ceil(total / limit),
        "totalItems": total,
        "itemsPerPage": limit,
    }


def serialize_transaction(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": str(row["transaction_id"]),
        "ownerId": str(row["owner_id"]),
        "amount": float(row["amount"]),
        "type": row["type"],
        "category": row["category"],
        "description": row.get("description") or "",
        "date": row["date"],
        "createdAt": row.get("created_at"),
        "updatedAt": row.get("updated_at"),
    }

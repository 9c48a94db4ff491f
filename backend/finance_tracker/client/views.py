"""Dashboard and analytics read models.

Everything here is recomputed from the transactions the client fetched. When
the fetched page does not hold every matching transaction the figures only
cover that page; ``DashboardView.is_complete`` tells the caller which case
applies.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from finance_tracker.client.api import FinanceApiClient, Transaction, TransactionsPage
from finance_tracker.roles import can_manage_users, can_write

RECENT_LIMIT = 5

NAVIGATION = (
    ("dashboard", "Dashboard"),
    ("transactions", "Transactions"),
    ("analytics", "Analytics"),
    ("profile", "Profile"),
)

INCOME_CATEGORIES = ("Salary", "Freelance", "Business", "Investment", "Other")
EXPENSE_CATEGORIES = ("Food", "Transport", "Entertainment", "Bills", "Shopping", "Health", "Other")


def suggested_categories(tx_type: str) -> tuple[str, ...]:
    return INCOME_CATEGORIES if tx_type == "income" else EXPENSE_CATEGORIES


def _money(value: float) -> float:
    return round(value, 2)


@dataclass(frozen=True)
class Totals:
    income: float
    expense: float

    @property
    def balance(self) -> float:
        return _money(self.income - self.expense)


@dataclass(frozen=True)
class AmountStats:
    count: int
    average: float
    largest_income: float
    largest_expense: float


def compute_totals(transactions: Iterable[Transaction]) -> Totals:
    income = 0.0
    expense = 0.0
    for tx in transactions:
        if tx.type == "income":
            income += tx.amount
        elif tx.type == "expense":
            expense += tx.amount
    return Totals(income=_money(income), expense=_money(expense))


def category_breakdown(transactions: Iterable[Transaction]) -> dict[str, float]:
    """Expense totals per category, in first-seen order."""
    totals: dict[str, float] = {}
    for tx in transactions:
        if tx.type != "expense":
            continue
        totals[tx.category] = totals.get(tx.category, 0.0) + tx.amount
    return {category: _money(amount) for category, amount in totals.items()}


def monthly_trend(transactions: Iterable[Transaction]) -> dict[tuple[int, int], dict[str, float]]:
    buckets: dict[tuple[int, int], dict[str, float]] = defaultdict(lambda: {"income": 0.0, "expense": 0.0})
    for tx in transactions:
        if tx.type in ("income", "expense"):
            buckets[(tx.date.year, tx.date.month)][tx.type] += tx.amount
    return {
        key: {"income": _money(value["income"]), "expense": _money(value["expense"])}
        for key, value in sorted(buckets.items())
    }


def month_label(key: tuple[int, int]) -> str:
    year, month = key
    return date(year, month, 1).strftime("%b %Y")


def recent_transactions(transactions: Iterable[Transaction], limit: int = RECENT_LIMIT) -> list[Transaction]:
    return sorted(transactions, key=lambda tx: tx.date, reverse=True)[:limit]


def amount_stats(transactions: Iterable[Transaction]) -> AmountStats:
    items = list(transactions)
    if not items:
        return AmountStats(count=0, average=0.0, largest_income=0.0, largest_expense=0.0)
    incomes = [tx.amount for tx in items if tx.type == "income"]
    expenses = [tx.amount for tx in items if tx.type == "expense"]
    return AmountStats(
        count=len(items),
        average=_money(sum(tx.amount for tx in items) / len(items)),
        largest_income=max(incomes, default=0.0),
        largest_expense=max(expenses, default=0.0),
    )


def navigation_for(role: str | None) -> list[tuple[str, str]]:
    items = list(NAVIGATION)
    if can_manage_users(role):
        items.append(("users", "Users"))
    return items


@dataclass(frozen=True)
class DashboardView:
    role: str | None
    totals: Totals
    categories: dict[str, float] = field(default_factory=dict)
    trend: dict[tuple[int, int], dict[str, float]] = field(default_factory=dict)
    recent: list[Transaction] = field(default_factory=list)
    stats: AmountStats | None = None
    is_complete: bool = True

    @property
    def can_add_transactions(self) -> bool:
        return can_write(self.role)

    @property
    def navigation(self) -> list[tuple[str, str]]:
        return navigation_for(self.role)

    @classmethod
    def from_page(cls, page: TransactionsPage, role: str | None = None) -> "DashboardView":
        items = page.transactions
        return cls(
            role=role,
            totals=compute_totals(items),
            categories=category_breakdown(items),
            trend=monthly_trend(items),
            recent=recent_transactions(items),
            stats=amount_stats(items),
            is_complete=page.is_complete,
        )


def load_dashboard(
    client: FinanceApiClient,
    token: str,
    time_range: str = "month",
    limit: int | None = None,
) -> DashboardView:
    account = client.verify(token)
    page = client.list_transactions(token, limit=limit, time_range=time_range)
    return DashboardView.from_page(page, role=account.get("role"))

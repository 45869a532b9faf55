from datetime import datetime
from typing import Any

import pytest

from budget_assistant.repository import FilterOp, QueryFilter, RepositoryError

OWNER = "user-1"


class InMemoryRepository:
    def __init__(self, tables: dict[str, list[dict[str, Any]]] | None = None):
        self.tables = tables or {}
        self.calls: list[tuple[str, list[QueryFilter], str]] = []

    async def fetch_all(
        self, table: str, filters: list[QueryFilter], order_by: str = "date"
    ) -> list[dict[str, Any]]:
        self.calls.append((table, filters, order_by))
        rows = self.tables.get(table, [])
        for query_filter in filters:
            rows = [row for row in rows if _matches(row, query_filter)]
        return sorted(rows, key=lambda row: str(row.get(order_by, "")), reverse=True)


def _matches(row: dict[str, Any], query_filter: QueryFilter) -> bool:
    value = row.get(query_filter.column)
    if query_filter.op is FilterOp.EQ:
        return value == query_filter.value
    if query_filter.op is FilterOp.GTE:
        return value is not None and value >= query_filter.value
    return value is not None and value < query_filter.value


class FailingRepository:
    def __init__(self) -> None:
        self.calls = 0

    async def fetch_all(
        self, table: str, filters: list[QueryFilter], order_by: str = "date"
    ) -> list[dict[str, Any]]:
        self.calls += 1
        raise RepositoryError(f"{table} is unavailable")


def expense(row_id: int, category: str, amount: float, date: str, owner: str = OWNER) -> dict[str, Any]:
    return {"id": row_id, "name": f"expense {row_id}", "category": category,
            "amount": amount, "date": date, "user_id": owner}


def income(row_id: int, category: str, amount: float, date: str, owner: str = OWNER) -> dict[str, Any]:
    return {"id": row_id, "source": f"income {row_id}", "category": category,
            "amount": amount, "date": date, "user_id": owner}


def budget(row_id: int, category: str, amount: float, date: str, owner: str = OWNER) -> dict[str, Any]:
    return {"id": row_id, "category": category, "amount": amount, "date": date, "user_id": owner}


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 10, 19, 9, 30)


@pytest.fixture
def repository() -> InMemoryRepository:
    return InMemoryRepository({
        "expenses": [
            expense(1, "Food", 1500, "2026-10-03"),
            expense(2, "food ", 1000, "2026-10-11"),
            expense(3, "Transport", 500, "2026-10-12"),
            expense(4, "Groceries", 800, "2026-09-28"),
            expense(5, "Food", 300, "2026-09-02"),
            expense(6, "Food", 999, "not-a-date"),
            expense(7, "Food", 250, "2026-10-05", owner="someone-else"),
        ],
        "incomes": [
            income(1, "Salary", 50000, "2026-10-01"),
            income(2, "Freelance", 7000, "2026-10-15"),
            income(3, "Salary", 50000, "2026-09-01"),
        ],
        "budget": [
            budget(1, "Food", 4000, "2026-10-01"),
        ],
        "financial_goals": [
            {
                "goal_id": "g-1",
                "user_id": OWNER,
                "title": "Emergency fund",
                "target_amount": 100000,
                "target_date": "2027-06-30",
                "status": "active",
                "contributions": [
                    {"id": 1, "amount": 2500, "date": "2026-08-01"},
                    {"id": 2, "amount": 1500, "date": "2026-09-01"},
                ],
            },
        ],
    })


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"

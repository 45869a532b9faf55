from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

EXPENSES_TABLE = "expenses"
INCOMES_TABLE = "incomes"
BUDGET_TABLE = "budget"
GOALS_TABLE = "financial_goals"

OWNER_COLUMN = "user_id"


class FilterOp(str, Enum):
    EQ = "eq"
    GTE = "gte"
    LT = "lt"


@dataclass(frozen=True)
class QueryFilter:
    column: str
    op: FilterOp
    value: Any


def owner_filter(owner_id: str) -> QueryFilter:
    return QueryFilter(column=OWNER_COLUMN, op=FilterOp.EQ, value=owner_id)


class RepositoryError(Exception):
    """Raised when the record store cannot be read or returns garbage."""


class RecordRepository(Protocol):
    async def fetch_all(
        self,
        table: str,
        filters: list[QueryFilter],
        order_by: str = "date",
    ) -> list[dict[str, Any]]:
        """Return rows of ``table`` matching every filter, newest first."""
        ...

from typing import TypeVar

from budget_assistant.domain.dates import month_start_date
from budget_assistant.domain.money import format_amount
from budget_assistant.logger import get_logger
from budget_assistant.models import (
    BudgetEntry,
    ExpenseRecord,
    FinancialGoal,
    FinancialRecord,
    IncomeRecord,
    QueryCriteria,
)
from budget_assistant.repository import (
    BUDGET_TABLE,
    EXPENSES_TABLE,
    GOALS_TABLE,
    INCOMES_TABLE,
    FilterOp,
    QueryFilter,
    RecordRepository,
    owner_filter,
)

logger = get_logger(__name__)

RecordT = TypeVar("RecordT", bound=FinancialRecord)

NO_GOALS_TEXT = "No financial goals found."
GOALS_ERROR_TEXT = "Error retrieving goals. (Table 'financial_goals' might be missing or inaccessible)"
NO_BUDGET_TEXT = "No budget or expenses found for this month."
BUDGET_ERROR_TEXT = "Error fetching budget details."


class FinancialQueryEngine:
    """
    Best-effort aggregation over one owner's records.

    Every public method answers something usable: repository and decode
    failures are logged and turned into ``0.0`` or an explanatory string.
    """

    def __init__(self, repository: RecordRepository, owner_id: str):
        self.repository = repository
        self.owner_id = owner_id

    async def _fetch_records(self, table: str, model: type[RecordT]) -> list[RecordT]:
        rows = await self.repository.fetch_all(table, [owner_filter(self.owner_id)])
        return [model.model_validate(row) for row in rows]

    async def _total(
        self,
        table: str,
        model: type[FinancialRecord],
        category: str | None,
        month: int | None,
        year: int | None,
    ) -> float:
        try:
            criteria = QueryCriteria(category=category, month=month, year=year)
            records = await self._fetch_records(table, model)
        except Exception as exc:
            logger.error("Error totalling '%s': %s", table, exc)
            return 0.0

        return sum((record.amount for record in records if criteria.matches(record)), 0.0)

    async def total_expenses(
        self, category: str | None = None, month: int | None = None, year: int | None = None
    ) -> float:
        return await self._total(EXPENSES_TABLE, ExpenseRecord, category, month, year)

    async def total_income(
        self, category: str | None = None, month: int | None = None, year: int | None = None
    ) -> float:
        return await self._total(INCOMES_TABLE, IncomeRecord, category, month, year)

    async def goals_summary(self) -> str:
        try:
            rows = await self.repository.fetch_all(
                GOALS_TABLE, [owner_filter(self.owner_id)], order_by="target_date"
            )
            goals = [FinancialGoal.model_validate(row) for row in rows]
        except Exception as exc:
            logger.error("Error fetching goals: %s", exc)
            return GOALS_ERROR_TEXT

        if not goals:
            return NO_GOALS_TEXT

        return "\n".join(
            f"- {goal.title}: Target {format_amount(goal.target_amount)}, "
            f"Saved {format_amount(goal.saved_amount)}, Status: {goal.status.value}"
            for goal in goals
        )

    async def budget_report(self, month: int, year: int) -> str:
        try:
            budget_rows = await self.repository.fetch_all(
                BUDGET_TABLE,
                [
                    owner_filter(self.owner_id),
                    QueryFilter(column="date", op=FilterOp.EQ, value=month_start_date(month, year)),
                ],
            )
            budget = [BudgetEntry.model_validate(row) for row in budget_rows]
            expenses = await self._fetch_records(EXPENSES_TABLE, ExpenseRecord)
        except Exception as exc:
            logger.error("Error fetching budget for %s/%s: %s", month, year, exc)
            return BUDGET_ERROR_TEXT

        month_expenses = [expense for expense in expenses if expense.in_month(month, year)]
        if not budget and not month_expenses:
            return NO_BUDGET_TEXT

        # Normalized key -> (first label seen, total spent)
        spent_by_key: dict[str, tuple[str, float]] = {}
        for expense in month_expenses:
            label, spent = spent_by_key.get(expense.category_key, (expense.category.strip(), 0.0))
            spent_by_key[expense.category_key] = (label, spent + expense.amount)

        lines = [f"Budget Report for {month}/{year}:"]
        budgeted_keys = set()
        for entry in budget:
            budgeted_keys.add(entry.category_key)
            spent = spent_by_key.get(entry.category_key, ("", 0.0))[1]
            remaining = entry.amount - spent
            status = "Overspent" if spent > entry.amount else "Under"
            lines.append(
                f"- {entry.category}: Budget {format_amount(entry.amount)}, "
                f"Spent {format_amount(spent)}, Remaining {format_amount(remaining)} ({status})"
            )

        for key, (label, spent) in spent_by_key.items():
            if key not in budgeted_keys:
                lines.append(f"- {label}: No Budget, Spent {format_amount(spent)} (Unplanned)")

        return "\n".join(lines)

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from budget_assistant.domain.categories import (
    ExpenseCategory,
    IncomeCategory,
    normalize_category,
    resolve_expense_category,
    resolve_income_category,
)
from budget_assistant.domain.dates import split_date


class FinancialRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int | str
    label: str = Field(default="", validation_alias=AliasChoices("label", "name", "source"))
    amount: float = Field(ge=0)
    category: str = ""
    date: str  # Stored as "YYYY-MM-DD"; treated as opaque until filtered
    owner_id: str = Field(validation_alias=AliasChoices("owner_id", "user_id"))

    @property
    def category_key(self) -> str:
        return normalize_category(self.category)

    def date_parts(self) -> tuple[int, int, int] | None:
        return split_date(self.date)

    def in_month(self, month: int, year: int) -> bool:
        parts = self.date_parts()
        if parts is None:
            return False
        return parts[0] == year and parts[1] == month


class ExpenseRecord(FinancialRecord):
    # Closed-vocabulary view of the free-form category. Totals and reports
    # filter on category_key so labels outside the enum still add up.
    @property
    def tag(self) -> ExpenseCategory:
        return resolve_expense_category(self.category)


class IncomeRecord(FinancialRecord):
    @property
    def tag(self) -> IncomeCategory:
        return resolve_income_category(self.category)


class BudgetEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int | str | None = None
    category: str
    amount: float
    date: str
    owner_id: str = Field(validation_alias=AliasChoices("owner_id", "user_id"))

    @property
    def category_key(self) -> str:
        return normalize_category(self.category)


class GoalStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


class GoalContribution(BaseModel):
    id: int | None = None
    amount: float
    date: str
    note: str | None = None


class FinancialGoal(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("id", "goal_id"))
    title: str
    target_amount: float
    target_date: str | None = None
    status: GoalStatus = GoalStatus.ACTIVE
    contributions: Optional[list[GoalContribution]] = None

    @property
    def saved_amount(self) -> float:
        return sum(contribution.amount for contribution in self.contributions or [])


class QueryCriteria(BaseModel):
    category: str | None = None
    month: int | None = Field(default=None, ge=1, le=12)
    year: int | None = None

    @model_validator(mode="after")
    def _month_and_year_together(self) -> "QueryCriteria":
        if (self.month is None) != (self.year is None):
            raise ValueError("month and year must be given together")
        return self

    @property
    def category_key(self) -> str | None:
        if self.category is None:
            return None
        return normalize_category(self.category)

    def matches(self, record: FinancialRecord) -> bool:
        if self.month is not None and self.year is not None:
            if not record.in_month(self.month, self.year):
                return False
        key = self.category_key
        if key is not None and key not in record.category_key:
            return False
        return True


class AssistantReply(BaseModel):
    text: str
    is_error: bool = False


class ChatMessage(BaseModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    text: str
    is_user: bool
    timestamp: datetime = Field(default_factory=datetime.now)

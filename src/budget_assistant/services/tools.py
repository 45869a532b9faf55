from enum import Enum
from typing import Any


class ToolName(str, Enum):
    EXPENSES_TOTAL = "get_expenses_total"
    INCOME_TOTAL = "get_income_total"
    FINANCIAL_GOALS = "get_financial_goals"
    BUDGET_DETAILS = "get_budget_details"

    @classmethod
    def lookup(cls, name: str | None) -> "ToolName | None":
        try:
            return cls(name)
        except ValueError:
            return None


def _period_properties() -> dict[str, Any]:
    return {
        "month": {"type": "integer", "minimum": 1, "maximum": 12, "description": "Calendar month, 1-12."},
        "year": {"type": "integer", "description": "Four digit year."},
    }


def _category_property(kind: str) -> dict[str, Any]:
    return {
        "type": "string",
        "description": f"{kind} category to filter by, e.g. 'food'. Partial names match.",
    }


def _function(name: ToolName, description: str, properties: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": name.value,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "additionalProperties": False,
            },
        },
    }


TOOL_DEFINITIONS: list[dict[str, Any]] = [
    _function(
        ToolName.EXPENSES_TOTAL,
        "Total amount the user spent, optionally filtered by category and month.",
        {"category": _category_property("Expense"), **_period_properties()},
    ),
    _function(
        ToolName.INCOME_TOTAL,
        "Total income the user received, optionally filtered by category and month.",
        {"category": _category_property("Income"), **_period_properties()},
    ),
    _function(
        ToolName.FINANCIAL_GOALS,
        "The user's savings goals with target, saved amount and status.",
        {},
    ),
    _function(
        ToolName.BUDGET_DETAILS,
        "Budget versus spending per category for a month. Defaults to the current month.",
        _period_properties(),
    ),
]

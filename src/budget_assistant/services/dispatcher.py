import json
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from budget_assistant.domain.money import format_amount
from budget_assistant.logger import get_logger
from budget_assistant.services.query_engine import FinancialQueryEngine
from budget_assistant.services.tools import ToolName

logger = get_logger(__name__)

UNKNOWN_TOOL = "Unknown tool"
ARGUMENTS_ERROR = "Error parsing arguments"


class ToolArguments(BaseModel):
    category: str | None = None
    month: int | None = Field(default=None, ge=1, le=12)
    year: int | None = None


def parse_arguments(arguments: str | Mapping[str, Any] | None) -> ToolArguments:
    """Decode the loosely-typed wire arguments; raises ``ValueError`` on garbage."""
    if arguments is None:
        return ToolArguments()
    if isinstance(arguments, str):
        if not arguments.strip():
            return ToolArguments()
        arguments = json.loads(arguments)
    if not isinstance(arguments, Mapping):
        raise ValueError("tool arguments must be a JSON object")
    return ToolArguments.model_validate(dict(arguments))


class ToolCallDispatcher:
    """Runs a named tool against the query engine and always returns text.

    Problems are reported as plain strings so the result can still be handed
    back to the model as a tool turn.
    """

    def __init__(self, engine: FinancialQueryEngine, clock: Callable[[], datetime] = datetime.now):
        self.engine = engine
        self.clock = clock

    async def dispatch(self, name: str, arguments: str | Mapping[str, Any] | None = None) -> str:
        tool = ToolName.lookup(name)
        if tool is None:
            logger.warning("Model requested unknown tool '%s'", name)
            return UNKNOWN_TOOL

        try:
            args = parse_arguments(arguments)
        except (ValueError, ValidationError) as exc:
            logger.warning("Bad arguments for %s: %s", tool.value, exc)
            return ARGUMENTS_ERROR

        logger.info("[TOOL] %s %s", tool.value, args.model_dump(exclude_none=True))
        now = self.clock()

        if tool is ToolName.BUDGET_DETAILS:
            month = now.month if args.month is None else args.month
            year = now.year if args.year is None else args.year
            return await self.engine.budget_report(month, year)

        if tool is ToolName.FINANCIAL_GOALS:
            return await self.engine.goals_summary()

        month, year = args.month, args.year
        if month is not None and year is None:
            year = now.year
        elif month is None and year is not None:
            logger.debug("Ignoring year %s without a month", year)
            year = None

        if tool is ToolName.EXPENSES_TOTAL:
            total = await self.engine.total_expenses(args.category, month, year)
        else:
            total = await self.engine.total_income(args.category, month, year)
        return format_amount(total)

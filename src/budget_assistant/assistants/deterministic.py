import asyncio
from collections.abc import Callable
from datetime import datetime

from budget_assistant.domain.dates import month_name, previous_month
from budget_assistant.domain.money import format_currency
from budget_assistant.logger import get_logger
from budget_assistant.models import AssistantReply
from budget_assistant.services.query_engine import FinancialQueryEngine

logger = get_logger(__name__)

SPEND_KEYWORDS = ("spend", "expense")
# Order matters: the first keyword found in the question wins.
CATEGORY_KEYWORDS = ("food", "travel", "housing", "entertainment", "groceries", "fuel", "shopping")

HELP_TEXT = "I can help you track expenses. Try asking 'How much did I spend on food last month?'"


class DeterministicAssistant:
    """Keyword-driven spending answers, no conversation state.

    Only recognises spend/expense questions; everything else gets the help text.
    """

    def __init__(
        self,
        engine: FinancialQueryEngine,
        latency: float = 1.0,
        currency_symbol: str = "₹",
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.engine = engine
        self.latency = latency
        self.currency_symbol = currency_symbol
        self.clock = clock

    @staticmethod
    def match_category(lowered: str) -> str | None:
        for keyword in CATEGORY_KEYWORDS:
            if keyword in lowered:
                return keyword
        return None

    def resolve_period(self, lowered: str) -> tuple[int, int]:
        now = self.clock()
        month, year = now.month, now.year
        if "last month" in lowered:
            month, year = previous_month(month, year)
        return month, year

    async def send_message(self, text: str) -> AssistantReply:
        if self.latency > 0:
            await asyncio.sleep(self.latency)

        lowered = text.lower()
        if not any(keyword in lowered for keyword in SPEND_KEYWORDS):
            return AssistantReply(text=HELP_TEXT)

        category = self.match_category(lowered)
        month, year = self.resolve_period(lowered)
        logger.debug("Spend question: category=%s period=%s/%s", category, month, year)

        total = await self.engine.total_expenses(category, month, year)
        amount = format_currency(total, self.currency_symbol)
        period = f"{month_name(month)} {year}"

        if category:
            return AssistantReply(text=f"You spent {amount} on {category.capitalize()} in {period}.")
        return AssistantReply(text=f"Your total spending in {period} was {amount}.")

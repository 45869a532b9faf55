from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from conftest import OWNER, InMemoryRepository, expense

from budget_assistant.assistants.base import AssistantBackend
from budget_assistant.assistants.deterministic import HELP_TEXT, DeterministicAssistant
from budget_assistant.services.query_engine import FinancialQueryEngine


def _assistant(engine: FinancialQueryEngine, now: datetime) -> DeterministicAssistant:
    return DeterministicAssistant(engine, latency=0, currency_symbol="₹", clock=lambda: now)


@pytest.fixture
def mock_engine() -> MagicMock:
    engine = MagicMock(spec=FinancialQueryEngine)
    engine.total_expenses = AsyncMock(return_value=2500.0)
    return engine


@pytest.mark.anyio
async def test_food_last_month(repository: InMemoryRepository, fixed_now: datetime) -> None:
    assistant = _assistant(FinancialQueryEngine(repository, OWNER), fixed_now)

    reply = await assistant.send_message("How much did I spend on food last month?")

    assert reply.is_error is False
    assert reply.text == "You spent ₹300 on Food in September 2026."


@pytest.mark.anyio
async def test_last_month_rolls_back_over_new_year(mock_engine: MagicMock) -> None:
    assistant = _assistant(mock_engine, datetime(2027, 1, 15))

    reply = await assistant.send_message("How much did I spend on food last month?")

    mock_engine.total_expenses.assert_awaited_once_with("food", 12, 2026)
    assert "Food" in reply.text
    assert "₹2,500" in reply.text
    assert "December 2026" in reply.text


@pytest.mark.anyio
async def test_total_spending_this_month(repository: InMemoryRepository, fixed_now: datetime) -> None:
    assistant = _assistant(FinancialQueryEngine(repository, OWNER), fixed_now)

    reply = await assistant.send_message("What are my expenses?")

    assert reply.text == "Your total spending in October 2026 was ₹3,000."


@pytest.mark.anyio
async def test_first_vocabulary_keyword_wins(mock_engine: MagicMock, fixed_now: datetime) -> None:
    assistant = _assistant(mock_engine, fixed_now)

    await assistant.send_message("Did I spend more on shopping or food?")

    mock_engine.total_expenses.assert_awaited_once_with("food", 10, 2026)


@pytest.mark.anyio
async def test_unrelated_question_gets_help(mock_engine: MagicMock, fixed_now: datetime) -> None:
    assistant = _assistant(mock_engine, fixed_now)

    reply = await assistant.send_message("What's my savings goal?")

    assert reply.text == HELP_TEXT
    mock_engine.total_expenses.assert_not_called()


@pytest.mark.anyio
async def test_simulated_latency(mock_engine: MagicMock, fixed_now: datetime) -> None:
    assistant = DeterministicAssistant(mock_engine, latency=1.0, clock=lambda: fixed_now)

    with patch("budget_assistant.assistants.deterministic.asyncio.sleep", new=AsyncMock()) as sleep:
        await assistant.send_message("spend")

    sleep.assert_awaited_once_with(1.0)


@pytest.mark.anyio
async def test_amounts_are_grouped(fixed_now: datetime) -> None:
    repo = InMemoryRepository({"expenses": [expense(1, "Housing", 123456.4, "2026-10-01")]})
    assistant = _assistant(FinancialQueryEngine(repo, OWNER), fixed_now)

    reply = await assistant.send_message("housing expense")

    assert reply.text == "You spent ₹123,456 on Housing in October 2026."


def test_satisfies_backend_protocol(mock_engine: MagicMock) -> None:
    assert isinstance(DeterministicAssistant(mock_engine, latency=0), AssistantBackend)

import copy
import json
from datetime import datetime
from typing import Any

import pytest
from conftest import OWNER, FailingRepository, InMemoryRepository

from budget_assistant.assistants.base import AssistantBackend
from budget_assistant.assistants.orchestrated import (
    NO_FOLLOW_UP_TEXT,
    NO_RESPONSE_TEXT,
    OrchestratedAssistant,
)
from budget_assistant.completion.base import CompletionError, CompletionResponse
from budget_assistant.conversation import AssistantTurn, ToolTurn, UserTurn
from budget_assistant.services.dispatcher import ToolCallDispatcher
from budget_assistant.services.query_engine import FinancialQueryEngine


def text_response(text: str | None) -> CompletionResponse:
    return CompletionResponse.model_validate(
        {"id": "cmpl", "choices": [{"message": {"role": "assistant", "content": text}}]}
    )


def tool_response(*calls: tuple[str, str, dict[str, Any]]) -> CompletionResponse:
    return CompletionResponse.model_validate({
        "choices": [{
            "message": {
                "role": "assistant",
                "content": None,
                "tool_calls": [
                    {"id": call_id, "type": "function",
                     "function": {"name": name, "arguments": json.dumps(args)}}
                    for call_id, name, args in calls
                ],
            },
        }],
    })


class ScriptedCompletionClient:
    def __init__(self, *responses: CompletionResponse | Exception):
        self.responses = list(responses)
        self.requests: list[list[dict[str, Any]]] = []

    async def complete(self, messages: list[dict[str, Any]]) -> CompletionResponse:
        self.requests.append(copy.deepcopy(messages))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _assistant(client: ScriptedCompletionClient, repository, now: datetime) -> OrchestratedAssistant:
    dispatcher = ToolCallDispatcher(FinancialQueryEngine(repository, OWNER), clock=lambda: now)
    return OrchestratedAssistant(client, dispatcher)


@pytest.mark.anyio
async def test_plain_text_round_is_terminal(repository: InMemoryRepository, fixed_now: datetime) -> None:
    client = ScriptedCompletionClient(text_response("Hi there!"))
    assistant = _assistant(client, repository, fixed_now)

    reply = await assistant.send_message("Hello")

    assert reply.text == "Hi there!"
    assert reply.is_error is False
    assert len(client.requests) == 1
    assert client.requests[0] == [{"role": "user", "content": "Hello"}]
    assert list(assistant.history) == [UserTurn(content="Hello"), AssistantTurn(content="Hi there!")]


@pytest.mark.anyio
async def test_tool_round_trip_ordering(repository: InMemoryRepository, fixed_now: datetime) -> None:
    client = ScriptedCompletionClient(
        text_response("Hello!"),
        tool_response(("call_X", "get_expenses_total", {"category": "food"})),
        text_response("You spent 3799 on food."),
    )
    assistant = _assistant(client, repository, fixed_now)
    await assistant.send_message("Hi")

    reply = await assistant.send_message("How much on food?")

    assert reply.text == "You spent 3799 on food."
    round_two = client.requests[2]
    assert round_two[:3] == [
        {"role": "user", "content": "Hi"},
        {"role": "assistant", "content": "Hello!"},
        {"role": "user", "content": "How much on food?"},
    ]
    call_turn, result_turn = round_two[3], round_two[4]
    assert call_turn["role"] == "assistant"
    assert call_turn["tool_calls"][0]["id"] == "call_X"
    assert call_turn["tool_calls"][0]["function"]["name"] == "get_expenses_total"
    assert result_turn == {"role": "tool", "tool_call_id": "call_X", "content": "3799"}
    assert len(round_two) == 5

    turns = list(assistant.history)
    assert len(turns) == 6
    assert isinstance(turns[3], AssistantTurn) and turns[3].tool_calls[0].id == "call_X"
    assert isinstance(turns[4], ToolTurn) and turns[4].tool_call_id == "call_X"
    assert turns[5] == AssistantTurn(content="You spent 3799 on food.")


@pytest.mark.anyio
async def test_only_first_invocation_is_honoured(repository: InMemoryRepository, fixed_now: datetime) -> None:
    client = ScriptedCompletionClient(
        tool_response(
            ("call_1", "get_income_total", {"month": 10, "year": 2026}),
            ("call_2", "get_financial_goals", {}),
        ),
        text_response("You earned 57000."),
    )
    assistant = _assistant(client, repository, fixed_now)

    await assistant.send_message("Income this month and my goals?")

    round_two = client.requests[1]
    assert [call["id"] for call in round_two[1]["tool_calls"]] == ["call_1"]
    assert round_two[2] == {"role": "tool", "tool_call_id": "call_1", "content": "57000"}


@pytest.mark.anyio
async def test_unknown_tool_result_is_sent_back(repository: InMemoryRepository, fixed_now: datetime) -> None:
    client = ScriptedCompletionClient(
        tool_response(("call_9", "transfer_money", {})),
        text_response("I can't do that."),
    )
    assistant = _assistant(client, repository, fixed_now)

    reply = await assistant.send_message("Move 100 to savings")

    assert reply.text == "I can't do that."
    assert client.requests[1][-1]["content"] == "Unknown tool"


@pytest.mark.anyio
async def test_failing_repository_does_not_break_the_conversation(fixed_now: datetime) -> None:
    client = ScriptedCompletionClient(
        tool_response(("call_b", "get_budget_details", {})),
        text_response("I couldn't load your budget right now."),
    )
    assistant = _assistant(client, FailingRepository(), fixed_now)

    reply = await assistant.send_message("How is my budget?")

    assert reply.is_error is False
    assert client.requests[1][-1]["content"] == "Error fetching budget details."
    assert len(assistant.history) == 4


@pytest.mark.anyio
async def test_round_one_failure_leaves_history(repository: InMemoryRepository, fixed_now: datetime) -> None:
    client = ScriptedCompletionClient(text_response("Hi"), CompletionError("boom"), text_response("Retry ok"))
    assistant = _assistant(client, repository, fixed_now)
    await assistant.send_message("Hello")
    before = assistant.history.snapshot()

    with pytest.raises(CompletionError):
        await assistant.send_message("Spend?")

    assert assistant.history.snapshot() == before

    await assistant.send_message("Spend?")
    assert client.requests[2] == client.requests[1]
    assert len(assistant.history) == 4


@pytest.mark.anyio
async def test_round_two_failure_leaves_history(repository: InMemoryRepository, fixed_now: datetime) -> None:
    client = ScriptedCompletionClient(
        tool_response(("call_X", "get_expenses_total", {"category": "food"})),
        CompletionError("timeout"),
    )
    assistant = _assistant(client, repository, fixed_now)

    with pytest.raises(CompletionError):
        await assistant.send_message("How much on food?")

    assert len(assistant.history) == 0


@pytest.mark.anyio
async def test_round_two_without_text(repository: InMemoryRepository, fixed_now: datetime) -> None:
    client = ScriptedCompletionClient(
        tool_response(("call_X", "get_expenses_total", {})),
        tool_response(("call_Y", "get_income_total", {})),
    )
    assistant = _assistant(client, repository, fixed_now)

    reply = await assistant.send_message("Totals?")

    assert reply.text == NO_FOLLOW_UP_TEXT
    assert reply.is_error is True
    assert len(assistant.history) == 0


@pytest.mark.anyio
@pytest.mark.parametrize(
    "response",
    [text_response(None), text_response(""), CompletionResponse.model_validate({"choices": []})],
)
async def test_empty_round_one(
    repository: InMemoryRepository, fixed_now: datetime, response: CompletionResponse
) -> None:
    assistant = _assistant(ScriptedCompletionClient(response), repository, fixed_now)

    reply = await assistant.send_message("Hello?")

    assert reply.text == NO_RESPONSE_TEXT
    assert reply.is_error is True
    assert len(assistant.history) == 0


def test_satisfies_backend_protocol(repository: InMemoryRepository, fixed_now: datetime) -> None:
    assert isinstance(_assistant(ScriptedCompletionClient(), repository, fixed_now), AssistantBackend)

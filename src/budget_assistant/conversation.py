from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

from budget_assistant.services.tools import ToolName


class ToolInvocation(BaseModel):
    id: str = Field(min_length=1)
    name: str
    arguments: str = "{}"  # JSON-encoded, exactly as exchanged with the model

    @property
    def tool(self) -> ToolName | None:
        return ToolName.lookup(self.name)

    def to_wire(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }


class UserTurn(BaseModel):
    role: Literal["user"] = "user"
    content: str

    def to_wire(self) -> dict[str, Any]:
        return {"role": self.role, "content": self.content}


class AssistantTurn(BaseModel):
    role: Literal["assistant"] = "assistant"
    content: str | None = None
    tool_calls: list[ToolInvocation] = Field(default_factory=list)

    def to_wire(self) -> dict[str, Any]:
        wire: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            wire["tool_calls"] = [call.to_wire() for call in self.tool_calls]
        return wire


class ToolTurn(BaseModel):
    role: Literal["tool"] = "tool"
    tool_call_id: str = Field(min_length=1)
    content: str

    def to_wire(self) -> dict[str, Any]:
        return {"role": self.role, "tool_call_id": self.tool_call_id, "content": self.content}


ConversationTurn = Annotated[Union[UserTurn, AssistantTurn, ToolTurn], Field(discriminator="role")]


class ConversationHistory:
    """Append-only turn sequence owned by a single assistant backend.

    A tool turn is only accepted when an earlier assistant turn issued the
    invocation it answers.
    """

    def __init__(self, turns: Iterable[ConversationTurn] = ()):
        self._turns: list[ConversationTurn] = []
        self.extend(turns)

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[ConversationTurn]:
        return iter(self._turns)

    def __getitem__(self, index: int) -> ConversationTurn:
        return self._turns[index]

    @staticmethod
    def _check(turns: list[ConversationTurn], invocation_ids: set[str]) -> None:
        for turn in turns:
            if isinstance(turn, AssistantTurn):
                invocation_ids.update(call.id for call in turn.tool_calls)
            elif isinstance(turn, ToolTurn) and turn.tool_call_id not in invocation_ids:
                raise ValueError(f"Tool turn '{turn.tool_call_id}' has no matching invocation")

    def _invocation_ids(self) -> set[str]:
        return {
            call.id
            for turn in self._turns
            if isinstance(turn, AssistantTurn)
            for call in turn.tool_calls
        }

    def append(self, turn: ConversationTurn) -> None:
        self.extend([turn])

    def extend(self, turns: Iterable[ConversationTurn]) -> None:
        """Append all turns or none of them."""
        pending = list(turns)
        self._check(pending, self._invocation_ids())
        self._turns.extend(pending)

    def snapshot(self) -> tuple[ConversationTurn, ...]:
        return tuple(self._turns)

    def to_wire(self, *extra: ConversationTurn) -> list[dict[str, Any]]:
        """Wire form of the history followed by ``extra`` staged turns, which are not stored."""
        self._check(list(extra), self._invocation_ids())
        return [turn.to_wire() for turn in (*self._turns, *extra)]

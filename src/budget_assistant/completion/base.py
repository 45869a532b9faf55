from typing import Any, Protocol

from pydantic import BaseModel, Field

from budget_assistant.conversation import ToolInvocation


class CompletionError(Exception):
    """Transport or decode failure talking to the completion endpoint."""


class FunctionCall(BaseModel):
    name: str
    arguments: str = "{}"


class WireToolCall(BaseModel):
    id: str = Field(min_length=1)
    type: str = "function"
    function: FunctionCall

    def to_invocation(self) -> ToolInvocation:
        return ToolInvocation(id=self.id, name=self.function.name, arguments=self.function.arguments)


class CompletionMessage(BaseModel):
    role: str
    content: str | None = None
    tool_calls: list[WireToolCall] | None = None


class Choice(BaseModel):
    message: CompletionMessage


class CompletionResponse(BaseModel):
    id: str | None = None
    choices: list[Choice]

    @property
    def message(self) -> CompletionMessage | None:
        return self.choices[0].message if self.choices else None

    @property
    def text(self) -> str | None:
        message = self.message
        if message is None or not message.content:
            return None
        return message.content

    @property
    def invocations(self) -> list[ToolInvocation]:
        message = self.message
        if message is None or not message.tool_calls:
            return []
        return [call.to_invocation() for call in message.tool_calls]


class CompletionClient(Protocol):
    async def complete(self, messages: list[dict[str, Any]]) -> CompletionResponse:
        """Send the conversation and return the model's next message."""
        ...

from typing import Protocol, runtime_checkable

from budget_assistant.models import AssistantReply


@runtime_checkable
class AssistantBackend(Protocol):
    async def send_message(self, text: str) -> AssistantReply:
        """Answer one user message.

        Calls on a single instance must not overlap.
        """
        ...

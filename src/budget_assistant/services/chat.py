import asyncio

from budget_assistant.assistants.base import AssistantBackend
from budget_assistant.completion.base import CompletionError
from budget_assistant.logger import get_logger
from budget_assistant.models import ChatMessage

logger = get_logger(__name__)

GREETING = "Hello! I'm your Budget Assistant. Ask me about your expenses."
CONNECTION_APOLOGY = "Sorry, I encountered an error connecting to the service."


class ChatSession:
    def __init__(self, owner_id: str, backend: AssistantBackend):
        self.owner_id = owner_id
        self.backend = backend
        self.messages: list[ChatMessage] = [ChatMessage(text=GREETING, is_user=False)]
        self.error_message: str | None = None
        self.last_reply_is_error = False
        self._lock = asyncio.Lock()

    @property
    def is_busy(self) -> bool:
        return self._lock.locked()

    async def send(self, text: str) -> ChatMessage | None:
        """Send one message and return the assistant's reply, or ``None`` for blank input."""
        text = text.strip()
        if not text:
            return None

        # The backend history tolerates no overlapping calls.
        async with self._lock:
            self.messages.append(ChatMessage(text=text, is_user=True))
            self.error_message = None
            try:
                reply = await self.backend.send_message(text)
            except CompletionError as exc:
                logger.error("Assistant request failed for %s: %s", self.owner_id, exc)
                self.error_message = f"Failed to get response: {exc}"
                self.last_reply_is_error = True
                message = ChatMessage(text=CONNECTION_APOLOGY, is_user=False)
            else:
                self.last_reply_is_error = reply.is_error
                message = ChatMessage(text=reply.text, is_user=False)
            self.messages.append(message)
            return message

    async def aclose(self) -> None:
        close = getattr(self.backend, "aclose", None)
        if close is not None:
            await close()

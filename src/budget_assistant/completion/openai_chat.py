import os
from collections.abc import Callable
from datetime import datetime
from typing import Any

from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError

from budget_assistant.completion.base import CompletionError, CompletionResponse
from budget_assistant.logger import get_logger
from budget_assistant.services.tools import TOOL_DEFINITIONS

logger = get_logger(__name__)

SYSTEM_PROMPT = """
You are a helpful budget assistant inside a personal finance app.
Answer questions about the user's expenses, income, budgets and savings goals.
Use the provided tools to look up numbers; never invent amounts.
Today is {today}. Resolve relative dates such as "last month" against it.
Keep answers short and friendly.
""".strip()


class OpenAICompletionClient:
    """Talks to an OpenAI-compatible chat completions API with the tool set attached."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gpt-4o-mini",
        base_url: str | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.client = AsyncOpenAI(
            api_key=api_key or os.getenv("OPENAI_API_KEY"),
            base_url=base_url or os.getenv("OPENAI_BASE_URL") or None,
        )
        self.model = model
        self.clock = clock

    def _system_message(self) -> dict[str, Any]:
        today = self.clock().strftime("%A, %d %B %Y")
        return {"role": "system", "content": SYSTEM_PROMPT.format(today=today)}

    async def complete(self, messages: list[dict[str, Any]]) -> CompletionResponse:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[self._system_message(), *messages],
                tools=TOOL_DEFINITIONS,
                tool_choice="auto",
                temperature=0.0,
            )
        except OpenAIError as exc:
            logger.error("LLM Error: %s", exc)
            raise CompletionError(f"Completion request failed: {exc}") from exc

        try:
            return CompletionResponse.model_validate(response.model_dump())
        except ValidationError as exc:
            logger.error("Unexpected completion payload: %s", exc)
            raise CompletionError("Could not decode completion response") from exc

    async def aclose(self) -> None:
        await self.client.close()

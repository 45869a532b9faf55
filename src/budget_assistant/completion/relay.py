import asyncio
import os
from typing import Any

import httpx
from pydantic import ValidationError

from budget_assistant.completion.base import CompletionError, CompletionResponse
from budget_assistant.logger import get_logger

logger = get_logger(__name__)


class RelayCompletionClient:
    """Client for the hosted assistant function.

    The function receives the whole conversation plus the owner id and answers
    with an OpenAI-style ``choices`` payload.
    """

    def __init__(
        self,
        user_id: str,
        url: str | None = None,
        token: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
    ):
        self.user_id = user_id
        self.url = url or os.getenv("ASSISTANT_URL")
        self.token = token or os.getenv("ASSISTANT_TOKEN")
        self.headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.token:
            self.headers["Authorization"] = f"Bearer {self.token}"
        self.timeout = timeout
        self._client = client
        self._client_lock = asyncio.Lock()

    async def aclose(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _get_client(self) -> httpx.AsyncClient:
        client = self._client
        if client is not None and not client.is_closed:
            return client

        async with self._client_lock:
            client = self._client
            if client is None or client.is_closed:
                client = httpx.AsyncClient()
                self._client = client
            return client

    async def complete(self, messages: list[dict[str, Any]]) -> CompletionResponse:
        if not self.url:
            raise CompletionError("Assistant endpoint URL is not configured.")

        client = await self._get_client()
        payload = {"messages": messages, "user_id": self.user_id}
        try:
            response = await client.post(
                self.url,
                headers=self.headers,
                json=payload,
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            logger.error("Assistant endpoint unreachable: %s", exc)
            raise CompletionError(f"Request failed: {exc}") from exc

        if not response.is_success:
            logger.error("Server Error %s: %s", response.status_code, response.text[:500])
            raise CompletionError(f"Assistant endpoint returned status {response.status_code}")

        try:
            return CompletionResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            logger.error("Undecodable assistant response: %s", exc)
            raise CompletionError("Could not decode assistant response") from exc

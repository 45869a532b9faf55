import asyncio
import os
from typing import Any

import httpx

from budget_assistant.logger import get_logger
from budget_assistant.repository import GOALS_TABLE, QueryFilter, RepositoryError

logger = get_logger(__name__)

DEFAULT_SELECTS = {
    GOALS_TABLE: "*,contributions:goal_contributions(*)",
}


def _filter_param(query_filter: QueryFilter) -> tuple[str, str]:
    value = query_filter.value
    if isinstance(value, bool):
        value = str(value).lower()
    return query_filter.column, f"{query_filter.op.value}.{value}"


class SupabaseRepository:
    """Read-only access to the record store over its PostgREST interface."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        selects: dict[str, str] | None = None,
    ):
        base = base_url or os.getenv("SUPABASE_URL") or ""
        self.base_url = base.rstrip("/") or None
        self.api_key = api_key or os.getenv("SUPABASE_KEY")
        self.headers = {
            "apikey": self.api_key or "",
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }
        self.timeout = timeout
        self.selects = dict(DEFAULT_SELECTS if selects is None else selects)
        self._client = client
        self._client_lock = asyncio.Lock()

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.api_key)

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

    def _build_params(
        self, table: str, filters: list[QueryFilter], order_by: str
    ) -> list[tuple[str, str]]:
        params = [("select", self.selects.get(table, "*"))]
        params.extend(_filter_param(query_filter) for query_filter in filters)
        params.append(("order", f"{order_by}.desc,id.desc"))
        return params

    async def fetch_all(
        self,
        table: str,
        filters: list[QueryFilter],
        order_by: str = "date",
    ) -> list[dict[str, Any]]:
        if not self.configured:
            raise RepositoryError("Supabase credentials missing.")

        client = await self._get_client()
        try:
            response = await client.get(
                f"{self.base_url}/rest/v1/{table}",
                headers=self.headers,
                params=self._build_params(table, filters, order_by),
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            raise RepositoryError(
                f"Fetching '{table}' failed with status {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise RepositoryError(f"Fetching '{table}' failed: {exc}") from exc
        except ValueError as exc:
            raise RepositoryError(f"Invalid JSON from '{table}'") from exc

        if not isinstance(data, list):
            raise RepositoryError(f"Unexpected payload from '{table}'")
        logger.debug("Fetched %s rows from '%s'", len(data), table)
        return data

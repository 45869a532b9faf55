import os
from collections.abc import Callable
from datetime import datetime

from budget_assistant.assistants.base import AssistantBackend
from budget_assistant.assistants.deterministic import DeterministicAssistant
from budget_assistant.assistants.orchestrated import OrchestratedAssistant
from budget_assistant.completion.base import CompletionClient
from budget_assistant.completion.openai_chat import OpenAICompletionClient
from budget_assistant.completion.relay import RelayCompletionClient
from budget_assistant.core import settings
from budget_assistant.logger import get_logger
from budget_assistant.repository import RecordRepository
from budget_assistant.services.dispatcher import ToolCallDispatcher
from budget_assistant.services.query_engine import FinancialQueryEngine

logger = get_logger(__name__)

CompletionFactory = Callable[[str], CompletionClient]


def default_backend_kind() -> str:
    configured = settings.get_env_str("ASSISTANT_BACKEND")
    if configured:
        kind = configured.lower()
        if kind in {settings.BACKEND_DETERMINISTIC, settings.BACKEND_ORCHESTRATED}:
            return kind
        logger.warning("Unknown ASSISTANT_BACKEND '%s', using the deterministic assistant.", configured)
        return settings.BACKEND_DETERMINISTIC
    if os.getenv("ASSISTANT_URL") or os.getenv("OPENAI_API_KEY"):
        return settings.BACKEND_ORCHESTRATED
    return settings.BACKEND_DETERMINISTIC


def default_completion_provider() -> str:
    configured = settings.get_env_str("COMPLETION_PROVIDER")
    if configured:
        return configured.lower()
    if os.getenv("OPENAI_API_KEY") and not os.getenv("ASSISTANT_URL"):
        return settings.PROVIDER_OPENAI
    return settings.PROVIDER_RELAY


def build_completion_client(owner_id: str) -> CompletionClient:
    provider = default_completion_provider()
    if provider == settings.PROVIDER_OPENAI:
        model = settings.get_env_str("OPENAI_MODEL", settings.DEFAULT_OPENAI_MODEL)
        logger.info("OpenAI completion enabled: model=%s, base_url=%s", model, os.getenv("OPENAI_BASE_URL") or "default")
        return OpenAICompletionClient(model=model)

    if provider != settings.PROVIDER_RELAY:
        logger.warning("Unknown COMPLETION_PROVIDER '%s', using the relay endpoint.", provider)
    timeout = settings.get_env_float("REQUEST_TIMEOUT", settings.DEFAULT_REQUEST_TIMEOUT, min_value=1.0)
    return RelayCompletionClient(user_id=owner_id, timeout=timeout)


class AssistantFactory:
    """Builds one backend per conversation over a shared repository."""

    def __init__(
        self,
        repository: RecordRepository,
        kind: str | None = None,
        completion_factory: CompletionFactory | None = None,
        latency: float | None = None,
        currency_symbol: str | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.repository = repository
        self.kind = kind or default_backend_kind()
        self.completion_factory = completion_factory or build_completion_client
        self.latency = (
            latency
            if latency is not None
            else settings.get_env_float("SIMULATED_LATENCY", settings.DEFAULT_SIMULATED_LATENCY, min_value=0.0)
        )
        self.currency_symbol = currency_symbol or settings.currency_symbol()
        self.clock = clock

    def create(self, owner_id: str) -> AssistantBackend:
        engine = FinancialQueryEngine(self.repository, owner_id)

        if self.kind == settings.BACKEND_ORCHESTRATED:
            dispatcher = ToolCallDispatcher(engine, clock=self.clock)
            return OrchestratedAssistant(self.completion_factory(owner_id), dispatcher)

        return DeterministicAssistant(
            engine,
            latency=self.latency,
            currency_symbol=self.currency_symbol,
            clock=self.clock,
        )

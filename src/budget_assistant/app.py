from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from budget_assistant.api.routes import chat, health
from budget_assistant.core import settings
from budget_assistant.integration.supabase import SupabaseRepository
from budget_assistant.logger import get_logger, setup_logging
from budget_assistant.manager import AssistantFactory
from budget_assistant.services.sessions import SessionRegistry

logger = get_logger(__name__)


def create_app() -> FastAPI:
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Initializing services...")
        settings.log_environment()

        repository = SupabaseRepository(
            timeout=settings.get_env_float("REQUEST_TIMEOUT", settings.DEFAULT_REQUEST_TIMEOUT, min_value=1.0)
        )
        if not repository.configured:
            logger.warning("SUPABASE_URL or SUPABASE_KEY not set. Every query will report missing data.")

        factory = AssistantFactory(repository)
        sessions = SessionRegistry(factory)

        app.state.repository = repository
        app.state.sessions = sessions

        logger.info("Services initialized (%s assistant).", factory.kind)
        yield
        logger.info("Service shutting down.")
        await sessions.close_all()
        await repository.aclose()

    app = FastAPI(title="Budget Assistant", lifespan=lifespan)
    app.include_router(chat.router)
    app.include_router(health.router)
    return app


app = create_app()

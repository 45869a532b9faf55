from typing import Annotated

from fastapi import APIRouter, Depends

from budget_assistant.api.dependencies import get_sessions
from budget_assistant.api.schemas import HealthResponse
from budget_assistant.services.sessions import SessionRegistry

router = APIRouter()


@router.get("/api/health", response_model=HealthResponse)
async def health(sessions: Annotated[SessionRegistry, Depends(get_sessions)]) -> HealthResponse:
    return HealthResponse(status="ok", backend=sessions.factory.kind, sessions=len(sessions))

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response

from budget_assistant.api.dependencies import get_session, get_sessions
from budget_assistant.api.schemas import (
    OpenSessionRequest,
    SendMessageRequest,
    SendMessageResponse,
    SessionResponse,
)
from budget_assistant.models import ChatMessage
from budget_assistant.services.chat import ChatSession
from budget_assistant.services.sessions import SessionRegistry

router = APIRouter(prefix="/api/chat")


@router.post("/sessions", response_model=SessionResponse, status_code=201)
async def open_session(
    req: OpenSessionRequest,
    sessions: Annotated[SessionRegistry, Depends(get_sessions)],
) -> SessionResponse:
    session_id, session = await sessions.open(req.user_id)
    return SessionResponse(session_id=session_id, messages=session.messages)


@router.post("/sessions/{session_id}/messages", response_model=SendMessageResponse)
async def send_message(
    req: SendMessageRequest,
    session: Annotated[ChatSession, Depends(get_session)],
) -> SendMessageResponse:
    reply = await session.send(req.text)
    if reply is None:
        raise HTTPException(status_code=400, detail="Message text is empty")
    return SendMessageResponse(
        reply=reply,
        is_error=session.last_reply_is_error,
        error_message=session.error_message,
    )


@router.get("/sessions/{session_id}/messages")
async def list_messages(
    session: Annotated[ChatSession, Depends(get_session)],
) -> list[ChatMessage]:
    return session.messages


@router.delete("/sessions/{session_id}", status_code=204)
async def close_session(
    session_id: str,
    sessions: Annotated[SessionRegistry, Depends(get_sessions)],
) -> Response:
    if not await sessions.close(session_id):
        raise HTTPException(status_code=404, detail="Chat session not found")
    return Response(status_code=204)

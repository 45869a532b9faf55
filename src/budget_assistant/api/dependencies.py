from fastapi import HTTPException, Request

from budget_assistant.services.chat import ChatSession
from budget_assistant.services.sessions import SessionRegistry


def get_sessions(request: Request) -> SessionRegistry:
    sessions = getattr(request.app.state, "sessions", None)
    if sessions is None:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return sessions


def get_session(session_id: str, request: Request) -> ChatSession:
    session = get_sessions(request).get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Chat session not found")
    return session

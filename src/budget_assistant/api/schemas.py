from pydantic import BaseModel, Field

from budget_assistant.models import ChatMessage


class OpenSessionRequest(BaseModel):
    user_id: str = Field(min_length=1)


class SessionResponse(BaseModel):
    session_id: str
    messages: list[ChatMessage]


class SendMessageRequest(BaseModel):
    text: str


class SendMessageResponse(BaseModel):
    reply: ChatMessage
    is_error: bool
    error_message: str | None = None


class HealthResponse(BaseModel):
    status: str
    backend: str
    sessions: int

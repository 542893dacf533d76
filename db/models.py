"""
Pydantic request/response models for the HTTP API.
"""
from typing import List, Optional

from pydantic import BaseModel, Field


class ChatTurn(BaseModel):
    """One history entry. Entries missing role or content are dropped later."""
    role: Optional[str] = Field(None, description="'system', 'user' or 'assistant'")
    content: Optional[str] = None


class ChatRequest(BaseModel):
    message: Optional[str] = Field(None, description="New user message (required)")
    history: Optional[List[ChatTurn]] = Field(
        None,
        description="Prior conversation, oldest first (client-managed)",
    )
    chatId: Optional[str] = Field(None, description="Conversation identifier")
    summary: Optional[str] = Field(
        None,
        description="Last summary the client received; used when server memory is gone",
    )


class ChatResponse(BaseModel):
    role: str
    content: str
    summary: Optional[str] = None
    messageCount: int
    memoryActive: bool


class ErrorResponse(BaseModel):
    role: str = "assistant"
    content: str
    error: str


class HealthResponse(BaseModel):
    status: str
    memoryBackend: str
    sessions: Optional[int] = None
    timestamp: str


class SessionResponse(BaseModel):
    chatId: str
    summary: str
    updatedAt: str


class SessionDeleteResponse(BaseModel):
    chatId: str
    deleted: bool

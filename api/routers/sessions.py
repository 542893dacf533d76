"""
Session memory endpoints.
Inspect or clear the server-side summary for a chat.
"""
from fastapi import APIRouter, Depends, HTTPException

from chatmemory.memory.store import SummaryStore
from db.models import SessionResponse, SessionDeleteResponse
from ..dependencies import get_memory_store

router = APIRouter()


@router.get("/{chat_id}", response_model=SessionResponse)
async def get_session(
    chat_id: str,
    memory_store: SummaryStore = Depends(get_memory_store)
):
    """
    Get the stored summary for a chat.

    Args:
        chat_id: Conversation identifier

    Returns:
        SessionResponse with summary and last update time
    """
    record = await memory_store.get_record(chat_id)

    if not record:
        raise HTTPException(status_code=404, detail="Session not found")

    return SessionResponse(
        chatId=record.chat_id,
        summary=record.text,
        updatedAt=record.updated_at
    )


@router.delete("/{chat_id}", response_model=SessionDeleteResponse)
async def delete_session(
    chat_id: str,
    memory_store: SummaryStore = Depends(get_memory_store)
):
    """Forget the stored summary for a chat."""
    deleted = await memory_store.delete(chat_id)
    return SessionDeleteResponse(chatId=chat_id, deleted=deleted)

"""
Chat endpoint - one request/response turn with server-side memory.
Validates input, runs the turn pipeline and translates failures into the
standard error shape.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import logging

from chatmemory.config import Settings, get_settings
from chatmemory.errors import ValidationError, ConfigurationError, UpstreamError
from chatmemory.graph import run_turn
from chatmemory.llm.provider import create_llm_client
from chatmemory.memory.store import SummaryStore
from db.models import ChatRequest, ChatResponse, ErrorResponse
from ..dependencies import get_memory_store

logger = logging.getLogger(__name__)

router = APIRouter()


APOLOGY = "Sorry, something went wrong. Please try again."
MISSING_MESSAGE = "Please type a message so I can reply."


def error_response(status_code: int, error: str, content: str = APOLOGY) -> JSONResponse:
    """Failure shape shared by every error path."""
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(content=content, error=error).model_dump()
    )


@router.post(
    "",
    response_model=ChatResponse,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse}
    }
)
async def chat(
    request: ChatRequest,
    settings: Settings = Depends(get_settings),
    memory_store: SummaryStore = Depends(get_memory_store)
):
    """
    Handle one chat turn.

    Request body:
        {
            "message": "Your question here",
            "history": [{"role": "user", "content": "..."}, ...],
            "chatId": "chat_123",
            "summary": "last summary the client received"
        }

    Returns:
        {"role", "content", "summary", "messageCount", "memoryActive"}
        or {"role": "assistant", "content": apology, "error"} on failure
    """
    try:
        if not request.message:
            raise ValidationError("Message is required")

        llm_client = create_llm_client(settings)

        state = await run_turn(
            user_message=request.message,
            history=[turn.model_dump() for turn in request.history or []],
            chat_id=request.chatId,
            client_summary=request.summary,
            llm_client=llm_client,
            memory_store=memory_store,
            settings=settings
        )

    except ValidationError as e:
        logger.warning(f"Rejected chat request: {e.message}")
        return error_response(e.status_code, e.message, MISSING_MESSAGE)

    except ConfigurationError as e:
        logger.error(f"Configuration error: {e.message}")
        return error_response(e.status_code, "Server configuration error")

    except UpstreamError as e:
        logger.error(f"API Error: {e.message} (status={e.upstream_status})")
        return error_response(e.upstream_status or 500, e.message)

    reply = state["reply"]
    summary = state.get("summary")

    return ChatResponse(
        role=reply.get("role", "assistant"),
        content=reply.get("content", ""),
        summary=summary,
        messageCount=len(state["messages"]),
        memoryActive=bool(summary)
    )

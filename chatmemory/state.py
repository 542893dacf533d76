"""
State management for the LangGraph turn pipeline.
Defines the shared state passed between the memory, assembler and
responder nodes for a single chat turn.
"""
from typing import TypedDict, List, Dict, Any, Optional
import time


DEFAULT_CHAT_ID = "default"


class TurnState(TypedDict, total=False):
    """
    Shared state for one turn: Memory -> Assembler -> Responder.

    total=False allows optional fields and the injected dependencies
    (llm_client, memory_store, context_manager, settings).
    """
    # Input
    chat_id: str
    user_message: str
    history: List[Dict[str, Any]]
    client_summary: Optional[str]

    # Memory node output
    prior_summary: Optional[str]
    summary: Optional[str]
    summary_updated: bool
    summarized_count: int
    processed_history: List[Dict[str, Any]]

    # Assembler output
    messages: List[Dict[str, str]]
    token_count: int
    trimmed_count: int

    # Responder output
    reply: Dict[str, str]

    # Metrics
    timings: Dict[str, float]
    request_start: float

    # Dependencies (injected by the chat router)
    llm_client: Any
    memory_store: Any
    context_manager: Any
    settings: Any


def create_initial_state(
    user_message: str,
    history: Optional[List[Dict[str, Any]]] = None,
    chat_id: Optional[str] = None,
    client_summary: Optional[str] = None
) -> TurnState:
    """
    Initialize state for a new turn.

    A missing chat id falls back to the shared DEFAULT_CHAT_ID, so every
    caller that omits one shares a single memory bucket.

    Args:
        user_message: Current user message
        history: Prior messages supplied by the client (oldest first)
        chat_id: Conversation identifier
        client_summary: Last summary the client saw, used when the server
            has none for this chat

    Returns:
        TurnState with initialized fields
    """
    return TurnState(
        chat_id=chat_id or DEFAULT_CHAT_ID,
        user_message=user_message,
        history=list(history or []),
        client_summary=client_summary or None,
        prior_summary=None,
        summary=None,
        summary_updated=False,
        summarized_count=0,
        processed_history=[],
        messages=[],
        token_count=0,
        trimmed_count=0,
        timings={},
        request_start=time.perf_counter()
    )

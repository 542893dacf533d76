"""
Memory node: resolves the prior summary and folds old history into it.
"""
from typing import Dict, Any
import logging
import time

from ..state import TurnState
from ..memory.summarizer import summarize_messages
from ..tools.time import elapsed_ms

logger = logging.getLogger(__name__)


async def resolve_prior_summary(state: TurnState) -> Dict[str, Any]:
    """
    Entry node: server memory wins over the client-supplied summary.
    """
    memory_store = state["memory_store"]
    stored = await memory_store.get(state["chat_id"])
    prior = stored or state.get("client_summary") or None

    if prior and not stored:
        logger.info(f"[Memory] chat={state['chat_id']} using client-supplied summary")

    return {
        **state,
        "prior_summary": prior,
        "summary": prior,
        "processed_history": state.get("history", [])
    }


async def memory_node(state: TurnState) -> Dict[str, Any]:
    """
    Summarize everything older than the recent window and store the result.
    """
    start_time = time.perf_counter()

    context_manager = state["context_manager"]
    memory_store = state["memory_store"]
    settings = state["settings"]
    chat_id = state["chat_id"]

    old_messages, recent_messages = context_manager.split_history(state.get("history", []))

    new_summary = await summarize_messages(
        old_messages,
        state["llm_client"],
        previous_summary=state.get("prior_summary"),
        max_tokens=settings.summary_max_tokens,
        timeout=settings.summary_timeout_seconds,
        input_token_limit=settings.summary_input_token_limit
    )

    # Stored before the reply call; a failed reply does not roll this back
    await memory_store.set(chat_id, new_summary)

    duration_ms = elapsed_ms(start_time)
    logger.info(
        f"[Memory] chat={chat_id} summarized {len(old_messages)} messages, "
        f"kept {len(recent_messages)} ({duration_ms:.0f}ms)"
    )

    return {
        **state,
        "summary": new_summary,
        "summary_updated": True,
        "summarized_count": len(old_messages),
        "processed_history": recent_messages,
        "timings": {
            **state.get("timings", {}),
            "memory": duration_ms
        }
    }

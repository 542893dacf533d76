"""
Responder node: sends the assembled messages to the LLM Completion Service.
"""
from typing import Dict, Any
import logging
import time

from ..state import TurnState
from ..tools.time import elapsed_ms

logger = logging.getLogger(__name__)


async def responder_node(state: TurnState) -> Dict[str, Any]:
    """
    Request the reply. UpstreamError propagates to the caller untouched.
    """
    start_time = time.perf_counter()
    settings = state["settings"]

    logger.info(
        f"[Responder] chat={state['chat_id']} sending {len(state['messages'])} messages "
        f"(~{state.get('token_count', 0)} tokens)"
    )
    reply = await state["llm_client"].complete(
        state["messages"],
        timeout=settings.reply_timeout_seconds
    )

    return {
        **state,
        "reply": reply,
        "timings": {
            **state.get("timings", {}),
            "responder": elapsed_ms(start_time)
        }
    }

"""
Assembler node: builds the bounded message list sent to the LLM.
"""
from typing import Dict, Any
import time

from ..state import TurnState
from ..memory.context_manager import estimate_message_tokens
from ..tools.time import elapsed_ms


async def assembler_node(state: TurnState) -> Dict[str, Any]:
    """
    Build [system + summary] + recent history + user message, then apply
    the hard token ceiling.
    """
    start_time = time.perf_counter()
    context_manager = state["context_manager"]

    messages = context_manager.build_messages(
        state["user_message"],
        state.get("processed_history", []),
        state.get("summary")
    )
    messages, removed = context_manager.trim_to_budget(messages)

    return {
        **state,
        "messages": messages,
        "token_count": estimate_message_tokens(messages),
        "trimmed_count": removed,
        "timings": {
            **state.get("timings", {}),
            "assembler": elapsed_ms(start_time)
        }
    }

"""
LangGraph orchestration for a single chat turn.
Defines the graph structure and the entry point used by the API layer.
"""
from langgraph.graph import StateGraph, START, END
from typing import Any, Dict, List, Optional
import logging

from .config import Settings, get_settings
from .state import TurnState, create_initial_state
from .memory.context_manager import ContextManager
from .nodes.memory import resolve_prior_summary, memory_node
from .nodes.assembler import assembler_node
from .nodes.responder import responder_node
from .tools.time import elapsed_ms

logger = logging.getLogger(__name__)


def should_summarize(state: TurnState) -> str:
    """
    Conditional edge: summarize only when history exceeds the recent window.

    Returns:
        "memory" if old messages must be folded into the summary, else "assembler"
    """
    if state["context_manager"].needs_summary(state.get("history", [])):
        return "memory"
    return "assembler"


def create_turn_graph():
    """
    Create the turn pipeline:

    Resolve → (summarize?) → Assembler → Responder → END

    Flow:
    1. Resolve picks the prior summary (server store, else client copy)
    2. Memory folds history older than the recent window into it
    3. Assembler builds the message list and enforces the token ceiling
    4. Responder calls the LLM for the reply

    Returns:
        Compiled LangGraph StateGraph
    """
    workflow = StateGraph(TurnState)

    workflow.add_node("resolve", resolve_prior_summary)
    workflow.add_node("memory", memory_node)
    workflow.add_node("assembler", assembler_node)
    workflow.add_node("responder", responder_node)

    workflow.add_edge(START, "resolve")
    workflow.add_conditional_edges(
        "resolve",
        should_summarize,
        {
            "memory": "memory",
            "assembler": "assembler"
        }
    )
    workflow.add_edge("memory", "assembler")
    workflow.add_edge("assembler", "responder")
    workflow.add_edge("responder", END)

    return workflow.compile()


_turn_graph = None


def get_turn_graph():
    """Compiled graph, built once per process."""
    global _turn_graph
    if _turn_graph is None:
        _turn_graph = create_turn_graph()
    return _turn_graph


async def run_turn(
    user_message: str,
    history: Optional[List[Dict[str, Any]]],
    chat_id: Optional[str],
    client_summary: Optional[str],
    llm_client: Any,
    memory_store: Any,
    settings: Optional[Settings] = None
) -> TurnState:
    """
    Handle one turn end to end.

    Args:
        user_message: New user message
        history: Client-supplied prior messages (oldest first)
        chat_id: Conversation id (None shares the default bucket)
        client_summary: Client's cached summary, used if the server has none
        llm_client: Object exposing `complete(messages, max_tokens, timeout)`
        memory_store: SummaryStore implementation
        settings: Limits and timeouts (defaults to environment)

    Returns:
        Final TurnState with `reply`, `summary` and `messages`

    Raises:
        UpstreamError: If the reply call fails. Summary updates made
            earlier in the turn are kept.
    """
    settings = settings or get_settings()

    state = create_initial_state(user_message, history, chat_id, client_summary)
    state["llm_client"] = llm_client
    state["memory_store"] = memory_store
    state["settings"] = settings
    state["context_manager"] = ContextManager(
        recent_limit=settings.recent_limit,
        max_context_tokens=settings.max_context_tokens
    )

    logger.info(
        f"Turn start: chat={state['chat_id']} history={len(state['history'])}"
    )

    final_state = await get_turn_graph().ainvoke(state)

    logger.info(
        f"Turn done: chat={final_state['chat_id']} messages={len(final_state['messages'])} "
        f"summarized={final_state.get('summarized_count', 0)} "
        f"trimmed={final_state.get('trimmed_count', 0)} "
        f"timings={final_state.get('timings', {})} "
        f"total={elapsed_ms(final_state['request_start']):.0f}ms"
    )
    return final_state

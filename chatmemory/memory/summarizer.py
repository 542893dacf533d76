"""
Message summarization for long-term memory compression.
Folds older messages into the previous summary through a delegated LLM
call, degrading to a local truncation digest when that call fails.
"""
from typing import Any, Dict, List, Optional
import logging

from .context_manager import estimate_tokens

logger = logging.getLogger(__name__)


FALLBACK_CHARS_PER_MESSAGE = 200

SUMMARY_DIRECTIVE = """You maintain the long-term memory of a conversation.
Summarize the conversation below into a dense digest that another assistant will rely on to continue the chat.

You MUST preserve:
- Who the user is: name, identity, stated preferences
- Topics discussed
- Decisions made and conclusions reached
- Concrete facts, numbers, dates and names
- Opinions the user expressed
- Open questions and action items
- Technical details, including code, commands and configuration

Be brief, but never drop anything from the categories above.
If a previous summary is given, merge it with the new messages into one updated summary."""


def render_transcript(messages: List[Dict[str, Any]]) -> List[str]:
    """Render messages as role-labelled lines ("USER: ...")."""
    return [
        f"{(m.get('role') or 'unknown').upper()}: {m.get('content') or ''}"
        for m in messages
    ]


def fallback_summary(
    messages: List[Dict[str, Any]],
    previous_summary: Optional[str] = None,
    max_chars: int = FALLBACK_CHARS_PER_MESSAGE
) -> str:
    """
    Deterministic local digest used when the delegate call fails.

    The previous summary is kept in full; each message is truncated to
    max_chars and role-labelled.
    """
    parts = []
    if previous_summary:
        parts.append(f"Previous summary: {previous_summary}")
    for m in messages:
        role = (m.get("role") or "unknown").upper()
        content = (m.get("content") or "")[:max_chars]
        parts.append(f"{role}: {content}")
    return "\n".join(parts)


def _bounded_transcript(lines: List[str], token_limit: int) -> List[str]:
    # Keep the newest lines that fit under the limit
    kept: List[str] = []
    used = 0
    for line in reversed(lines):
        cost = estimate_tokens(line)
        if kept and used + cost > token_limit:
            break
        kept.append(line)
        used += cost
    kept.reverse()
    return kept


def build_summary_prompt(
    messages: List[Dict[str, Any]],
    previous_summary: Optional[str] = None,
    input_token_limit: int = 60_000
) -> List[Dict[str, str]]:
    """
    Build the delegate request: directive as system message, then the
    previous summary and the new transcript as the user message.
    """
    lines = render_transcript(messages)
    bounded = _bounded_transcript(lines, input_token_limit)
    if len(bounded) < len(lines):
        logger.info(f"Summary input bounded: dropped {len(lines) - len(bounded)} oldest lines")

    body = []
    if previous_summary:
        body.append(f"[Previous Summary]\n{previous_summary}")
    body.append("[New Messages]\n" + "\n".join(bounded))

    return [
        {"role": "system", "content": SUMMARY_DIRECTIVE},
        {"role": "user", "content": "\n\n".join(body)},
    ]


async def summarize_messages(
    messages: List[Dict[str, Any]],
    llm_client: Any,
    previous_summary: Optional[str] = None,
    max_tokens: int = 1000,
    timeout: float = 30.0,
    input_token_limit: int = 60_000
) -> str:
    """
    Summarize older conversation history into compact text.

    Strategy:
    1. Fold the previous summary and the old messages into one prompt
    2. Ask the delegate model for a dense digest
    3. On any failure, fall back to the truncation digest

    Args:
        messages: Old messages to compress (oldest first)
        llm_client: Object exposing `complete(messages, max_tokens, timeout)`
        previous_summary: Summary produced by earlier turns, if any
        max_tokens: Output-size hint for the delegate
        timeout: Delegate request timeout in seconds
        input_token_limit: Cap on the rendered transcript size

    Returns:
        Delegate text as returned, or the fallback digest. Never raises.
    """
    if not messages:
        return previous_summary or ""

    prompt = build_summary_prompt(messages, previous_summary, input_token_limit)

    try:
        reply = await llm_client.complete(prompt, max_tokens=max_tokens, timeout=timeout)
        text = (reply.get("content") or "") if isinstance(reply, dict) else ""
        if not text.strip():
            raise ValueError("summarizer returned an empty reply")
        return text
    except Exception as e:
        logger.warning(
            f"Summarization failed, using truncation fallback "
            f"({len(messages)} messages): {str(e)}"
        )
        return fallback_summary(messages, previous_summary)

"""
Context manager for packing conversation history under a token ceiling.

Packing strategy:
[system persona + session summary (if present)]
[last RECENT_LIMIT user/assistant messages]
[current user message]
"""
from typing import Any, Dict, List, Optional, Tuple
import logging
import math

logger = logging.getLogger(__name__)


# Configuration
DEFAULT_RECENT_LIMIT = 100  # Messages kept verbatim
DEFAULT_MAX_CONTEXT_TOKENS = 100_000  # Hard ceiling for the final request
CHARS_PER_TOKEN = 4  # Token estimation: ceil(len(chars)/4)
MIN_RETAINED_MESSAGES = 2  # system + current user message

BASE_SYSTEM_PROMPT = "You are a helpful assistant."


def estimate_tokens(text: Optional[str]) -> int:
    """
    Estimate token count from text using simple heuristic.

    Formula: ceil(len(chars) / 4)

    Args:
        text: Input text (None counts as empty)

    Returns:
        Estimated token count
    """
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def estimate_message_tokens(messages: List[Dict[str, Any]]) -> int:
    """Sum of estimate_tokens over each message's content."""
    return sum(estimate_tokens(m.get("content")) for m in messages)


def build_system_prompt(summary: Optional[str] = None) -> str:
    """Base persona, plus a delimited memory block when a summary exists."""
    if not summary:
        return BASE_SYSTEM_PROMPT
    return (
        f"{BASE_SYSTEM_PROMPT}\n\n"
        "=== CONVERSATION MEMORY ===\n"
        f"{summary}\n"
        "=== END MEMORY ===\n\n"
        "The memory above summarizes earlier parts of this conversation. "
        "Use it to stay consistent with what the user already told you."
    )


def clean_history(history: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Drop entries missing role or content."""
    return [
        {"role": m["role"], "content": m["content"]}
        for m in history
        if m.get("role") and m.get("content")
    ]


class ContextManager:
    """
    Splits history into summarizable and verbatim parts, builds the
    message list for the LLM and enforces the token ceiling.
    """

    def __init__(
        self,
        recent_limit: int = DEFAULT_RECENT_LIMIT,
        max_context_tokens: int = DEFAULT_MAX_CONTEXT_TOKENS
    ):
        """
        Initialize context manager.

        Args:
            recent_limit: Number of newest messages kept verbatim
            max_context_tokens: Ceiling enforced by the trim loop
        """
        self.recent_limit = recent_limit
        self.max_context_tokens = max_context_tokens

    def needs_summary(self, history: List[Dict[str, Any]]) -> bool:
        return len(history) > self.recent_limit

    def split_history(
        self,
        history: List[Dict[str, Any]]
    ) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
        """
        Split into (old, recent). old is empty when history fits.

        Returns:
            Tuple of messages to summarize and messages kept verbatim
        """
        if not self.needs_summary(history):
            return [], list(history)
        cut = len(history) - self.recent_limit
        return list(history[:cut]), list(history[cut:])

    def build_messages(
        self,
        user_message: str,
        history: List[Dict[str, Any]],
        summary: Optional[str] = None
    ) -> List[Dict[str, str]]:
        """Assemble [system] + cleaned history + [user]."""
        return [
            {"role": "system", "content": build_system_prompt(summary)},
            *clean_history(history),
            {"role": "user", "content": user_message},
        ]

    def trim_to_budget(
        self,
        messages: List[Dict[str, str]]
    ) -> Tuple[List[Dict[str, str]], int]:
        """
        Drop the oldest non-system messages until the estimate fits.

        The system message (index 0) and the final user message are never
        removed, so the loop stops at two messages even if still over budget.

        Returns:
            Tuple of (trimmed messages, number removed)
        """
        trimmed = list(messages)
        removed = 0
        token_count = estimate_message_tokens(trimmed)

        while token_count > self.max_context_tokens and len(trimmed) > MIN_RETAINED_MESSAGES:
            dropped = trimmed.pop(1)
            token_count -= estimate_tokens(dropped.get("content"))
            removed += 1

        if removed:
            logger.warning(
                f"Context over {self.max_context_tokens} tokens: trimmed {removed} "
                f"oldest messages, {token_count} tokens remain"
            )
        return trimmed, removed

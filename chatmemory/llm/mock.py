"""
Mock LLM provider for testing and development.
Returns predefined replies without external API calls.
"""
from typing import Any, Dict, List, Optional


class MockLLM:
    """
    Mock completion backend.

    Usage:
        llm = MockLLM()
        reply = await llm.complete([{"role": "user", "content": "Hello"}])
    """

    async def complete(
        self,
        messages: List[Dict[str, Any]],
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> Dict[str, str]:
        """
        Produce a canned assistant reply.

        Args:
            messages: Ordered chat messages
            max_tokens: Ignored
            timeout: Ignored

        Returns:
            Reply message {"role": "assistant", "content": ...}
        """
        last = (messages[-1].get("content") or "") if messages else ""

        if "[New Messages]" in last:
            lines = last.split("[New Messages]", 1)[1].strip().splitlines()
            content = (
                "Summary of the earlier conversation: the user and assistant "
                f"exchanged {len(lines)} messages."
            )
        else:
            content = f"Mock response to: {last[:50]}"

        return {"role": "assistant", "content": content}

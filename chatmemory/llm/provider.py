"""
LLM Completion Service integration (OpenRouter, OpenAI, Anthropic, mock).

The memory core only depends on the narrow `complete()` capability, so
providers can be swapped without touching the memory policy.
"""
from typing import Any, Dict, List, Optional
from enum import Enum
import logging

from ..config import Settings, get_settings
from ..errors import ConfigurationError, UpstreamError
from .mock import MockLLM

logger = logging.getLogger(__name__)


OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

DEFAULT_MODELS = {
    "openrouter": "openrouter/auto",
    "openai": "gpt-4o-mini",
    "anthropic": "claude-3-5-haiku-latest",
}


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    MOCK = "mock"
    OPENROUTER = "openrouter"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class LLMClient:
    """
    Unified chat-completion client with provider abstraction.

    Supports:
    - Mock LLM (offline development)
    - OpenRouter (OpenAI-compatible API, default)
    - OpenAI GPT models
    - Anthropic Claude models

    Usage:
        client = LLMClient(provider="openrouter", api_key="...")
        reply = await client.complete([{"role": "user", "content": "Hello"}])
    """

    def __init__(
        self,
        provider: str = "openrouter",
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        app_url: Optional[str] = None,
        app_title: Optional[str] = None,
    ):
        """
        Initialize LLM client.

        Args:
            provider: Provider name ("mock", "openrouter", "openai", "anthropic")
            model: Model identifier (defaults per provider)
            api_key: Provider credential
            base_url: Override API base URL (OpenAI-compatible providers)
            app_url: Sent as HTTP-Referer to OpenRouter
            app_title: Sent as X-Title to OpenRouter
        """
        try:
            self.provider = LLMProvider(provider)
        except ValueError:
            raise ConfigurationError(f"Unknown LLM provider: {provider}")

        self.model = model or DEFAULT_MODELS.get(self.provider.value, "mock")
        self.api_key = api_key

        if self.provider == LLMProvider.MOCK:
            self.client = MockLLM()
        elif self.provider == LLMProvider.ANTHROPIC:
            self._init_anthropic()
        else:
            self._init_openai(base_url, app_url, app_title)

    def _init_openai(
        self,
        base_url: Optional[str],
        app_url: Optional[str],
        app_title: Optional[str],
    ):
        """Initialize OpenAI-compatible client (OpenAI or OpenRouter)."""
        from openai import AsyncOpenAI

        headers = {}
        if self.provider == LLMProvider.OPENROUTER:
            base_url = base_url or OPENROUTER_BASE_URL
            if app_url:
                headers["HTTP-Referer"] = app_url
            if app_title:
                headers["X-Title"] = app_title

        # Turns are never retried automatically
        self.client = AsyncOpenAI(
            api_key=self.api_key,
            base_url=base_url,
            default_headers=headers or None,
            max_retries=0,
        )

    def _init_anthropic(self):
        """Initialize Anthropic client."""
        from anthropic import AsyncAnthropic

        self.client = AsyncAnthropic(api_key=self.api_key, max_retries=0)

    async def complete(
        self,
        messages: List[Dict[str, Any]],
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> Dict[str, str]:
        """
        Send an ordered message list and return the single reply message.

        Args:
            messages: Chat messages [{"role": ..., "content": ...}]
            max_tokens: Optional output-size hint
            timeout: Request timeout in seconds

        Returns:
            {"role": "assistant", "content": str}

        Raises:
            UpstreamError: On timeout, connection failure, non-2xx status
                or a response without a parseable reply message
        """
        if self.provider == LLMProvider.MOCK:
            return await self.client.complete(messages, max_tokens=max_tokens, timeout=timeout)

        if self.provider == LLMProvider.ANTHROPIC:
            return await self._complete_anthropic(messages, max_tokens, timeout)

        return await self._complete_openai(messages, max_tokens, timeout)

    async def _complete_openai(
        self,
        messages: List[Dict[str, Any]],
        max_tokens: Optional[int],
        timeout: Optional[float],
    ) -> Dict[str, str]:
        import openai

        kwargs: Dict[str, Any] = {}
        if max_tokens:
            kwargs["max_tokens"] = max_tokens
        if timeout:
            kwargs["timeout"] = timeout

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                **kwargs
            )
        except openai.APITimeoutError:
            raise UpstreamError(_timeout_message(timeout))
        except openai.APIStatusError as e:
            raise UpstreamError(_status_error_message(e), status_code=e.status_code)
        except openai.APIConnectionError as e:
            raise UpstreamError(str(e) or "Connection error")
        except openai.APIError as e:
            raise UpstreamError(str(e) or "Malformed completion response")

        choices = getattr(response, "choices", None)
        if not choices or choices[0].message is None:
            raise UpstreamError("Malformed completion response: no reply message")

        message = choices[0].message
        if message.content is None:
            raise UpstreamError("Malformed completion response: empty reply content")

        return {"role": message.role or "assistant", "content": message.content}

    async def _complete_anthropic(
        self,
        messages: List[Dict[str, Any]],
        max_tokens: Optional[int],
        timeout: Optional[float],
    ) -> Dict[str, str]:
        import anthropic

        # Anthropic takes the system prompt as a separate argument
        system = "\n\n".join(m["content"] for m in messages if m.get("role") == "system")
        turns = [m for m in messages if m.get("role") != "system"]

        kwargs: Dict[str, Any] = {}
        if system:
            kwargs["system"] = system
        if timeout:
            kwargs["timeout"] = timeout

        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens or 1024,
                messages=turns,
                **kwargs
            )
        except anthropic.APITimeoutError:
            raise UpstreamError(_timeout_message(timeout))
        except anthropic.APIStatusError as e:
            raise UpstreamError(_status_error_message(e), status_code=e.status_code)
        except anthropic.APIConnectionError as e:
            raise UpstreamError(str(e) or "Connection error")
        except anthropic.APIError as e:
            raise UpstreamError(str(e) or "Malformed completion response")

        blocks = getattr(response, "content", None) or []
        text = "".join(getattr(block, "text", "") for block in blocks)
        if not blocks:
            raise UpstreamError("Malformed completion response: no content blocks")

        return {"role": "assistant", "content": text}


def _timeout_message(timeout: Optional[float]) -> str:
    if timeout:
        return f"Request timed out after {timeout:g}s"
    return "Request timed out"


def _status_error_message(error: Any) -> str:
    """Prefer the provider's own error message from the response body."""
    body = getattr(error, "body", None)
    if isinstance(body, dict):
        nested = body.get("error", body)
        if isinstance(nested, dict) and nested.get("message"):
            return str(nested["message"])
    return getattr(error, "message", None) or str(error)


def create_llm_client(settings: Optional[Settings] = None) -> LLMClient:
    """
    Factory function to create LLM client from settings.

    Args:
        settings: Application settings (defaults to environment)

    Returns:
        Configured LLMClient instance

    Raises:
        ConfigurationError: If the credential is missing or provider unknown
    """
    settings = settings or get_settings()
    api_key = settings.require_api_key()
    return LLMClient(
        provider=settings.llm_provider,
        model=settings.llm_model,
        api_key=api_key,
        base_url=settings.llm_base_url,
        app_url=settings.app_url,
        app_title=settings.app_title,
    )

"""
Error types raised by the memory core and translated by the API layer.
"""
from typing import Optional


class ChatMemoryError(Exception):
    """Base class for errors surfaced to the caller."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ChatMemoryError):
    """Missing or malformed caller input. Raised before any LLM call."""

    status_code = 400


class ConfigurationError(ChatMemoryError):
    """Server is missing required configuration (e.g. the API credential)."""

    status_code = 500


class UpstreamError(ChatMemoryError):
    """
    LLM Completion Service failure: timeout, connection error,
    non-success status or a response without a reply message.

    status_code mirrors the upstream HTTP status when one was received.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, status_code)
        self.upstream_status = status_code

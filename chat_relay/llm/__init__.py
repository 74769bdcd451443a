"""
Client for the upstream chat-completion API.

The relay sends exactly two messages (system prompt, then the user's
message) and only reads back the first choice's content.
"""
from .client import (
    NO_RESPONSE,
    CompletionClient,
    CompletionResponse,
    LLMMessage,
    extract_reply,
)

__all__ = [
    "NO_RESPONSE",
    "CompletionClient",
    "CompletionResponse",
    "LLMMessage",
    "extract_reply",
]

"""
Completion Client - HTTP client for an OpenAI-compatible chat-completion API.

Talks to POST <upstream>/v1/chat/completions with a bearer token. The request
and response field names follow the OpenAI/OpenRouter contract exactly.
"""
import time
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from ..stats import UpstreamStats

logger = logging.getLogger(__name__)

# Reply used when the upstream body has no choices[0].message.content
NO_RESPONSE = "No response"


@dataclass
class LLMMessage:
    """A message in a conversation with the LLM."""
    role: str  # "system", "user", or "assistant"
    content: str


@dataclass
class CompletionResponse:
    """Parsed response from the completion API."""
    content: Optional[str]
    model: str
    tokens_used: Optional[int] = None
    latency_ms: Optional[int] = None
    
    @property
    def reply(self) -> str:
        return self.content or NO_RESPONSE


def extract_reply(data: Any) -> Optional[str]:
    """
    Pull choices[0].message.content out of a completion body.
    
    Returns None when any step of the path is missing or the content is
    not a string.
    """
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    return content if isinstance(content, str) else None


class CompletionClient:
    """HTTP client for the upstream completion API."""
    
    def __init__(
        self,
        url: str,
        api_key: str,
        model: str,
        max_tokens: int,
        timeout: float = 120.0,
        stats: Optional[UpstreamStats] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._url = url
        self._api_key = api_key
        self.model_name = model
        self.max_tokens = max_tokens
        self.stats = stats or UpstreamStats()
        self._client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )
        
        logger.info("Completion client initialized: %s (model=%s)", self._url, model)
    
    def build_payload(self, messages: list[LLMMessage]) -> dict:
        """Build the JSON body sent upstream."""
        return {
            "model": self.model_name,
            "max_tokens": self.max_tokens,
            "messages": [
                {"role": msg.role, "content": msg.content}
                for msg in messages
            ],
        }
    
    async def chat(self, messages: list[LLMMessage]) -> CompletionResponse:
        """
        Send a chat completion request.
        
        Args:
            messages: Conversation to send, system prompt first
            
        Returns:
            CompletionResponse; content is None if the body had none
            
        Raises:
            httpx.HTTPStatusError: upstream answered with a non-2xx status
            Exception: network failure, timeout or undecodable body
        """
        start_time = time.time()
        
        logger.debug("Upstream request: messages=%d", len(messages))
        
        try:
            response = await self._client.post(
                self._url,
                json=self.build_payload(messages),
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
            )
            response.raise_for_status()
            data = response.json()
            
        except httpx.HTTPStatusError as e:
            latency_ms = int((time.time() - start_time) * 1000)
            error_msg = f"HTTP {e.response.status_code}: {e.response.text[:200]}"
            self.stats.record_failure(latency_ms, error_msg, e.response.status_code)
            logger.error("Upstream API error after %dms: %s", latency_ms, error_msg)
            raise
            
        except Exception as e:
            latency_ms = int((time.time() - start_time) * 1000)
            error_msg = str(e) or type(e).__name__
            self.stats.record_failure(latency_ms, error_msg)
            logger.error("Upstream call failed after %dms: %s", latency_ms, error_msg)
            raise
        
        latency_ms = int((time.time() - start_time) * 1000)
        
        tokens_used = None
        usage = data.get("usage") if isinstance(data, dict) else None
        if isinstance(usage, dict) and isinstance(usage.get("total_tokens"), int):
            tokens_used = usage["total_tokens"]
        model = data.get("model", self.model_name) if isinstance(data, dict) else self.model_name
        content = extract_reply(data)
        
        self.stats.record_success(latency_ms, tokens_used)
        
        if content is None:
            logger.warning("Upstream response had no choices[0].message.content")
        
        logger.debug(
            "Upstream response: latency=%dms, model=%s, tokens=%s",
            latency_ms, model, tokens_used
        )
        
        return CompletionResponse(
            content=content,
            model=model,
            tokens_used=tokens_used,
            latency_ms=latency_ms,
        )
    
    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()

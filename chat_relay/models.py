"""
Pydantic models for the chat relay API.
"""
from typing import Optional
from pydantic import BaseModel


class ChatRequest(BaseModel):
    """Request body for POST /chat."""
    # None is answered with 400 by the handler
    message: Optional[str] = None


class ChatResponse(BaseModel):
    """Response body for POST /chat."""
    reply: str


class ErrorResponse(BaseModel):
    """Body of every error response."""
    error: str


class HealthResponse(BaseModel):
    """Response body for GET /health."""
    status: str  # "ok" or "degraded"
    model: str
    api_key_configured: bool
    version: str

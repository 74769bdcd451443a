"""
Chat Relay Service - FastAPI application.

Accepts a chat message, sends it with the system prompt to the upstream
completion API and returns the model's reply. CORS origin and static
frontend serving are configuration, so one app covers every deployment.
"""
import logging
import sys
from pathlib import Path
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, get_settings
from .llm import CompletionClient, LLMMessage
from .middleware import RateLimitMiddleware, SecurityHeadersMiddleware
from .models import ChatRequest, ChatResponse, ErrorResponse, HealthResponse
from .prompt import PromptLoader
from .stats import UpstreamStats


STATUS_TEXT = "✅ Server running!"
MESSAGE_REQUIRED = "Message is required"
UPSTREAM_FAILED = "Failed to get response from AI"
INTERNAL_ERROR = "Internal Server Error"

logger = logging.getLogger(__name__)


def setup_logging(settings: Settings) -> logging.Logger:
    """Configure logging with file and console handlers."""
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    
    # Console handler (always)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)
    
    # File handler (if configured)
    if settings.log_path:
        try:
            log_path = Path(settings.log_path)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path)
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
            root_logger.info("Logging to file: %s", log_path)
        except OSError as e:
            root_logger.error("Failed to set up file logging: %s", e)
    
    return logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Create the relay application.
    
    Args:
        settings: Service settings; read from the environment if omitted
        transport: httpx transport for upstream calls (tests pass a
                   MockTransport here)
    
    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    
    # Survives restarts; the HTTP client does not
    stats = UpstreamStats()
    prompt_loader = PromptLoader(
        path=settings.prompt_path,
        fallback=settings.fallback_prompt,
        cache=settings.cache_prompt,
    )

    # Client instance, set during startup
    llm: CompletionClient | None = None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        nonlocal llm

        logger.info("Chat relay starting up")
        logger.info("Upstream: %s (model=%s)", settings.upstream_url, settings.upstream_model)
        logger.info("Allowed origins: %s", settings.allowed_origins)

        if not settings.is_api_key_configured:
            logger.error("Upstream API key not set! Set GENERAL_MODEL or UPSTREAM_API_KEY")
        if not Path(settings.prompt_path).is_file():
            logger.warning("Prompt file %s not found, fallback prompt will be used", settings.prompt_path)

        llm = CompletionClient(
            url=settings.upstream_url,
            api_key=settings.upstream_api_key,
            model=settings.upstream_model,
            max_tokens=settings.upstream_max_tokens,
            timeout=settings.upstream_timeout,
            stats=stats,
            transport=transport,
        )
        app.state.llm = llm

        yield

        logger.info("Chat relay shutting down")
        app.state.llm = None
        client, llm = llm, None
        await client.aclose()

    app = FastAPI(
        title="Chat Relay",
        description="Relays chat messages to an LLM completion API",
        version=settings.version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.llm = None
    app.state.stats = stats
    app.state.prompt_loader = prompt_loader
    
    # Added innermost first: rate limit, then CORS, then security headers
    if settings.rate_limit_max > 0:
        app.add_middleware(
            RateLimitMiddleware,
            max_requests=settings.rate_limit_max,
            window_seconds=settings.rate_limit_window_seconds,
        )
    
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
    
    if settings.security_headers:
        app.add_middleware(SecurityHeadersMiddleware)
    
    # =========================================================================
    # Error bodies are always {"error": ...}
    # =========================================================================
    
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )
    
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request, exc: RequestValidationError):
        logger.debug("Invalid request body: %s", exc.errors())
        return JSONResponse(status_code=400, content={"error": MESSAGE_REQUIRED})
    
    # =========================================================================
    # Status Endpoints
    # =========================================================================
    
    @app.get("/", response_class=PlainTextResponse)
    async def root():
        return STATUS_TEXT
    
    @app.get("/health", response_model=HealthResponse)
    async def health():
        """Configuration health. Does not call the upstream API."""
        configured = settings.is_api_key_configured
        return HealthResponse(
            status="ok" if configured else "degraded",
            model=settings.upstream_model,
            api_key_configured=configured,
            version=settings.version,
        )
    
    @app.get("/stats")
    async def upstream_stats():
        """Return upstream call statistics."""
        return stats.get_summary()
    
    # =========================================================================
    # Chat Endpoint
    # =========================================================================
    
    @app.post(
        "/chat",
        response_model=ChatResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    async def chat(request: ChatRequest):
        """Relay a message to the completion API and return its reply."""
        if not request.message:
            raise HTTPException(status_code=400, detail=MESSAGE_REQUIRED)
        if llm is None:
            raise HTTPException(status_code=503, detail="Upstream client not initialized")
        
        logger.debug("Chat request: message_len=%d", len(request.message))
        
        try:
            system_prompt = await prompt_loader.load()
            response = await llm.chat([
                LLMMessage(role="system", content=system_prompt),
                LLMMessage(role="user", content=request.message),
            ])
        except httpx.HTTPStatusError:
            # Upstream body already logged by the client
            raise HTTPException(status_code=500, detail=UPSTREAM_FAILED)
        except Exception as e:
            logger.error("Chat error: %s", e, exc_info=True)
            raise HTTPException(status_code=500, detail=INTERNAL_ERROR)
        
        return ChatResponse(reply=response.reply)
    
    # =========================================================================
    # Static Frontend
    # =========================================================================
    
    if settings.serve_static_frontend:
        static_dir = Path(settings.static_dir)
        if static_dir.is_dir():
            app.mount(
                settings.static_mount_path,
                StaticFiles(directory=static_dir, html=True),
                name="frontend",
            )
            logger.info("Serving frontend from %s at %s", static_dir, settings.static_mount_path)
        else:
            logger.warning("Static frontend enabled but %s is not a directory", static_dir)
    
    return app


settings = get_settings()
setup_logging(settings)
app = create_app(settings)


def run():
    """Run the relay with uvicorn."""
    import uvicorn
    
    uvicorn.run(
        "chat_relay.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()

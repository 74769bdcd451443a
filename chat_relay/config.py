"""
Chat relay configuration.
"""
from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


DEFAULT_FALLBACK_PROMPT = "You are a helpful AI assistant."


class Settings(BaseSettings):
    """Service settings from environment variables."""
    
    # Server
    host: str = "0.0.0.0"
    port: int = 5000
    
    # Upstream completion API (OpenRouter by default)
    upstream_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("upstream_api_key", "general_model"),
    )
    upstream_url: str = "https://openrouter.ai/api/v1/chat/completions"
    upstream_model: str = "openai/gpt-4o"
    upstream_max_tokens: int = 500
    upstream_timeout: float = 120.0  # completions can be slow
    
    # System prompt
    prompt_path: str = "prompt.txt"
    fallback_prompt: str = DEFAULT_FALLBACK_PROMPT
    cache_prompt: bool = False
    
    # CORS - FRONTEND_URL wins over CORS_ORIGIN when set
    cors_origin: str = "https://vinayak2024.netlify.app"
    frontend_url: str = ""
    
    # Static frontend
    serve_static_frontend: bool = False
    static_dir: str = "public"
    static_mount_path: str = "/static"
    
    # Rate limiting (0 disables)
    rate_limit_max: int = 50
    rate_limit_window_seconds: int = 60
    
    security_headers: bool = True
    
    # Logging
    log_level: str = "info"
    log_path: str = ""  # e.g. /app/logs/chat-relay.log
    
    # Version
    version: str = "1.0.0"
    
    class Config:
        env_prefix = ""
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"
    
    @property
    def allowed_origins(self) -> list[str]:
        """Origins allowed by CORS, from FRONTEND_URL or CORS_ORIGIN."""
        raw = self.frontend_url or self.cors_origin
        return [origin.strip() for origin in raw.split(",") if origin.strip()]
    
    @property
    def is_api_key_configured(self) -> bool:
        return bool(self.upstream_api_key)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

from chat_relay.config import DEFAULT_FALLBACK_PROMPT, Settings


def test_defaults(monkeypatch) -> None:
    for name in ("GENERAL_MODEL", "UPSTREAM_API_KEY", "PORT", "CORS_ORIGIN", "FRONTEND_URL"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.port == 5000
    assert settings.upstream_url == "https://openrouter.ai/api/v1/chat/completions"
    assert settings.upstream_model == "openai/gpt-4o"
    assert settings.upstream_max_tokens == 500
    assert settings.prompt_path == "prompt.txt"
    assert settings.fallback_prompt == DEFAULT_FALLBACK_PROMPT
    assert settings.rate_limit_max == 50
    assert settings.rate_limit_window_seconds == 60
    assert settings.allowed_origins == ["https://vinayak2024.netlify.app"]
    assert not settings.is_api_key_configured


def test_api_key_from_general_model_env(monkeypatch) -> None:
    monkeypatch.delenv("UPSTREAM_API_KEY", raising=False)
    monkeypatch.setenv("GENERAL_MODEL", "sk-or-from-env")

    settings = Settings(_env_file=None)

    assert settings.upstream_api_key == "sk-or-from-env"
    assert settings.is_api_key_configured


def test_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("CORS_ORIGIN", "https://a.example, https://b.example")
    monkeypatch.setenv("SERVE_STATIC_FRONTEND", "true")
    monkeypatch.delenv("FRONTEND_URL", raising=False)

    settings = Settings(_env_file=None)

    assert settings.port == 8080
    assert settings.serve_static_frontend is True
    assert settings.allowed_origins == ["https://a.example", "https://b.example"]


def test_frontend_url_wins(monkeypatch) -> None:
    monkeypatch.setenv("FRONTEND_URL", "http://localhost:3000")

    settings = Settings(_env_file=None, cors_origin="*")

    assert settings.allowed_origins == ["http://localhost:3000"]


def test_reads_dotenv_file(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("GENERAL_MODEL", raising=False)
    monkeypatch.delenv("UPSTREAM_API_KEY", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("GENERAL_MODEL=sk-or-dotenv\nUNRELATED=1\n", encoding="utf-8")

    settings = Settings(_env_file=str(env_file))

    assert settings.upstream_api_key == "sk-or-dotenv"

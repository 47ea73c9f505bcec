from __future__ import annotations

from pathlib import Path

from paper_assistant.config import load_config

REPO_CONFIG = Path(__file__).resolve().parents[1] / "config" / "paper_assistant.yaml"


def test_repo_config_defaults(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("JWT_SECRET_KEY", "from-env")

    config = load_config(str(REPO_CONFIG))

    assert config.search.max_results == 3
    assert config.search.category == "cs.*"
    assert config.search.fallback_chars == 200
    assert config.llm.model == "anthropic/claude-3-haiku"
    assert config.history.limit == 10
    assert config.auth.secret_key == "from-env"
    assert config.auth.access_token_expire_minutes is None
    assert config.database.url == "sqlite:///./paper_assistant.db"


def test_environment_overrides_yaml(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///./elsewhere.db")
    monkeypatch.setenv("LLM_MODEL", "openai/gpt-4o-mini")
    monkeypatch.setenv("API_PORT", "8080")
    monkeypatch.setenv("ACCESS_TOKEN_EXPIRE_MINUTES", "15")

    config = load_config(str(REPO_CONFIG))

    assert config.database.url == "sqlite:///./elsewhere.db"
    assert config.llm.model == "openai/gpt-4o-mini"
    assert config.api.port == 8080
    assert config.auth.access_token_expire_minutes == 15


def test_missing_config_file_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("JWT_SECRET_KEY", "from-env")

    config = load_config(str(tmp_path / "missing.yaml"))

    assert config.api.title == "Paper Assistant API"
    assert config.search.api_url == "http://export.arxiv.org/api/query"
    assert config.llm.base_url == "https://openrouter.ai/api/v1"


def test_secret_key_is_generated_and_persisted(tmp_path, monkeypatch):
    key_file = tmp_path / ".jwt_secret"
    monkeypatch.delenv("JWT_SECRET_KEY", raising=False)
    monkeypatch.setenv("JWT_SECRET_FILE", str(key_file))

    first = load_config(str(tmp_path / "missing.yaml")).auth.secret_key
    second = load_config(str(tmp_path / "missing.yaml")).auth.secret_key

    assert first
    assert first == second
    assert key_file.read_text().strip() == first

"""Configuration Management for the Paper Assistant API

Loads configuration from a YAML file and environment variables.
Environment variables (or a local .env file) override YAML settings.
"""

import os
import secrets
import logging
from pathlib import Path
from typing import List, Optional
from dataclasses import dataclass, field

import yaml
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful research assistant. Help users with research-related "
    "questions, paper analysis, and academic inquiries."
)
DEFAULT_SUMMARY_PROMPT = "Summarize this research paper abstract in 2-3 sentences: {abstract}"


class Settings(BaseSettings):
    """Environment-based settings (overrides config file)."""

    config_path: str = "./config/paper_assistant.yaml"

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 5000

    # Storage
    database_url: Optional[str] = None

    # Auth
    jwt_secret_key: Optional[str] = None
    jwt_secret_file: str = "./.jwt_secret"
    access_token_expire_minutes: Optional[int] = None

    # External services
    arxiv_api_url: Optional[str] = None
    llm_base_url: Optional[str] = None
    llm_model: Optional[str] = None

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@dataclass
class APIConfig:
    """API server configuration."""
    host: str = "0.0.0.0"
    port: int = 5000
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    cors_credentials: bool = False
    cors_methods: List[str] = field(default_factory=lambda: ["*"])
    cors_headers: List[str] = field(default_factory=lambda: ["Authorization", "Content-Type", "X-Request-Id"])
    title: str = "Paper Assistant API"
    description: str = "arXiv search with LLM summaries and a research chat assistant"
    version: str = "1.0.0"


@dataclass
class AuthConfig:
    """Bearer token and password hashing configuration."""
    secret_key: str = ""
    algorithm: str = "HS256"
    access_token_expire_minutes: Optional[int] = None  # None: tokens never expire
    bcrypt_rounds: int = 10


@dataclass
class DatabaseConfig:
    """Durable store configuration."""
    url: str = "sqlite:///./paper_assistant.db"
    echo: bool = False


@dataclass
class SearchConfig:
    """arXiv search configuration."""
    api_url: str = "http://export.arxiv.org/api/query"
    category: str = "cs.*"
    max_results: int = 3
    sort_by: str = "relevance"
    sort_order: str = "descending"
    fallback_chars: int = 200
    fallback_placeholder: str = "Summary unavailable"
    timeout_seconds: float = 30.0


@dataclass
class LLMConfig:
    """Chat-completion endpoint configuration."""
    base_url: str = "https://openrouter.ai/api/v1"
    model: str = "anthropic/claude-3-haiku"
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    summary_prompt: str = DEFAULT_SUMMARY_PROMPT
    timeout_seconds: float = 60.0


@dataclass
class HistoryConfig:
    """Query history configuration."""
    limit: int = 10


@dataclass
class LoggingConfig:
    level: str = "INFO"
    json_format: bool = False


@dataclass
class AppConfig:
    """Complete configuration for the Paper Assistant API."""
    api: APIConfig
    auth: AuthConfig
    database: DatabaseConfig
    search: SearchConfig
    llm: LLMConfig
    history: HistoryConfig
    logging: LoggingConfig


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load configuration from YAML file and environment variables.

    Environment variables override YAML settings.

    Args:
        config_path: Path to YAML config file (default: ./config/paper_assistant.yaml)

    Returns:
        AppConfig object with all settings
    """
    env_settings = Settings()

    if config_path is None:
        config_path = env_settings.config_path

    config_file = Path(config_path)

    if config_file.exists():
        logger.info(f"Loading configuration from {config_file}")
        with open(config_file, "r") as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        logger.warning(f"Config file not found: {config_file}. Using defaults.")
        yaml_config = {}

    config = AppConfig(
        api=_load_api_config(yaml_config.get("api", {}), env_settings),
        auth=_load_auth_config(yaml_config.get("auth", {}), env_settings),
        database=_load_database_config(yaml_config.get("database", {}), env_settings),
        search=_load_search_config(yaml_config.get("search", {}), env_settings),
        llm=_load_llm_config(yaml_config.get("llm", {}), env_settings),
        history=HistoryConfig(limit=yaml_config.get("history", {}).get("limit", 10)),
        logging=LoggingConfig(
            level=env_settings.log_level,
            json_format=env_settings.log_json or yaml_config.get("logging", {}).get("json_format", False),
        ),
    )

    logger.info("Configuration loaded successfully")
    return config


def _get_or_create_secret_key(env_settings: Settings) -> str:
    """Return a stable JWT secret key that persists across restarts.

    Priority: env var > file-based key > generate-and-save.
    """
    if env_settings.jwt_secret_key:
        return env_settings.jwt_secret_key

    key_file = os.path.abspath(env_settings.jwt_secret_file)

    if os.path.exists(key_file):
        with open(key_file, "r") as f:
            return f.read().strip()

    # First run - generate and persist
    new_key = secrets.token_urlsafe(32)
    try:
        with open(key_file, "w") as f:
            f.write(new_key)
        os.chmod(key_file, 0o600)  # Owner-only read/write
        logger.info("Generated and saved new JWT secret key")
    except OSError as e:
        logger.warning(f"Could not persist JWT secret key to file: {e}")
    return new_key


def _load_api_config(yaml_api: dict, env_settings: Settings) -> APIConfig:
    """Load API configuration with environment overrides."""
    defaults = APIConfig()
    return APIConfig(
        host=env_settings.api_host,  # Environment override
        port=env_settings.api_port,  # Environment override
        cors_origins=yaml_api.get("cors_origins", defaults.cors_origins),
        cors_credentials=yaml_api.get("cors_credentials", defaults.cors_credentials),
        cors_methods=yaml_api.get("cors_methods", defaults.cors_methods),
        cors_headers=yaml_api.get("cors_headers", defaults.cors_headers),
        title=yaml_api.get("title", defaults.title),
        description=yaml_api.get("description", defaults.description),
        version=yaml_api.get("version", defaults.version),
    )


def _load_auth_config(yaml_auth: dict, env_settings: Settings) -> AuthConfig:
    """Load auth configuration. The secret never comes from YAML."""
    expire = env_settings.access_token_expire_minutes
    if expire is None:
        expire = yaml_auth.get("access_token_expire_minutes")
    return AuthConfig(
        secret_key=_get_or_create_secret_key(env_settings),
        algorithm=yaml_auth.get("algorithm", "HS256"),
        access_token_expire_minutes=expire,
        bcrypt_rounds=yaml_auth.get("bcrypt_rounds", 10),
    )


def _load_database_config(yaml_database: dict, env_settings: Settings) -> DatabaseConfig:
    """Load database configuration. DATABASE_URL wins over YAML."""
    defaults = DatabaseConfig()
    return DatabaseConfig(
        url=env_settings.database_url or yaml_database.get("url", defaults.url),
        echo=yaml_database.get("echo", False),
    )


def _load_search_config(yaml_search: dict, env_settings: Settings) -> SearchConfig:
    """Load arXiv search configuration with environment overrides."""
    defaults = SearchConfig()
    return SearchConfig(
        api_url=env_settings.arxiv_api_url or yaml_search.get("api_url", defaults.api_url),
        category=yaml_search.get("category", defaults.category),
        max_results=yaml_search.get("max_results", defaults.max_results),
        sort_by=yaml_search.get("sort_by", defaults.sort_by),
        sort_order=yaml_search.get("sort_order", defaults.sort_order),
        fallback_chars=yaml_search.get("fallback_chars", defaults.fallback_chars),
        fallback_placeholder=yaml_search.get("fallback_placeholder", defaults.fallback_placeholder),
        timeout_seconds=yaml_search.get("timeout_seconds", defaults.timeout_seconds),
    )


def _load_llm_config(yaml_llm: dict, env_settings: Settings) -> LLMConfig:
    """Load LLM configuration with environment overrides."""
    defaults = LLMConfig()
    return LLMConfig(
        base_url=env_settings.llm_base_url or yaml_llm.get("base_url", defaults.base_url),
        model=env_settings.llm_model or yaml_llm.get("model", defaults.model),
        system_prompt=yaml_llm.get("system_prompt", defaults.system_prompt),
        summary_prompt=yaml_llm.get("summary_prompt", defaults.summary_prompt),
        timeout_seconds=yaml_llm.get("timeout_seconds", defaults.timeout_seconds),
    )

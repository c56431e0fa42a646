"""Configuration settings for ClauseSign."""

import logging

import structlog
from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # LLM API Keys
    anthropic_api_key: str = Field(default="", alias="ANTHROPIC_API_KEY")
    openai_api_key: str = Field(default="", alias="OPENAI_API_KEY")

    # LLM Provider Settings
    primary_llm_provider: str = Field(default="anthropic", alias="PRIMARY_LLM_PROVIDER")
    primary_llm_model: str = Field(default="claude-sonnet-4-20250514", alias="PRIMARY_LLM_MODEL")
    fallback_llm_provider: str = Field(default="openai", alias="FALLBACK_LLM_PROVIDER")
    fallback_llm_model: str = Field(default="gpt-4o", alias="FALLBACK_LLM_MODEL")
    llm_max_tokens: int = Field(default=8192, alias="LLM_MAX_TOKENS")
    llm_timeout: float = Field(default=120.0, alias="LLM_TIMEOUT")
    drafting_temperature: float = Field(default=0.2, alias="DRAFTING_TEMPERATURE")
    summary_temperature: float = Field(default=0.1, alias="SUMMARY_TEMPERATURE")
    target_block_count: int = Field(default=10, alias="TARGET_BLOCK_COUNT")

    # Storage
    storage_backend: str = Field(default="memory", alias="STORAGE_BACKEND")
    database_url: str = Field(default="sqlite:///clausesign.db", alias="DATABASE_URL")

    # Mail
    mail_enabled: bool = Field(default=False, alias="MAIL_ENABLED")
    smtp_host: str = Field(default="localhost", alias="SMTP_HOST")
    smtp_port: int = Field(default=587, alias="SMTP_PORT")
    smtp_user: str = Field(default="", alias="SMTP_USER")
    smtp_password: str = Field(default="", alias="SMTP_PASSWORD")
    smtp_use_tls: bool = Field(default=True, alias="SMTP_USE_TLS")
    smtp_timeout: float = Field(default=30.0, alias="SMTP_TIMEOUT")
    mail_from: str = Field(default="contracts@clausesign.local", alias="MAIL_FROM")

    # Application Settings
    public_base_url: str = Field(default="http://localhost:3000", alias="PUBLIC_BASE_URL")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"],
        alias="CORS_ORIGINS",
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    debug: bool = Field(default=False, alias="DEBUG")

    @property
    def signing_url_base(self) -> str:
        """Base URL counterparties open to sign a contract."""
        return f"{self.public_base_url.rstrip('/')}/contracts/sign"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "populate_by_name": True,
    }


settings = Settings()


def get_settings() -> Settings:
    """Get the module-level settings singleton."""
    return settings


def configure_logging(level: str | None = None) -> None:
    """Route structlog through a level filter taken from settings or ``level``."""
    value = getattr(logging, (level or settings.log_level).upper(), logging.INFO)
    if not isinstance(value, int):
        value = logging.INFO
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(value))

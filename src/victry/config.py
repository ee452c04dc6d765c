from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Victry"
    app_env: str = "development"
    app_host: str = "127.0.0.1"
    app_port: int = 8787
    log_level: str = "INFO"

    secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    session_cookie_name: str = "victry-session"

    database_url: str = "sqlite:///./data/victry.db"
    database_echo: bool = False
    data_dir: Path = Path("./data")

    llm_provider: str = "anthropic"

    anthropic_api_key: str = ""
    anthropic_base_url: str = ""
    anthropic_model: str = "claude-3-7-sonnet-20250219"
    anthropic_timeout_sec: int = 60

    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"
    openai_timeout_sec: int = 60

    tailoring_temperature: float = 0.2
    tailoring_max_tokens: int = 4096
    analysis_temperature: float = 0.3
    analysis_max_tokens: int = 2048

    cors_origins: str = "http://127.0.0.1:3000"

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @field_validator("llm_provider")
    @classmethod
    def validate_llm_provider(cls, value: str) -> str:
        allowed = {"anthropic", "openai"}
        if value not in allowed:
            raise ValueError(f"llm_provider must be one of {sorted(allowed)}")
        return value

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def llm_model(self) -> str:
        return self.anthropic_model if self.llm_provider == "anthropic" else self.openai_model


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()

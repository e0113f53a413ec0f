from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

MS_PER_DAY = 24 * 60 * 60 * 1000


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "CV Pilot"
    app_env: str = "development"
    app_host: str = "127.0.0.1"
    app_port: int = 8790
    log_level: str = "INFO"

    database_url: str = "sqlite:///./data/cvpilot.db"
    data_dir: Path = Path("./data")
    store_namespace: str = "default"

    default_profile_name: str = "Main Profile"
    trash_retention_days: int = 7
    default_language: str = "en"

    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model_generator: str = "gpt-5-mini"
    openai_timeout_sec: int = 120

    local_llm_enabled: bool = False
    local_llm_base_url: str = "http://localhost:11434/v1"
    local_llm_api_key: str = "local"
    local_llm_model: str = "qwen2.5:14b-instruct"
    local_llm_timeout_sec: int = 180

    cors_origins: str = "http://127.0.0.1:8790"

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @field_validator("default_language")
    @classmethod
    def validate_language(cls, value: str) -> str:
        allowed = {"fr", "en"}
        if value not in allowed:
            raise ValueError(f"default_language must be one of {sorted(allowed)}")
        return value

    @field_validator("trash_retention_days")
    @classmethod
    def validate_retention(cls, value: int) -> int:
        if value < 0:
            raise ValueError("trash_retention_days must not be negative")
        return value

    @property
    def trash_retention_ms(self) -> int:
        return self.trash_retention_days * MS_PER_DAY

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()

from __future__ import annotations

from typing import List, Any, Literal
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, AnyUrl, AliasChoices, field_validator


class Settings(BaseSettings):
    # .env is optional; unknown keys in it are rejected to catch typos
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="forbid",
    )

    # General
    APP_NAME: str = "Scenario Quiz Backend"
    API_V1_PREFIX: str = "/api/v1"
    APP_ENV: str = Field(
        "dev",
        validation_alias=AliasChoices("APP_ENV", "app_env"),
        description="Application environment: dev|staging|prod",
    )
    LOG_LEVEL: str = Field(
        "INFO",
        validation_alias=AliasChoices("LOG_LEVEL", "log_level"),
    )

    BACKEND_PORT: int = Field(
        8000,
        validation_alias=AliasChoices("BACKEND_PORT", "app_port"),
        description="Backend port to bind",
    )

    # Session storage
    SESSION_BACKEND: Literal["memory", "redis"] = Field(
        "memory",
        validation_alias=AliasChoices("SESSION_BACKEND", "session_backend"),
        description="Where quiz sessions live: memory|redis",
    )
    REDIS_URL: str = Field(
        "redis://localhost:6379/0",
        validation_alias=AliasChoices("REDIS_URL", "redis_url"),
        description="redis:// or rediss:// connection URL",
    )
    REDIS_KEY_PREFIX: str = "quiz:"
    REDIS_CAS_RETRIES: int = Field(5, ge=1)
    SESSION_TTL_SECONDS: int | None = Field(
        None,
        description="Retention for session records in Redis; None keeps them",
    )

    # Supabase (analytics sink)
    SUPABASE_URL: AnyUrl | None = Field(
        None,
        validation_alias=AliasChoices("SUPABASE_URL", "supabase_url"),
        description="Your Supabase project URL",
    )
    SUPABASE_SERVICE_ROLE_KEY: str | None = Field(
        None,
        validation_alias=AliasChoices("SUPABASE_SERVICE_ROLE_KEY", "supabase_service_role_key"),
        description="Service role key (server-side)",
    )
    SUPABASE_SCHEMA: str = Field(
        "public",
        validation_alias=AliasChoices("SUPABASE_SCHEMA", "supabase_schema"),
        description="Supabase schema name",
    )
    ANALYTICS_TABLE: str = "analytics"

    # Quiz
    QUESTION_BANK_PATH: str | None = Field(
        None,
        validation_alias=AliasChoices("QUESTION_BANK_PATH", "question_bank_path"),
        description="JSON question bank; the bundled scenarios are used when unset",
    )
    CERTIFICATE_THRESHOLD: int = Field(70, ge=0, le=100)

    # CORS origins
    FRONTEND_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]

    @property
    def supabase_enabled(self) -> bool:
        return self.SUPABASE_URL is not None and bool(self.SUPABASE_SERVICE_ROLE_KEY)

    @field_validator("FRONTEND_ORIGINS", mode="before")
    @classmethod
    def _parse_origins(cls, v: Any) -> Any:
        """
        Accepts FRONTEND_ORIGINS as:
        - a JSON array: ["http://localhost:5173","http://localhost:3000"]
        - a comma separated string: http://localhost:5173,http://localhost:3000
        - or with ; as the separator
        """
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("[") and s.endswith("]"):
                import json
                try:
                    return json.loads(s)
                except ValueError:
                    # malformed JSON falls through to the split below
                    pass
            return [item.strip() for item in s.replace(";", ",").split(",") if item.strip()]
        return v


settings = Settings()

"""
Configuration management for the edu-people directory.

This module centralizes environment-driven configuration using Pydantic's
`BaseSettings`. The API, the CLI and the directory store all consume the
shared `settings` instance so the table name, region and email domain stay
consistent across entry points.
"""

from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic import AnyUrl, Field, PositiveInt, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration sourced from environment variables."""

    # General application settings
    API_TITLE: str = "edu-people API"
    API_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = Field("development", pattern=r"^(development|staging|production)$")
    ALLOWED_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    LOG_LEVEL: str = "INFO"

    # DynamoDB
    AWS_REGION: str = "us-west-2"
    DYNAMODB_ENDPOINT_URL: Optional[AnyUrl] = None
    PEOPLE_TABLE: str = "edu-people"
    SCAN_PAGE_SIZE: Optional[PositiveInt] = None
    # Guard creates with attribute_not_exists instead of relying on the upsert lookup.
    STRICT_CREATE: bool = False

    # Read projections
    EMAIL_DOMAIN: str = "uci.edu"

    # Monitoring / tracing
    OTEL_EXPORTER_OTLP_ENDPOINT: Optional[AnyUrl] = None
    OTEL_EXPORTER_OTLP_HEADERS: Optional[str] = None
    ENABLE_TRACING: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @field_validator("ALLOWED_ORIGINS", mode="before")
    def _split_origins(cls, value: str | List[str]) -> List[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("EMAIL_DOMAIN", mode="before")
    def _strip_domain(cls, value: str) -> str:
        return value.strip().lstrip("@") if isinstance(value, str) else value


@lru_cache()
def get_settings() -> Settings:
    """Return a cached `Settings` instance."""

    return Settings()


# Singleton-style settings instance for modules that prefer direct access.
settings = get_settings()

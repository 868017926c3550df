"""
Centralized configuration management with validation.

All environment variables are loaded and validated here.
Plan business rules (thresholds, ceilings, cadences) live in YAML and are
read through services.plan_framework.config.ConfigService instead.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    """Application settings with validation."""

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    # API
    API_TITLE: str = Field(default="runplan")
    API_VERSION: str = Field(default="0.1.0")

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="text")  # "json" or "text"
    PLAN_LOG_LEVEL: Optional[str] = Field(default=None)  # plan engine loggers only

    # Plan rules directory (plan_rules.yaml). None = packaged defaults.
    PLAN_RULES_DIR: Optional[str] = Field(default=None)

    # Guardrail pass: how many times the ordered checks may repeat
    # before the result is returned as-is.
    GUARDRAIL_MAX_SWEEPS: int = Field(default=4, ge=1, le=20)

    # Environment
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)


# Global settings instance
settings = Settings()

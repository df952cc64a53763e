"""
Configuration management for PickLLM.

Supports environment variables, .env files, and YAML configuration.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pickllm.core.models import DEFAULT_TARGETS
from pickllm.providers.pricing import LITELLM_PRICES_URL


class ForwardingSettings(BaseSettings):
    """Settings for the forwarding endpoint."""

    model_config = SettingsConfigDict(
        env_prefix="PICKLLM_FORWARDING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    endpoint_url: str = "http://localhost:3000/api/openai"
    timeout_seconds: float = Field(default=120.0, gt=0)


class PricingSettings(BaseSettings):
    """Settings for the pricing table fetch."""

    model_config = SettingsConfigDict(
        env_prefix="PICKLLM_PRICING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: str = LITELLM_PRICES_URL
    refresh_interval_seconds: float = Field(default=86400.0, gt=0)
    timeout_seconds: float = Field(default=30.0, gt=0)


class ComparisonSettings(BaseSettings):
    """Core comparison settings."""

    model_config = SettingsConfigDict(
        env_prefix="PICKLLM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_targets: list[str] = Field(default_factory=lambda: list(DEFAULT_TARGETS))
    preferences_path: Path = Path.home() / ".config" / "pickllm" / "preferences.yaml"

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in {"json", "console"}:
            raise ValueError(f"Invalid log format: {v}. Must be 'json' or 'console'")
        return v


class Settings(BaseSettings):
    """Combined application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    forwarding: ForwardingSettings = Field(default_factory=ForwardingSettings)
    pricing: PricingSettings = Field(default_factory=PricingSettings)
    comparison: ComparisonSettings = Field(default_factory=ComparisonSettings)

    # Seeds the credential when no preference has been saved
    openai_api_key: SecretStr | None = Field(default=None, alias="OPENAI_API_KEY")

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        import yaml

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()


def reload_settings() -> Settings:
    """Reload settings (clears cache)."""
    get_settings.cache_clear()
    return get_settings()

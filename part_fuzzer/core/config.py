"""
Configuration management for Part Fuzzer using Pydantic settings.
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FuzzingConfig(BaseModel):
    """Request generation settings."""

    default_part: str = Field(default="query", description="Part fuzzed when a rule omits it")
    default_mode: str = Field(default="single", description="Mode used when a rule omits it")
    max_requests: int = Field(default=0, description="Stop after this many requests, 0 for no limit")
    variables: Dict[str, str] = Field(default_factory=dict, description="Global template variables")

    @field_validator("default_mode")
    @classmethod
    def validate_mode(cls, v):
        """Validate mode."""
        valid_modes = ["single", "multiple"]
        if v.lower() not in valid_modes:
            raise ValueError(f"Mode must be one of: {valid_modes}")
        return v.lower()

    @field_validator("max_requests")
    @classmethod
    def validate_max_requests(cls, v):
        """Validate request limit."""
        if v < 0:
            raise ValueError("max_requests cannot be negative")
        return v


class InteractshConfig(BaseModel):
    """Out-of-band interaction settings."""

    enabled: bool = Field(default=True)
    server: str = Field(default="oast.fun")
    correlation_id: Optional[str] = Field(default=None)


class Config(BaseSettings):
    """Main configuration class for Part Fuzzer."""

    # Application settings
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Component configurations
    fuzzing: FuzzingConfig = Field(default_factory=FuzzingConfig)
    interactsh: InteractshConfig = Field(default_factory=InteractshConfig)

    model_config = SettingsConfigDict(
        env_prefix="PART_FUZZER_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()


# Global configuration instance
config = Config()


def get_config() -> Config:
    """Get the global configuration instance."""
    return config


def reload_config() -> Config:
    """Reload the configuration from environment variables."""
    global config
    config = Config()
    return config

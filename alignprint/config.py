"""Configuration management using Pydantic and YAML."""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

from .profiles import profile_names


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    file: str | None = None

    @field_validator("level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return value


class GeneratorConfig(BaseModel):
    """Fingerprint generator configuration."""

    profile: str = "default"
    profile_file: Path | None = None  # Custom YAML profile, overrides `profile`

    @field_validator("profile")
    @classmethod
    def _check_profile(cls, value: str) -> str:
        if value not in profile_names():
            raise ValueError(f"Unknown profile '{value}' (available: {', '.join(profile_names())})")
        return value


class AlignprintConfig(BaseModel):
    """Main application configuration."""

    generator: GeneratorConfig = Field(default_factory=GeneratorConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: Path | None = None) -> AlignprintConfig:
    """Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, searches the default
            locations and falls back to built-in defaults.

    Returns:
        AlignprintConfig instance

    Raises:
        FileNotFoundError: If an explicit config file doesn't exist
        ValueError: If config file is invalid
    """
    if config_path is None:
        possible_paths = [
            Path(__file__).parent.parent / "config" / "config.yaml",
            Path.home() / ".config" / "alignprint" / "config.yaml",
            Path.home() / ".alignprint" / "config.yaml",
        ]

        for path in possible_paths:
            if path.exists():
                config_path = path
                break
        else:
            return AlignprintConfig()

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    return AlignprintConfig(**data)

"""
Configuration management for Feed Archive.

Uses Pydantic for validation and pydantic-settings for environment variable support.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FetcherConfig(BaseSettings):
    """HTTP feed fetcher configuration."""

    model_config = SettingsConfigDict(env_prefix="FETCHER_")

    # HTTP settings
    timeout_seconds: float = Field(default=10.0, gt=0, le=300, description="Per-attempt timeout")
    user_agent: str = Field(
        default="Feed-Archive/0.1.0 (+https://github.com/feed-archive)",
        description="User-Agent header"
    )

    # Redirects are always followed, up to this many hops
    max_redirects: int = Field(default=10, ge=0, le=50, description="Maximum redirect hops")


class ParserConfig(BaseSettings):
    """Feed parser configuration."""

    model_config = SettingsConfigDict(env_prefix="PARSER_")

    max_description_length: int = Field(
        default=500,
        ge=1,
        le=100_000,
        description="Maximum description length in characters"
    )
    default_title: str = Field(default="Untitled", description="Title used when an entry has none")


class PipelineConfig(BaseSettings):
    """Ingestion run configuration."""

    model_config = SettingsConfigDict(env_prefix="PIPELINE_")

    max_workers: int = Field(
        default=1,
        ge=1,
        le=32,
        description="Concurrent fetch+parse workers (1 = sequential)"
    )

    # Retry settings (applied per feed by the orchestrator)
    max_retries: int = Field(default=0, ge=0, le=10, description="Retries for a failed fetch")
    retry_delay_seconds: float = Field(default=1.0, ge=0, description="Delay between retries")


class ArchiveConfig(BaseSettings):
    """Persisted state layout."""

    model_config = SettingsConfigDict(env_prefix="ARCHIVE_")

    feeds_file: str = Field(default="feeds.json", description="Feed source list file")
    data_dir: str = Field(default="data", description="Directory for the snapshot files")
    items_file: str = Field(default="items.json", description="Item archive file name")
    metadata_file: str = Field(default="metadata.json", description="Run metadata file name")
    indent: int = Field(default=2, ge=0, le=8, description="JSON indentation")

    @field_validator("items_file", "metadata_file")
    @classmethod
    def validate_file_name(cls, v: str) -> str:
        """Snapshot files live directly inside data_dir."""
        if not v or Path(v).name != v:
            raise ValueError(f"Expected a bare file name, got {v!r}")
        return v


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        description="Log format"
    )

    # File logging
    file_enabled: bool = Field(default=False, description="Enable file logging")
    file_path: str = Field(default="logs/feed_archive.log", description="Log file path")
    rotation: str = Field(default="10 MB", description="Log rotation size")
    retention: str = Field(default="30 days", description="Log retention period")

    # Console logging
    console_enabled: bool = Field(default=True, description="Enable console logging")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v


class Config(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FEED_ARCHIVE_",
        case_sensitive=False,
    )

    # Sub-configurations
    fetcher: FetcherConfig = Field(default_factory=FetcherConfig)
    parser: ParserConfig = Field(default_factory=ParserConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    archive: ArchiveConfig = Field(default_factory=ArchiveConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


_SECTIONS = {
    "fetcher": FetcherConfig,
    "parser": ParserConfig,
    "pipeline": PipelineConfig,
    "archive": ArchiveConfig,
    "logging": LoggingConfig,
}

# Global configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def set_config(config: Optional[Config]) -> None:
    """Replace the global configuration instance (None resets it)."""
    global _config
    _config = config


def load_config_from_yaml(yaml_path: str) -> Config:
    """Load configuration from a YAML file.

    Note: Values loaded from YAML take precedence over environment variables.
    Sections missing from the file are still read from the environment.

    Args:
        yaml_path: Path to the YAML configuration file.

    Returns:
        Config instance loaded from the file.
    """
    import yaml

    yaml_file = Path(yaml_path)
    if not yaml_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

    with yaml_file.open("r", encoding="utf-8") as f:
        config_dict = yaml.safe_load(f) or {}

    main_config = {}
    for key, value in config_dict.items():
        if key in _SECTIONS:
            # Create from dict, env vars can still fill unspecified fields
            main_config[key] = _SECTIONS[key](**(value or {}))
        else:
            main_config[key] = value

    return Config(**main_config)


def reload_config() -> Config:
    """Reload configuration from environment and YAML files."""
    global _config
    _config = None

    # Try to load from YAML if exists
    config_yaml = Path("config/config.yaml")
    if config_yaml.exists():
        _config = load_config_from_yaml(str(config_yaml))
    else:
        _config = Config()

    return _config

"""Configuration management for the blueprint editor and its host server."""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConnectionPolicy(str, Enum):
    """How add_connection treats self-loops and duplicate same-direction edges."""
    PERMISSIVE = "permissive"  # Accept both; candidate_targets still filters them
    STRICT = "strict"          # Reject both with ConnectionRejectedError


class Settings(BaseSettings):
    """Editor settings from environment."""

    model_config = SettingsConfigDict(
        env_prefix="BLUEPRINT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server
    host: str = Field(default="127.0.0.1", description="Host server bind address")
    port: int = Field(default=8766, gt=0, description="Host server port")
    blueprints_dir: Path = Field(
        default=Path("~/blueprints").expanduser(),
        description="Directory listed by the server for saved blueprints",
    )

    # Editor
    connection_policy: ConnectionPolicy = Field(
        default=ConnectionPolicy.PERMISSIVE, description="Self-loop/duplicate edge policy"
    )
    suggestion_limit: int = Field(default=6, gt=0, description="Max technology suggestions shown")
    canvas_technology_limit: int = Field(default=3, gt=0, description="Technologies shown on a canvas card")
    read_only: bool = Field(default=False, description="Start editors in read-only mode")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    json_logs: bool = Field(default=False, description="Use JSON log format")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

"""Lightweight configuration for the Redistricting service."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from redistricting.domain.enums import Faction


class Settings(BaseSettings):
    """Minimal application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    default_level_index: int = Field(
        default=0, ge=0, description="Level started when a client does not ask for one"
    )
    max_sessions: int = Field(
        default=256,
        gt=0,
        description="Live level sessions kept in memory; the oldest is dropped beyond this",
    )
    tie_winner: Faction = Field(
        default=Faction.BLUE, description="Faction awarded a district with an even cell split"
    )
    log_level: str = Field(default="INFO", description="Root logging level for the server")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"],
        description="Origins allowed to call the HTTP API",
    )


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()

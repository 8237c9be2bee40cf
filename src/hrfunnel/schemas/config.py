"""Pydantic configuration schema for CLI YAML input."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DatabaseConfig(BaseModel):
    path: str = "data/hrfunnel.db"

    model_config = ConfigDict(extra="forbid")


class StorageConfig(BaseModel):
    resume_dir: str = "data/resumes"

    model_config = ConfigDict(extra="forbid")


class LinksConfig(BaseModel):
    base_url: str = "http://localhost:8080"

    model_config = ConfigDict(extra="forbid")

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("base_url must not be empty")
        return v.strip().rstrip("/")


class AppConfig(BaseModel):
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    links: LinksConfig = Field(default_factory=LinksConfig)

    model_config = ConfigDict(extra="forbid")

    def to_settings(self) -> dict[str, Any]:
        return self.model_dump()


def load_config(raw: Any) -> AppConfig:
    """Validate a raw YAML mapping; an empty document yields the defaults.

    A section left empty (``database:`` with nothing under it) also takes the
    defaults.
    """
    if raw is None:
        raw = {}
    if isinstance(raw, dict):
        raw = {key: value for key, value in raw.items() if value is not None}
    return AppConfig.model_validate(raw)

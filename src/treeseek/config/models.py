"""Settings schema for treeseek."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator


class SearchSettings(BaseModel):
    workers: int = Field(default=10, ge=1, le=1024, description="Maximum concurrent walk tasks")
    return_early: bool = Field(default=False)
    suppress_errors: bool = Field(default=False)
    exclude: list[str] = Field(default_factory=list, description="gitwildmatch patterns to skip")

    @field_validator("exclude")
    @classmethod
    def drop_blank_patterns(cls, value: list[str]) -> list[str]:
        return [item.strip() for item in value if item.strip()]


class OutputSettings(BaseModel):
    log_results: bool = Field(default=False)
    log_file: str = Field(default="search_results.log")


class LoggingSettings(BaseModel):
    runtime_log_level: Literal["off", "error", "warning", "info", "debug"] = Field(default="warning")
    runtime_log_file: str | None = Field(default=None)


class AppSettings(BaseModel):
    schema_version: int = Field(default=1)
    search: SearchSettings = Field(default_factory=SearchSettings)
    output: OutputSettings = Field(default_factory=OutputSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

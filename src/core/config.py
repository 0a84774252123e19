"""Configuration models and YAML loader for the TalentFlow sync engine."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/talentflow.db"


class ChannelConfig(BaseModel):
    """Transport between the view and the store.

    When ``simulate`` is off every call goes straight through; when on,
    each call is delayed and mutating calls may fail at ``failure_rate``.
    """

    simulate: bool = True
    min_delay_s: float = Field(default=0.2, ge=0.0)
    max_delay_s: float = Field(default=1.2, ge=0.0)
    failure_rate: float = Field(default=0.08, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def delay_bounds_ordered(self) -> "ChannelConfig":
        if self.max_delay_s < self.min_delay_s:
            msg = "max_delay_s must be greater than or equal to min_delay_s"
            raise ValueError(msg)
        return self


class PaginationConfig(BaseModel):
    """Page sizes per collection and the scroll proximity that triggers load-more."""

    job_page_size: int = Field(default=10, ge=1)
    candidate_page_size: int = Field(default=50, ge=1)
    kanban_page_size: int = Field(default=100, ge=1)
    scroll_threshold_px: int = Field(default=100, ge=0)


class ViewportConfig(BaseModel):
    """Fixed-height virtualization window."""

    row_height: int = Field(default=80, ge=1)
    height: int = Field(default=600, ge=1)
    overscan: int = Field(default=10, ge=0)


class NoticeConfig(BaseModel):
    """User-visible error notices."""

    toast_ttl_s: float = Field(default=3.0, gt=0.0)


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    channel: ChannelConfig = Field(default_factory=ChannelConfig)
    pagination: PaginationConfig = Field(default_factory=PaginationConfig)
    viewport: ViewportConfig = Field(default_factory=ViewportConfig)
    notices: NoticeConfig = Field(default_factory=NoticeConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)

"""Configuration load/save for notion-repeater."""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from croniter import croniter
from pydantic import BaseModel, Field, field_validator

_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "config.json"

# Notion computes these property types itself and rejects them in pages.create
READ_ONLY_PROPERTY_TYPES = (
    "created_time",
    "created_by",
    "last_edited_time",
    "last_edited_by",
    "formula",
    "rollup",
    "unique_id",
    "button",
    "verification",
)


class ConfigError(RuntimeError):
    """Raised when required settings (token, database id) are missing."""


def config_path() -> Path:
    """Config file location: REPEATER_CONFIG env var, else config.json beside the code."""
    env = os.getenv("REPEATER_CONFIG")
    if env:
        return Path(env).expanduser().resolve()
    return _DEFAULT_CONFIG_PATH


class PropertyNames(BaseModel):
    """Names of the database properties the repeater reads and writes."""

    created_at: str = Field(default="Created At", description="created_time (or date) property anchoring the interval")
    created: str = Field(default="Created", description="Generic created marker, never copied to instances")
    do_date: str = Field(default="Do", description="Date property stamped with the instance's day")
    repeating: str = Field(default="Repeating", description="Checkbox set on every created instance")
    frequency: str = Field(default="Repeat Frequency", description="Select: Daily, Weekly or Monthly")
    repeat_every: str = Field(default="Repeat Every", description="Number: interval multiplier")
    weekly_days: str = Field(default="Repeat Days (Weekly)", description="Multi-select of weekday names")
    monthly_dates: str = Field(default="Repeat Dates (Monthly)", description="Multi-select of day-of-month numbers")
    repeat_template: str = Field(default="Is Repeat Template", description="Checkbox marking template pages")
    status: str = Field(default="Status", description="Status property, reset on instances")

    def template_only(self) -> tuple[str, ...]:
        """Properties that belong to the template and must not reach an instance."""
        return (self.created_at, self.created, self.repeat_template, self.status)


class AppConfig(BaseModel):
    """Persisted application configuration."""

    notion_token: str = Field(default="", description="Notion integration secret (env NOTION_KEY overrides)")
    notion_database_id: str = Field(default="", description="Database holding templates and instances (env NOTION_DATABASE_ID overrides)")
    notion_base_url: str = Field(default="https://api.notion.com/v1")
    notion_version: str = Field(default="2022-06-28", description="Notion-Version header")
    request_timeout: float = Field(default=30.0, gt=0)
    user_timezone: str = Field(default="America/New_York", description="IANA timezone whose calendar decides 'today'")
    sync_cron: str = Field(default="0 2 * * *", description="5-field cron (min hour day month weekday) in user_timezone")
    create_concurrency: int = Field(default=4, ge=1, le=32, description="Parallel page creations per cycle")
    web_ui_port: int = Field(default=8082, ge=1, le=65535)
    api_key: str = Field(default="", description="X-API-Key required by POST /api/sync; empty disables it")
    debug: bool = False
    properties: PropertyNames = Field(default_factory=PropertyNames)
    read_only_property_types: list[str] = Field(default_factory=lambda: list(READ_ONLY_PROPERTY_TYPES))

    @field_validator("user_timezone")
    @classmethod
    def _check_timezone(cls, v: str) -> str:
        name = (v or "").strip() or "UTC"
        try:
            ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {name}") from e
        return name

    @field_validator("sync_cron")
    @classmethod
    def _check_cron(cls, v: str) -> str:
        expr = (v or "").strip()
        if not croniter.is_valid(expr):
            raise ValueError(f"Invalid cron expression: {v!r}")
        return expr

    def require_store_settings(self) -> None:
        """Raise ConfigError unless both the token and the database id are set."""
        missing = [name for name in ("notion_token", "notion_database_id") if not getattr(self, name).strip()]
        if missing:
            raise ConfigError(f"Missing configuration: {', '.join(missing)}")

    def to_save_dict(self) -> dict[str, Any]:
        return self.model_dump()

    def to_public_dict(self) -> dict[str, Any]:
        """Config as a dict with secrets masked (for the web API and logs)."""
        d = self.model_dump()
        for key in ("notion_token", "api_key"):
            if d.get(key):
                d[key] = "****" + d[key][-4:] if len(d[key]) > 8 else "****"
        return d

    @staticmethod
    def _read_file() -> dict[str, Any]:
        path = config_path()
        if not path.exists():
            return {}
        text = path.read_text()
        return json.loads(text) if text.strip() else {}

    @classmethod
    def load_file(cls) -> "AppConfig":
        """Config as stored on disk, without env overrides. Use this as the base for save()."""
        return cls.model_validate(cls._read_file())

    @classmethod
    def load(cls) -> "AppConfig":
        """Effective config: the file plus NOTION_KEY / NOTION_DATABASE_ID env overrides. Never save() this."""
        raw = cls._read_file()
        token = os.getenv("NOTION_KEY")
        if token:
            raw["notion_token"] = token
        database_id = os.getenv("NOTION_DATABASE_ID")
        if database_id:
            raw["notion_database_id"] = database_id
        return cls.model_validate(raw)

    def save(self) -> None:
        config_path().write_text(json.dumps(self.to_save_dict(), indent=2))


def load() -> AppConfig:
    """Load config from disk. Convenience alias for AppConfig.load()."""
    return AppConfig.load()

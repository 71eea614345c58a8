from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .schemas import FilterState


class ApiConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    base_url: str = "http://127.0.0.1:8080"
    org_id: str = "demo-org"
    api_key_env: str = "ATSBOARD_API_KEY"
    timeout_seconds: float = Field(default=15.0, gt=0.0)

    @field_validator("base_url", "org_id", "api_key_env")
    @classmethod
    def validate_not_blank(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("api fields must not be empty")
        return normalized


class FilterDefaults(BaseModel):
    model_config = ConfigDict(extra="forbid")

    search: str = ""
    min_score: float | None = Field(default=None, ge=0.0, le=100.0)
    max_score: float | None = Field(default=None, ge=0.0, le=100.0)
    ai_only: bool = False
    sources: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_score_bounds(self) -> FilterDefaults:
        if (
            self.min_score is not None
            and self.max_score is not None
            and self.max_score < self.min_score
        ):
            raise ValueError("filters.max_score must be greater than or equal to min_score")
        return self

    def to_filter_state(self) -> FilterState:
        return FilterState(
            search=self.search,
            min_score=self.min_score,
            max_score=self.max_score,
            ai_only=self.ai_only,
            sources=tuple(self.sources),
        )


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    api: ApiConfig = Field(default_factory=ApiConfig)
    filters: FilterDefaults = Field(default_factory=FilterDefaults)
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if not isinstance(logging.getLevelName(normalized), int):
            raise ValueError(f"Unknown log level: {value}")
        return normalized


def load_config(path: str | Path) -> AppConfig:
    raw = Path(path).read_text(encoding="utf-8")
    payload = _parse_yaml_or_json(raw)
    try:
        return AppConfig.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc


def _parse_yaml_or_json(raw: str) -> dict[str, Any]:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        parsed = _parse_yaml(raw)
    if not isinstance(parsed, dict):
        raise ValueError("Configuration root must be an object.")
    return parsed


def _parse_yaml(raw: str) -> dict[str, Any]:
    import yaml

    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ValueError(f"Configuration is neither valid JSON nor YAML: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ValueError("Configuration root must be an object.")
    return parsed

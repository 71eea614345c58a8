from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

UNASSIGNED_STAGE_ID = "__unassigned__"
TModel = TypeVar("TModel", bound=BaseModel)


def _normalize_datetime(value: datetime) -> datetime:
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class DTOBase(BaseModel):
    model_config = ConfigDict(
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Job(DTOBase):
    id: str
    title: str | None = None
    status: str | None = None
    department: str | None = None
    location: str | None = None


class Stage(DTOBase):
    id: str
    name: str = ""
    order: int = 0


class Candidate(DTOBase):
    id: str
    name: str | None = None
    email: str | None = None
    title: str | None = None
    source: str | None = None
    applied_at: datetime | None = None
    match_score: float | None = None
    stage_id: str | None = None

    @field_validator("applied_at", mode="after")
    @classmethod
    def validate_applied_at(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        return _normalize_datetime(value)

    @field_validator("stage_id", mode="before")
    @classmethod
    def normalize_stage_id(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def bucket_key(self) -> str:
        return self.stage_id or UNASSIGNED_STAGE_ID


class FilterState(DTOBase):
    """Client-side filters for the pipeline board. Never persisted."""

    model_config = ConfigDict(frozen=True)

    search: str = ""
    min_score: float | None = None
    max_score: float | None = None
    ai_only: bool = False
    sources: tuple[str, ...] = ()

    @field_validator("sources", mode="before")
    @classmethod
    def normalize_sources(cls, value: Any) -> tuple[str, ...]:
        if value is None:
            return ()
        if isinstance(value, str):
            value = [value]
        return tuple(str(item).strip() for item in value if str(item).strip())


class PipelineSnapshot(DTOBase):
    job: Job | None = None
    stages: list[Stage] = Field(default_factory=list)
    candidates: list[Candidate] = Field(default_factory=list)

    @field_validator("stages", "candidates", mode="before")
    @classmethod
    def default_missing_lists(cls, value: Any) -> Any:
        if value is None:
            return []
        return value


def json_schema_for(model_cls: type[TModel]) -> dict[str, Any]:
    return model_cls.model_json_schema(by_alias=True)


def validate_json(model_cls: type[TModel], payload: str | bytes | bytearray) -> TModel:
    return model_cls.model_validate_json(payload)

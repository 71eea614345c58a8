from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from atsboard_core.config import AppConfig, load_config
from atsboard_core.schemas import (
    Candidate,
    FilterState,
    PipelineSnapshot,
    json_schema_for,
    validate_json,
)

ROOT = Path(__file__).resolve().parents[1]
FIXTURE_DIR = Path(__file__).resolve().parent / "fixtures"


def test_pipeline_snapshot_from_fixture() -> None:
    raw = (FIXTURE_DIR / "pipeline.sample.json").read_text(encoding="utf-8")
    snapshot = validate_json(PipelineSnapshot, raw)

    assert snapshot.job is not None and snapshot.job.status == "Open"
    assert [stage.id for stage in snapshot.stages] == ["s2", "s1"]
    first = snapshot.candidates[0]
    assert first.applied_at is not None and first.applied_at.tzinfo is not None
    assert first.match_score == 85
    assert snapshot.candidates[1].match_score is None


def test_candidate_dumps_camel_case_keys() -> None:
    candidate = Candidate(id="c1", stage_id="s1", match_score=50)

    dumped = candidate.model_dump(by_alias=True, exclude_none=True)

    assert dumped == {"id": "c1", "stageId": "s1", "matchScore": 50.0}


def test_naive_applied_at_is_treated_as_utc() -> None:
    candidate = Candidate.model_validate({"id": "c1", "appliedAt": "2024-01-02T09:00:00"})

    assert candidate.applied_at is not None
    assert candidate.applied_at.utcoffset() is not None


def test_out_of_range_match_score_is_kept_as_sent() -> None:
    snapshot = PipelineSnapshot.model_validate(
        {
            "candidates": [
                {"id": "c1", "matchScore": 100.5},
                {"id": "c2", "matchScore": -3},
            ]
        }
    )

    assert [c.match_score for c in snapshot.candidates] == [100.5, -3]


def test_candidate_requires_an_id() -> None:
    with pytest.raises(ValidationError):
        Candidate.model_validate({"name": "No Id"})


def test_filter_state_is_hashable_and_normalizes_sources() -> None:
    filters = FilterState(sources=[" LinkedIn ", "", "Referral"])

    assert filters.sources == ("LinkedIn", "Referral")
    assert hash(filters) == hash(FilterState(sources=("LinkedIn", "Referral")))


def test_json_schema_utility() -> None:
    schema = json_schema_for(Candidate)

    assert schema["title"] == "Candidate"
    assert "stageId" in schema["properties"]


def test_config_example_load_and_validate() -> None:
    config = load_config(ROOT / "config" / "config.example.yaml")

    assert isinstance(config, AppConfig)
    assert config.api.base_url == "http://127.0.0.1:8080"
    assert config.api.org_id == "demo-org"
    assert config.log_level == "INFO"
    assert config.filters.to_filter_state().model_dump() == FilterState().model_dump()


def test_config_json_with_filter_defaults(tmp_path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(
        json.dumps(
            {
                "api": {"base_url": "https://hr.example.com", "org_id": "acme"},
                "filters": {"min_score": 60, "ai_only": True, "sources": ["LinkedIn"]},
                "log_level": "debug",
            }
        ),
        encoding="utf-8",
    )

    config = load_config(config_path)
    filters = config.filters.to_filter_state()

    assert config.log_level == "DEBUG"
    assert filters.min_score == 60
    assert filters.ai_only is True
    assert filters.sources == ("LinkedIn",)


@pytest.mark.parametrize(
    "payload",
    [
        {"api": {"base_url": "  "}},
        {"api": {"timeout_seconds": 0}},
        {"filters": {"min_score": 80, "max_score": 20}},
        {"filters": {"min_score": 120}},
        {"log_level": "chatty"},
        {"unknown": True},
    ],
)
def test_invalid_config_raises_value_error(tmp_path, payload: dict[str, object]) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps(payload), encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(config_path)


def test_config_root_must_be_an_object(tmp_path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(config_path)

from __future__ import annotations

from atsboard_core.board import bucketize, compare_candidates, sort_stages
from atsboard_core.schemas import UNASSIGNED_STAGE_ID, Candidate, FilterState, Stage


def _stage(stage_id: str, order: int, name: str = "") -> Stage:
    return Stage(id=stage_id, order=order, name=name or stage_id)


def _candidate(candidate_id: str, **fields: object) -> Candidate:
    return Candidate.model_validate({"id": candidate_id, **fields})


def test_end_to_end_ai_only_scenario() -> None:
    stages = [
        Stage(id="s1", order=0, name="Applied"),
        Stage(id="s2", order=1, name="Offer"),
    ]
    candidates = [
        _candidate("c1", stageId="s1", matchScore=85),
        _candidate("c2", stageId="s1", matchScore=None),
    ]

    buckets = bucketize(stages, candidates, FilterState(ai_only=True))

    assert [c.id for c in buckets["s1"]] == ["c1"]
    assert buckets["s2"] == []
    assert sum(len(bucket) for bucket in buckets.values()) == 1


def test_every_known_stage_gets_a_bucket_in_order() -> None:
    stages = [_stage("offer", 2), _stage("applied", 0), _stage("screen", 1)]

    buckets = bucketize(stages, [], FilterState())

    assert list(buckets) == ["applied", "screen", "offer"]
    assert all(bucket == [] for bucket in buckets.values())


def test_stage_sort_is_stable_for_equal_orders() -> None:
    stages = [_stage("b", 1), _stage("a", 0), _stage("c", 1), _stage("d", 1)]

    assert [stage.id for stage in sort_stages(stages)] == ["a", "b", "c", "d"]


def test_unknown_stage_ids_get_overflow_buckets() -> None:
    stages = [_stage("s1", 0)]
    candidates = [
        _candidate("c1", stageId="s1"),
        _candidate("c2", stageId="ghost"),
        _candidate("c3", stageId=None),
        _candidate("c4", stageId="  "),
    ]

    buckets = bucketize(stages, candidates, FilterState())

    assert list(buckets) == ["s1", "ghost", UNASSIGNED_STAGE_ID]
    assert [c.id for c in buckets["ghost"]] == ["c2"]
    assert sorted(c.id for c in buckets[UNASSIGNED_STAGE_ID]) == ["c3", "c4"]


def test_no_candidate_is_dropped_without_filters() -> None:
    stages = [_stage("s1", 0), _stage("s2", 1)]
    candidates = [
        _candidate(f"c{index}", stageId=stage_id)
        for index, stage_id in enumerate(["s1", "s2", "s3", "s1", "s2"])
    ]

    buckets = bucketize(stages, candidates, FilterState())

    bucketed = sorted(c.id for bucket in buckets.values() for c in bucket)
    assert bucketed == sorted(c.id for c in candidates)


def test_bucket_sort_uses_pairwise_date_then_name_rule() -> None:
    stages = [_stage("s1", 0)]
    candidates = [
        _candidate("bob", name="Bob", appliedAt=None, stageId="s1"),
        _candidate("amy", name="Amy", appliedAt="2024-01-02", stageId="s1"),
        _candidate("zoe", name="Zoe", appliedAt="2024-01-01", stageId="s1"),
    ]

    buckets = bucketize(stages, candidates, FilterState())

    assert [c.name for c in buckets["s1"]] == ["Zoe", "Amy", "Bob"]


def test_undated_candidates_sort_by_name_case_insensitively() -> None:
    stages = [_stage("s1", 0)]
    candidates = [
        _candidate("c1", name="charlie", stageId="s1"),
        _candidate("c2", name="Alice", stageId="s1"),
        _candidate("c3", name=None, stageId="s1"),
        _candidate("c4", name="bob", stageId="s1"),
    ]

    buckets = bucketize(stages, candidates, FilterState())

    assert [c.id for c in buckets["s1"]] == ["c3", "c2", "c4", "c1"]


def test_compare_candidates_only_uses_dates_when_both_are_present() -> None:
    early = _candidate("a", name="Zed", appliedAt="2024-01-01T00:00:00Z")
    late = _candidate("b", name="Ann", appliedAt="2024-03-01T00:00:00Z")
    undated = _candidate("c", name="Mia")
    same_time = _candidate("d", name="Abe", appliedAt="2024-01-01T00:00:00Z")

    assert compare_candidates(early, late) == -1
    assert compare_candidates(late, early) == 1
    assert compare_candidates(early, undated) == 1
    assert compare_candidates(undated, late) == 1
    assert compare_candidates(early, same_time) == 0


def test_bucketize_does_not_mutate_inputs() -> None:
    stages = [_stage("s2", 1), _stage("s1", 0)]
    candidates = [
        _candidate("c2", name="Bo", stageId="s1"),
        _candidate("c1", name="Al", stageId="s1"),
    ]
    stage_ids_before = [stage.id for stage in stages]
    candidate_ids_before = [c.id for c in candidates]

    first = bucketize(stages, candidates, FilterState())
    second = bucketize(stages, candidates, FilterState())

    assert [stage.id for stage in stages] == stage_ids_before
    assert [c.id for c in candidates] == candidate_ids_before
    assert first == second
    assert first["s1"] is not second["s1"]


def test_accented_names_sort_with_their_base_letters() -> None:
    stages = [_stage("s1", 0)]
    candidates = [
        _candidate("c1", name="Zoe", stageId="s1"),
        _candidate("c2", name="Émile", stageId="s1"),
        _candidate("c3", name="emma", stageId="s1"),
        _candidate("c4", name="Emile", stageId="s1"),
    ]

    bucket = bucketize(stages, candidates, FilterState())["s1"]

    assert [c.name for c in bucket] == ["Emile", "Émile", "emma", "Zoe"]

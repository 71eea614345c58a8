from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from atsboard_core.schemas import UNASSIGNED_STAGE_ID, Candidate, FilterState, Job, Stage

from .bucketizer import bucketize
from .data_source import PipelineDataSource

UNASSIGNED_STAGE_NAME = "Unassigned"


@dataclass(slots=True, frozen=True)
class StageColumn:
    stage_id: str
    name: str
    order: int | None
    candidates: tuple[Candidate, ...]
    known: bool = True

    @property
    def count(self) -> int:
        return len(self.candidates)


@dataclass(slots=True, frozen=True)
class PipelineView:
    job: Job | None
    columns: tuple[StageColumn, ...]
    total_visible: int
    total_candidates: int
    is_loading: bool
    error: str | None
    editable: bool


class PipelineViewModel:
    """Render-ready board state derived from a data source and the filters."""

    def __init__(
        self,
        source: PipelineDataSource,
        *,
        filters: FilterState | None = None,
        editable: bool = True,
    ) -> None:
        self.source = source
        self.editable = editable
        self._filters = filters or FilterState()
        self._cache_key: tuple[int, FilterState, bool] | None = None
        self._cached: PipelineView | None = None

    @property
    def filters(self) -> FilterState:
        return self._filters

    def set_filters(self, filters: FilterState) -> None:
        self._filters = filters

    def set_search(self, search: str) -> None:
        self._update(search=search)

    def set_min_score(self, min_score: float | None) -> None:
        self._update(min_score=min_score)

    def set_max_score(self, max_score: float | None) -> None:
        self._update(max_score=max_score)

    def set_ai_only(self, ai_only: bool) -> None:
        self._update(ai_only=ai_only)

    def set_sources(self, sources: Iterable[str]) -> None:
        self._update(sources=tuple(sources))

    def reset_filters(self) -> None:
        self._filters = FilterState()

    @property
    def view(self) -> PipelineView:
        key = (self.source.version, self._filters, self.editable)
        if self._cached is None or key != self._cache_key:
            self._cached = self._build()
            self._cache_key = key
        return self._cached

    def _update(self, **changes: object) -> None:
        payload = self._filters.model_dump()
        payload.update(changes)
        self._filters = FilterState.model_validate(payload)

    def _build(self) -> PipelineView:
        stages = self.source.stages
        candidates = self.source.candidates
        buckets = bucketize(stages, candidates, self._filters)

        # Duplicate ids keep the stage bucketize placed first: lowest order, then input order.
        stage_by_id: dict[str, Stage] = {}
        for stage in stages:
            current = stage_by_id.get(stage.id)
            if current is None or stage.order < current.order:
                stage_by_id[stage.id] = stage

        columns: list[StageColumn] = []
        for stage_id, bucket in buckets.items():
            stage = stage_by_id.get(stage_id)
            if stage is not None:
                columns.append(
                    StageColumn(
                        stage_id=stage.id,
                        name=stage.name,
                        order=stage.order,
                        candidates=tuple(bucket),
                    )
                )
                continue
            columns.append(
                StageColumn(
                    stage_id=stage_id,
                    name=UNASSIGNED_STAGE_NAME if stage_id == UNASSIGNED_STAGE_ID else stage_id,
                    order=None,
                    candidates=tuple(bucket),
                    known=False,
                )
            )

        return PipelineView(
            job=self.source.job,
            columns=tuple(columns),
            total_visible=sum(len(bucket) for bucket in buckets.values()),
            total_candidates=len(candidates),
            is_loading=self.source.is_loading,
            error=self.source.error,
            editable=self.editable,
        )

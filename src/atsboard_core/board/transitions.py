from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from atsboard_core.api import PipelineBackend

from .data_source import PipelineDataSource

logger = logging.getLogger(__name__)


class TransitionStatus(StrEnum):
    NOOP = "noop"
    SKIPPED = "skipped"
    MOVED = "moved"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class TransitionResult:
    candidate_id: str
    stage_id: str
    status: TransitionStatus
    error: str | None = None


class StageTransitionController:
    """Moves one candidate at a time to a new stage, per candidate.

    The candidate list is never edited locally. A committed move is followed by
    a reconcile on the data source, so the board only shows the new stage once
    the backend has confirmed it.
    """

    def __init__(self, *, source: PipelineDataSource, backend: PipelineBackend) -> None:
        if not source.can_reconcile:
            raise ValueError(
                "source cannot reload after a move; pass on_reload or job_id and backend."
            )
        self.source = source
        self.backend = backend
        self._pending: dict[str, str] = {}
        self._last_started: str | None = None

    @property
    def pending_ids(self) -> frozenset[str]:
        return frozenset(self._pending)

    @property
    def pending_candidate_id(self) -> str | None:
        if self._last_started in self._pending:
            return self._last_started
        return next(iter(self._pending), None)

    def is_pending(self, candidate_id: str) -> bool:
        return candidate_id in self._pending

    async def move_stage(self, candidate_id: str, new_stage_id: str) -> TransitionResult:
        candidate = self.source.find_candidate(candidate_id)
        if candidate is not None and candidate.stage_id == new_stage_id:
            logger.info(
                "stage_move_noop candidate_id=%s stage_id=%s",
                candidate_id,
                new_stage_id,
            )
            return TransitionResult(candidate_id, new_stage_id, TransitionStatus.NOOP)

        if candidate_id in self._pending:
            logger.info(
                "stage_move_skipped candidate_id=%s stage_id=%s pending_stage_id=%s",
                candidate_id,
                new_stage_id,
                self._pending[candidate_id],
            )
            return TransitionResult(candidate_id, new_stage_id, TransitionStatus.SKIPPED)

        if candidate is None:
            logger.warning("stage_move_unknown_candidate candidate_id=%s", candidate_id)

        self._pending[candidate_id] = new_stage_id
        self._last_started = candidate_id
        logger.info(
            "stage_move_started candidate_id=%s from_stage_id=%s stage_id=%s",
            candidate_id,
            candidate.stage_id if candidate is not None else None,
            new_stage_id,
        )
        try:
            try:
                await self.backend.update_candidate_stage(candidate_id, new_stage_id)
            except Exception as exc:
                logger.exception(
                    "stage_move_failed candidate_id=%s stage_id=%s",
                    candidate_id,
                    new_stage_id,
                )
                return TransitionResult(
                    candidate_id,
                    new_stage_id,
                    TransitionStatus.FAILED,
                    error=_describe(exc, fallback="Failed to update stage. Try again."),
                )

            logger.info(
                "stage_move_committed candidate_id=%s stage_id=%s",
                candidate_id,
                new_stage_id,
            )
            try:
                await self.source.reconcile()
            except Exception as exc:
                logger.exception("stage_move_reconcile_failed candidate_id=%s", candidate_id)
                return TransitionResult(
                    candidate_id,
                    new_stage_id,
                    TransitionStatus.MOVED,
                    error=_describe(exc, fallback="Stage updated, but reload failed."),
                )
            return TransitionResult(candidate_id, new_stage_id, TransitionStatus.MOVED)
        finally:
            self._pending.pop(candidate_id, None)


def _describe(exc: Exception, *, fallback: str) -> str:
    detail = str(exc).strip()
    return detail or fallback

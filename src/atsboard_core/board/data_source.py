from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Protocol

from atsboard_core.api import PipelineBackend
from atsboard_core.schemas import Candidate, Job, PipelineSnapshot, Stage

FETCH_ERROR_MESSAGE = "Failed to load pipeline."

logger = logging.getLogger(__name__)

ReloadCallback = Callable[[], Awaitable[None] | None]


class Reconciler(Protocol):
    async def reconcile(self) -> None:
        """Bring local state back in line with the backend."""


class RefetchReconciler:
    def __init__(self, source: PipelineDataSource) -> None:
        self.source = source

    async def reconcile(self) -> None:
        await self.source.refresh()


class DelegateReconciler:
    """Hands reconciliation to the owner of externally supplied data."""

    def __init__(self, on_reload: ReloadCallback) -> None:
        self.on_reload = on_reload

    async def reconcile(self) -> None:
        result = self.on_reload()
        if inspect.isawaitable(result):
            await result


class PipelineDataSource:
    """Owns the job, stages and candidates shown on one pipeline board.

    In controlled mode the caller supplies all three values and may replace
    them with ``set_snapshot``. Otherwise the source loads them from the
    backend. Only this class writes its own state.
    """

    def __init__(
        self,
        *,
        job_id: str | None = None,
        backend: PipelineBackend | None = None,
        job: Job | None = None,
        stages: Sequence[Stage] | None = None,
        candidates: Sequence[Candidate] | None = None,
        on_reload: ReloadCallback | None = None,
    ) -> None:
        self.job_id = (job_id or "").strip() or None
        self.backend = backend

        self._job = job
        self._stages: list[Stage] | None = list(stages) if stages is not None else None
        self._candidates: list[Candidate] | None = (
            list(candidates) if candidates is not None else None
        )
        self.controlled = job is not None and stages is not None and candidates is not None
        self._error: str | None = None
        self._inflight = 0
        self._loaded = self.controlled
        self._disposed = False
        self._version = 0

        if not self.controlled and not self.can_fetch:
            raise ValueError("job_id and backend are required when pipeline data is not supplied.")

        self.reconciler: Reconciler = (
            DelegateReconciler(on_reload) if on_reload is not None else RefetchReconciler(self)
        )

    @classmethod
    async def open(
        cls,
        *,
        job_id: str | None = None,
        backend: PipelineBackend | None = None,
        job: Job | None = None,
        stages: Sequence[Stage] | None = None,
        candidates: Sequence[Candidate] | None = None,
        on_reload: ReloadCallback | None = None,
    ) -> PipelineDataSource:
        source = cls(
            job_id=job_id,
            backend=backend,
            job=job,
            stages=stages,
            candidates=candidates,
            on_reload=on_reload,
        )
        await source.load_if_needed()
        return source

    @property
    def can_fetch(self) -> bool:
        return self.job_id is not None and self.backend is not None

    @property
    def can_reconcile(self) -> bool:
        return isinstance(self.reconciler, DelegateReconciler) or self.can_fetch

    @property
    def job(self) -> Job | None:
        return self._job

    @property
    def stages(self) -> list[Stage]:
        return list(self._stages or [])

    @property
    def candidates(self) -> list[Candidate]:
        return list(self._candidates or [])

    @property
    def is_loading(self) -> bool:
        return self._inflight > 0

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def version(self) -> int:
        return self._version

    @property
    def disposed(self) -> bool:
        return self._disposed

    def find_candidate(self, candidate_id: str) -> Candidate | None:
        for candidate in self._candidates or []:
            if candidate.id == candidate_id:
                return candidate
        return None

    async def load_if_needed(self) -> None:
        if self.controlled:
            return
        await self.refresh()

    async def refresh(self) -> None:
        backend, job_id = self.backend, self.job_id
        if backend is None or job_id is None:
            raise ValueError("refresh requires job_id and backend; pass on_reload for supplied data.")

        self._inflight += 1
        self._touch()
        logger.info("pipeline_fetch_started job_id=%s", self.job_id)
        try:
            snapshot = await backend.fetch_pipeline(job_id)
        except Exception as exc:
            logger.exception("pipeline_fetch_failed job_id=%s", self.job_id)
            if not self._disposed:
                self._error = _fetch_error_message(exc)
                if not self._loaded:
                    self._job = None
                    self._stages = []
                    self._candidates = []
        else:
            if self._disposed:
                logger.info("pipeline_fetch_discarded job_id=%s reason=disposed", self.job_id)
            else:
                self._apply(snapshot)
                logger.info(
                    "pipeline_fetch_succeeded job_id=%s stages=%d candidates=%d",
                    self.job_id,
                    len(snapshot.stages),
                    len(snapshot.candidates),
                )
        finally:
            self._inflight -= 1
            self._touch()

    async def reconcile(self) -> None:
        await self.reconciler.reconcile()

    def set_snapshot(
        self,
        *,
        job: Job | None,
        stages: Sequence[Stage],
        candidates: Sequence[Candidate],
    ) -> None:
        self._apply(PipelineSnapshot(job=job, stages=list(stages), candidates=list(candidates)))

    def dispose(self) -> None:
        self._disposed = True

    def _apply(self, snapshot: PipelineSnapshot) -> None:
        self._job = snapshot.job
        self._stages = list(snapshot.stages)
        self._candidates = list(snapshot.candidates)
        self._error = None
        self._loaded = True
        self._touch()

    def _touch(self) -> None:
        self._version += 1


def _fetch_error_message(exc: Exception) -> str:
    detail = str(exc).strip()
    if not detail:
        return FETCH_ERROR_MESSAGE
    return f"{FETCH_ERROR_MESSAGE} {detail}"

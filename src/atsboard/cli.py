from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from pydantic import ValidationError

from atsboard.render import render_board, render_summary
from atsboard_core import AppConfig, load_config
from atsboard_core.api import AsyncPipelineBackend, PipelineApiClient
from atsboard_core.board import (
    PipelineDataSource,
    PipelineViewModel,
    StageTransitionController,
    TransitionStatus,
)
from atsboard_core.schemas import FilterState, Job, PipelineSnapshot

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = typer.Typer(help="atsboard: candidate pipeline board CLI")


@app.command("board")
def show_board(
    job_id: str = typer.Option(..., "--job-id", help="Job whose pipeline to show."),
    config_path: Path | None = typer.Option(
        None,
        "--config",
        help="Config file path (JSON or YAML).",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    search: str | None = typer.Option(
        None,
        "--search",
        help="Case-insensitive substring matched against name and email.",
    ),
    min_score: float | None = typer.Option(
        None,
        "--min-score",
        help="Only show candidates with a match score >= N.",
        min=0.0,
        max=100.0,
    ),
    max_score: float | None = typer.Option(
        None,
        "--max-score",
        help="Only show candidates with a match score <= N.",
        min=0.0,
        max=100.0,
    ),
    ai_only: bool = typer.Option(
        False,
        "--ai-only",
        help="Only show candidates that have an AI match score.",
    ),
    sources: list[str] | None = typer.Option(
        None,
        "--source",
        help="Only show candidates from this source. Repeatable.",
    ),
    snapshot_path: Path | None = typer.Option(
        None,
        "--snapshot",
        help="Render a saved pipeline JSON instead of calling the API.",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Show the pipeline board for one job, grouped by stage."""
    config = _load_app_config(config_path)
    filters = _merge_filters(
        config.filters.to_filter_state(),
        search=search,
        min_score=min_score,
        max_score=max_score,
        ai_only=ai_only,
        sources=sources,
    )

    if snapshot_path is not None:
        snapshot = _load_snapshot(snapshot_path)
        source = PipelineDataSource(
            job_id=job_id,
            job=snapshot.job or Job(id=job_id),
            stages=snapshot.stages,
            candidates=snapshot.candidates,
        )
    else:
        backend = AsyncPipelineBackend(_build_client(config))
        source = asyncio.run(PipelineDataSource.open(job_id=job_id, backend=backend))

    view = PipelineViewModel(source, filters=filters, editable=False).view
    if view.error:
        typer.echo(view.error, err=True)
        raise typer.Exit(code=1)

    typer.echo(render_board(view))
    typer.echo(render_summary(view))


@app.command("move")
def move_candidate(
    job_id: str = typer.Option(..., "--job-id", help="Job whose pipeline holds the candidate."),
    candidate_id: str = typer.Option(..., "--candidate-id", help="Candidate to move."),
    stage_id: str = typer.Option(..., "--stage-id", help="Target stage id."),
    config_path: Path | None = typer.Option(
        None,
        "--config",
        help="Config file path (JSON or YAML).",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Move one candidate to another stage and show the reloaded board."""
    config = _load_app_config(config_path)
    backend = AsyncPipelineBackend(_build_client(config))

    async def _run() -> tuple[PipelineDataSource, TransitionStatus, str | None]:
        source = await PipelineDataSource.open(job_id=job_id, backend=backend)
        if source.error:
            return source, TransitionStatus.FAILED, source.error
        controller = StageTransitionController(source=source, backend=backend)
        result = await controller.move_stage(candidate_id, stage_id)
        return source, result.status, result.error

    source, status, error = asyncio.run(_run())
    typer.echo(f"status={status.value} candidate={candidate_id} stage={stage_id}")
    if status == TransitionStatus.FAILED:
        typer.echo(error or "stage move failed", err=True)
        raise typer.Exit(code=1)
    if error:
        typer.echo(error, err=True)

    view = PipelineViewModel(source, filters=config.filters.to_filter_state()).view
    typer.echo(render_summary(view))


def _load_app_config(path: Path | None) -> AppConfig:
    if path is None:
        config = AppConfig()
    else:
        try:
            config = load_config(path)
        except ValueError as exc:
            typer.echo(str(exc), err=True)
            raise typer.Exit(code=1) from exc
    logging.getLogger().setLevel(config.log_level)
    return config


def _build_client(config: AppConfig) -> PipelineApiClient:
    try:
        return PipelineApiClient.from_env(
            base_url=config.api.base_url,
            org_id=config.api.org_id,
            api_key_env=config.api.api_key_env,
            timeout_seconds=config.api.timeout_seconds,
        )
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc


def _merge_filters(
    defaults: FilterState,
    *,
    search: str | None,
    min_score: float | None,
    max_score: float | None,
    ai_only: bool,
    sources: list[str] | None,
) -> FilterState:
    payload = defaults.model_dump()
    if search is not None:
        payload["search"] = search
    if min_score is not None:
        payload["min_score"] = min_score
    if max_score is not None:
        payload["max_score"] = max_score
    if ai_only:
        payload["ai_only"] = True
    if sources:
        payload["sources"] = tuple(sources)
    return FilterState.model_validate(payload)


def _load_snapshot(path: Path) -> PipelineSnapshot:
    try:
        return PipelineSnapshot.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as exc:
        typer.echo(f"invalid pipeline snapshot: {path}", err=True)
        raise typer.Exit(code=1) from exc


def main() -> None:
    """CLI entrypoint."""
    app()


if __name__ == "__main__":
    main()

from __future__ import annotations

from atsboard_core.board import PipelineView, StageColumn
from atsboard_core.schemas import Candidate


def render_board(view: PipelineView) -> str:
    if view.error and not view.columns:
        return f"error: {view.error}"
    if not view.columns:
        return "no pipeline stages found for this job"

    title = (view.job.title if view.job else None) or "Hiring pipeline"
    blocks = [title]
    if view.error:
        blocks.append(f"warning: {view.error}")
    blocks.extend(render_column(column) for column in view.columns)
    return "\n\n".join(blocks)


def render_column(column: StageColumn) -> str:
    label = "candidate" if column.count == 1 else "candidates"
    header = f"[{column.name}] {column.count} {label}"
    if not column.candidates:
        return f"{header}\nno candidates here yet"

    headers = ("id", "name", "email", "fit", "source", "applied")
    rows = [_candidate_row(candidate) for candidate in column.candidates]
    return f"{header}\n{render_table(headers=headers, rows=rows)}"


def render_summary(view: PipelineView) -> str:
    return (
        f"stages={len(view.columns)} "
        f"visible={view.total_visible} "
        f"total={view.total_candidates}"
    )


def render_table(
    *,
    headers: tuple[str, ...],
    rows: list[tuple[str, ...]],
) -> str:
    if not rows:
        return "no rows"

    widths = [
        max(len(headers[column]), *(len(row[column]) for row in rows))
        for column in range(len(headers))
    ]

    def _line(values: tuple[str, ...]) -> str:
        return " | ".join(
            value.ljust(widths[index]) for index, value in enumerate(values)
        ).rstrip()

    divider = "-+-".join("-" * width for width in widths)
    body = [_line(headers), divider]
    body.extend(_line(row) for row in rows)
    return "\n".join(body)


def _candidate_row(candidate: Candidate) -> tuple[str, ...]:
    fit = "-" if candidate.match_score is None else f"{round(candidate.match_score)}%"
    applied = candidate.applied_at.date().isoformat() if candidate.applied_at else "-"
    return (
        candidate.id,
        _truncate(candidate.name or "Unnamed candidate", limit=32),
        _truncate(candidate.email or "-", limit=36),
        fit,
        _truncate(candidate.source or "-", limit=20),
        applied,
    )


def _truncate(text: str, *, limit: int) -> str:
    if len(text) <= limit:
        return text
    return f"{text[: limit - 3]}..."

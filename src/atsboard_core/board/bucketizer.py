from __future__ import annotations

import unicodedata
from collections.abc import Iterable, Sequence
from functools import cmp_to_key

from atsboard_core.schemas import Candidate, FilterState, Stage

from .filters import matches


def sort_stages(stages: Iterable[Stage]) -> list[Stage]:
    # sorted() is stable, so stages sharing an order keep their input order.
    return sorted(stages, key=lambda stage: stage.order)


def compare_candidates(left: Candidate, right: Candidate) -> int:
    """Pairwise ordering used inside a bucket.

    Two dated candidates compare by application time. Any pair where either
    side lacks a date falls back to a case-insensitive name comparison for that
    pair only, so undated candidates are not pushed to one end of the bucket.
    Names compare with accents folded first, so "Émile" sorts next to "Emile"
    rather than after "Zoe".
    """
    if left.applied_at is not None and right.applied_at is not None:
        if left.applied_at < right.applied_at:
            return -1
        if left.applied_at > right.applied_at:
            return 1
        return 0

    left_key = _name_key(left.name)
    right_key = _name_key(right.name)
    if left_key < right_key:
        return -1
    if left_key > right_key:
        return 1
    return 0


def _name_key(name: str | None) -> tuple[str, str]:
    text = (name or "").casefold()
    decomposed = unicodedata.normalize("NFKD", text)
    folded = "".join(char for char in decomposed if not unicodedata.combining(char))
    # Base letters decide; the accented form only breaks ties.
    return folded, text


def bucketize(
    stages: Sequence[Stage],
    candidates: Iterable[Candidate],
    filters: FilterState,
) -> dict[str, list[Candidate]]:
    buckets: dict[str, list[Candidate]] = {stage.id: [] for stage in sort_stages(stages)}

    for candidate in candidates:
        if not matches(candidate, filters):
            continue
        buckets.setdefault(candidate.bucket_key, []).append(candidate)

    sort_key = cmp_to_key(compare_candidates)
    for bucket in buckets.values():
        bucket.sort(key=sort_key)
    return buckets

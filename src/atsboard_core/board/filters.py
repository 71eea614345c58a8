from __future__ import annotations

from atsboard_core.schemas import Candidate, FilterState


def matches(candidate: Candidate, filters: FilterState) -> bool:
    """Return True when the candidate passes every active filter.

    A candidate without a match score never passes a score floor or ceiling,
    and a missing name or email never matches a non-empty search.
    """
    query = filters.search.strip().lower()
    if query:
        name = (candidate.name or "").lower()
        email = (candidate.email or "").lower()
        if query not in name and query not in email:
            return False

    score = candidate.match_score
    if filters.ai_only and score is None:
        return False

    if filters.min_score is not None and (score is None or score < filters.min_score):
        return False

    if filters.max_score is not None and (score is None or score > filters.max_score):
        return False

    if filters.sources:
        wanted = {source.strip().lower() for source in filters.sources}
        if (candidate.source or "").strip().lower() not in wanted:
            return False

    return True

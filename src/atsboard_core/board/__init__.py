"""Pipeline board engine: filtering, bucketing, loading and stage moves."""

from .bucketizer import bucketize, compare_candidates, sort_stages
from .data_source import (
    FETCH_ERROR_MESSAGE,
    DelegateReconciler,
    PipelineDataSource,
    RefetchReconciler,
)
from .filters import matches
from .transitions import StageTransitionController, TransitionResult, TransitionStatus
from .view_model import PipelineView, PipelineViewModel, StageColumn

__all__ = [
    "FETCH_ERROR_MESSAGE",
    "DelegateReconciler",
    "PipelineDataSource",
    "PipelineView",
    "PipelineViewModel",
    "RefetchReconciler",
    "StageColumn",
    "StageTransitionController",
    "TransitionResult",
    "TransitionStatus",
    "bucketize",
    "compare_candidates",
    "matches",
    "sort_stages",
]

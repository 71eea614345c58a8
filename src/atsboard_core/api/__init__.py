"""REST client for the pipeline backend."""

from .client import (
    AsyncPipelineBackend,
    PipelineApiClient,
    PipelineApiError,
    PipelineBackend,
)

__all__ = [
    "AsyncPipelineBackend",
    "PipelineApiClient",
    "PipelineApiError",
    "PipelineBackend",
]

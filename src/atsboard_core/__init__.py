"""atsboard core package."""

from .config import AppConfig, load_config
from .schemas import Candidate, FilterState, Job, PipelineSnapshot, Stage

__all__ = [
    "AppConfig",
    "Candidate",
    "FilterState",
    "Job",
    "PipelineSnapshot",
    "Stage",
    "load_config",
]

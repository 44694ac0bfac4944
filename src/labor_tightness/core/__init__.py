"""
Core infrastructure for the replication pipeline.

Provides:
- Configuration loading and validation
- Error types
- Common utilities
"""

from .config import (
    ConfigLoader,
    ConfigSchema,
    PipelineConfig,
    load_pipeline_config,
    validate_config,
)
from .errors import (
    DegenerateBaselineError,
    DegenerateFitError,
    FetchError,
    InsufficientObservationsError,
)
from .utils import (
    check_data_coverage,
    format_delta,
    format_float,
)

__all__ = [
    "ConfigLoader",
    "ConfigSchema",
    "PipelineConfig",
    "load_pipeline_config",
    "validate_config",
    "DegenerateBaselineError",
    "DegenerateFitError",
    "FetchError",
    "InsufficientObservationsError",
    "check_data_coverage",
    "format_delta",
    "format_float",
]

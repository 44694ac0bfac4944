"""
Labor-Market Tightness and Inflation
====================================

Replicates Phillips-curve results comparing labor-market tightness
indicators as predictors of core inflation.

Pipeline:
- data: FRED fetching and long-to-wide assembly
- indicators: the six derived indicators
- standardize: baseline z-scores
- regression: four lagged OLS specifications per indicator
- report: summary table and charts
"""

from .core import (
    DegenerateBaselineError,
    DegenerateFitError,
    FetchError,
    InsufficientObservationsError,
    PipelineConfig,
    load_pipeline_config,
)
from .data import FREDDataFetcher, SeriesRequest, TIGHTNESS_SERIES, to_wide
from .cache import CachedFREDFetcher, FREDCache
from .indicators import (
    INDICATOR_COLUMNS,
    TIGHTNESS_INDICATORS,
    build_indicator_table,
    derive_indicators,
)
from .standardize import BaselineParams, apply_zscores, fit_baseline, standardize
from .regression import (
    MODEL_VARIANTS,
    RegressionResult,
    fit_ols,
    results_to_frame,
    run_regressions,
)
from .pipeline import PipelineResult, analyze, run_pipeline

__version__ = "0.1.0"
__all__ = [
    # Config and errors
    "PipelineConfig",
    "load_pipeline_config",
    "FetchError",
    "DegenerateBaselineError",
    "DegenerateFitError",
    "InsufficientObservationsError",
    # Data
    "FREDDataFetcher",
    "CachedFREDFetcher",
    "FREDCache",
    "SeriesRequest",
    "TIGHTNESS_SERIES",
    "to_wide",
    # Indicators
    "INDICATOR_COLUMNS",
    "TIGHTNESS_INDICATORS",
    "derive_indicators",
    "build_indicator_table",
    # Standardization
    "BaselineParams",
    "fit_baseline",
    "apply_zscores",
    "standardize",
    # Regressions
    "MODEL_VARIANTS",
    "RegressionResult",
    "fit_ols",
    "run_regressions",
    "results_to_frame",
    # Pipeline
    "PipelineResult",
    "analyze",
    "run_pipeline",
]

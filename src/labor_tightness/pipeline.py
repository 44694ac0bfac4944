"""
End-to-end replication pipeline.

    fetch -> wide table -> indicators -> z-scores -> regressions

Each stage consumes the previous stage's table and returns a new one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

import polars as pl

from .cache import CachedFREDFetcher
from .core.config import PipelineConfig, load_pipeline_config
from .core.utils import check_data_coverage
from .data import FREDDataFetcher, SeriesRequest, default_requests, to_wide
from .indicators import REQUIRED_SERIES, build_indicator_table
from .regression import RegressionResult, results_to_frame, run_regressions
from .standardize import BaselineParams, standardize


class SeriesFetcher(Protocol):
    def fetch_many(self, series_requests: list[SeriesRequest]) -> pl.DataFrame: ...


@dataclass(frozen=True)
class PipelineResult:
    """Every intermediate table of one run."""

    wide: pl.DataFrame
    indicators: pl.DataFrame
    baseline: BaselineParams
    zscores: pl.DataFrame
    regressions: list[RegressionResult]

    def regression_table(self) -> pl.DataFrame:
        return results_to_frame(self.regressions)

    @property
    def failed(self) -> list[RegressionResult]:
        return [r for r in self.regressions if not r.ok]


def make_fetcher(config: PipelineConfig) -> FREDDataFetcher:
    """Build the fetcher described by the config."""
    if config.use_cache:
        return CachedFREDFetcher(
            api_key=config.api_key,
            cache_dir=config.cache_dir,
            max_age_hours=config.cache_max_age_hours,
            aggregation_method=config.aggregation_method,
        )
    return FREDDataFetcher(
        api_key=config.api_key,
        aggregation_method=config.aggregation_method,
    )


def analyze(
    observations: pl.DataFrame,
    config: Optional[PipelineConfig] = None,
    verbose: bool = False,
) -> PipelineResult:
    """
    Run every stage after fetching.

    Args:
        observations: Long observations [series_id, date, value]
        config: Pipeline settings (defaults to PipelineConfig())
        verbose: Print coverage warnings and failed fits

    Returns:
        PipelineResult

    Raises:
        ValueError: If required series are missing
        DegenerateBaselineError: If an indicator is constant over the baseline
    """
    config = config or PipelineConfig()

    wide = to_wide(observations)
    if verbose:
        coverage = check_data_coverage(wide, REQUIRED_SERIES, min_rows=config.lag + 2)
        for issue in coverage["issues"]:
            print(f"Warning: {issue}")

    indicators = build_indicator_table(wide, config)
    baseline, zscores = standardize(indicators, config.baseline_end)
    regressions = run_regressions(zscores, config.estimation_end, lag=config.lag)

    result = PipelineResult(
        wide=wide,
        indicators=indicators,
        baseline=baseline,
        zscores=zscores,
        regressions=regressions,
    )

    if verbose:
        print(
            f"Indicators: {indicators.height} rows "
            f"({config.sample_start} to {config.sample_end}); "
            f"{len(regressions) - len(result.failed)}/{len(regressions)} models fitted"
        )
        for r in result.failed:
            print(f"Warning: {r.indicator}/{r.variant} not fitted: {r.error}")

    return result


def run_pipeline(
    config: Optional[PipelineConfig] = None,
    fetcher: Optional[SeriesFetcher] = None,
    verbose: bool = True,
) -> PipelineResult:
    """
    Fetch all series from FRED and run the analysis.

    Any FetchError aborts the run.
    """
    config = config or load_pipeline_config()
    fetcher = fetcher or make_fetcher(config)

    series_requests = default_requests(config.frequency)
    if verbose:
        print(f"Fetching {len(series_requests)} series from FRED...")

    observations = fetcher.fetch_many(series_requests)
    if verbose and observations.height > 0:
        print(
            f"Fetched {observations.height} observations from "
            f"{observations['date'].min()} to {observations['date'].max()}"
        )

    return analyze(observations, config, verbose=verbose)

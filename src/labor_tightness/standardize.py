"""
Baseline standardization.

Each indicator is converted to a z-score against a fixed baseline window
(dates <= baseline_end). The baseline mean and sample standard deviation are
computed once and applied to the full sample, so post-baseline observations
measure deviation from "normal" historical conditions and can sit far from
zero.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from types import MappingProxyType
from typing import Mapping, Optional

import polars as pl

from .core.errors import DegenerateBaselineError
from .indicators import INDICATOR_COLUMNS


@dataclass(frozen=True)
class BaselineParams:
    """Per-indicator baseline mean and sample standard deviation."""

    mean: Mapping[str, float]
    sd: Mapping[str, float]
    n_obs: Mapping[str, int]
    baseline_end: date

    def __post_init__(self):
        for name in ("mean", "sd", "n_obs"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))

    @property
    def indicators(self) -> list[str]:
        return list(self.mean)

    def get(self, indicator: str) -> tuple[float, float]:
        """Return (mean, sd) for an indicator."""
        return self.mean[indicator], self.sd[indicator]

    def to_frame(self) -> pl.DataFrame:
        """Tabulate the parameters, one row per indicator."""
        return pl.DataFrame(
            {
                "indicator": self.indicators,
                "mean": [self.mean[c] for c in self.indicators],
                "sd": [self.sd[c] for c in self.indicators],
                "n_obs": [self.n_obs[c] for c in self.indicators],
            },
            schema={"indicator": pl.String, "mean": pl.Float64, "sd": pl.Float64, "n_obs": pl.Int64},
        )


def fit_baseline(
    indicators: pl.DataFrame,
    baseline_end: date,
    columns: Optional[list[str]] = None,
) -> BaselineParams:
    """
    Compute baseline mean and sample sd (ddof=1) for each indicator.

    Nulls are ignored. A zero, non-finite or undefined sd is rejected rather
    than left to produce infinite z-scores downstream.

    Args:
        indicators: Indicator table with a date column
        baseline_end: Last date (inclusive) of the baseline window
        columns: Indicator columns to fit (defaults to all six)

    Returns:
        BaselineParams

    Raises:
        DegenerateBaselineError: If any indicator has no usable spread in the window
    """
    columns = columns or INDICATOR_COLUMNS
    baseline = indicators.filter(pl.col("date") <= baseline_end)

    stats = baseline.select(
        *[pl.col(c).mean().alias(f"{c}__mean") for c in columns],
        *[pl.col(c).std(ddof=1).alias(f"{c}__sd") for c in columns],
        *[pl.col(c).count().alias(f"{c}__n") for c in columns],
    ).row(0, named=True)

    means, sds, counts = {}, {}, {}
    degenerate = {}
    for c in columns:
        mean, sd, n = stats[f"{c}__mean"], stats[f"{c}__sd"], stats[f"{c}__n"]
        if n < 2:
            degenerate[c] = f"{n} baseline observation(s)"
        elif sd is None or not math.isfinite(sd) or not math.isfinite(mean):
            degenerate[c] = "non-finite baseline"
        elif sd == 0:
            degenerate[c] = "zero standard deviation"
        means[c], sds[c], counts[c] = mean, sd, n

    if degenerate:
        raise DegenerateBaselineError(degenerate)

    return BaselineParams(mean=means, sd=sds, n_obs=counts, baseline_end=baseline_end)


def apply_zscores(indicators: pl.DataFrame, params: BaselineParams) -> pl.DataFrame:
    """
    Replace each fitted indicator with (value - baseline mean) / baseline sd.

    Applied to every row, not just the baseline window. Nulls stay null.
    """
    return indicators.with_columns(
        [
            ((pl.col(c) - params.mean[c]) / params.sd[c]).alias(c)
            for c in params.indicators
        ]
    )


def standardize(
    indicators: pl.DataFrame,
    baseline_end: date,
) -> tuple[BaselineParams, pl.DataFrame]:
    """Fit the baseline and transform the full indicator table."""
    params = fit_baseline(indicators, baseline_end)
    return params, apply_zscores(indicators, params)

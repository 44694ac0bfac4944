"""
Phillips-curve regressions.

For each tightness indicator, four OLS models are fitted on z-scores up to
the estimation cutoff:

    cpi_plain:  core_cpi(t) = a + b * x(t-4) + e
    pce_plain:  core_pce(t) = a + b * x(t-4) + e
    cpi_ar:     core_cpi(t) = a + b * x(t-4) + c * core_cpi(t-4) + e
    pce_ar:     core_pce(t) = a + b * x(t-4) + c * core_pce(t-4) + e

Rows with an undefined lag or a missing value are dropped per model
(listwise deletion). Only goodness of fit is reported.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

import polars as pl
import statsmodels.api as sm

from .core.errors import DegenerateFitError, InsufficientObservationsError
from .indicators import INFLATION_TARGETS, TIGHTNESS_INDICATORS


@dataclass(frozen=True)
class ModelVariant:
    """One regression specification."""

    name: str
    target: str
    autoregressive: bool
    description: str

    def regressors(self, lag: int) -> list[str]:
        """Regressor columns for a given lag."""
        cols = [f"indicator_lag{lag}"]
        if self.autoregressive:
            cols.append(f"{self.target}_lag{lag}")
        return cols


MODEL_VARIANTS = {
    "cpi_plain": ModelVariant(
        name="cpi_plain",
        target="core_cpi",
        autoregressive=False,
        description="Core CPI on lagged indicator",
    ),
    "pce_plain": ModelVariant(
        name="pce_plain",
        target="core_pce",
        autoregressive=False,
        description="Core PCE on lagged indicator",
    ),
    "cpi_ar": ModelVariant(
        name="cpi_ar",
        target="core_cpi",
        autoregressive=True,
        description="Core CPI on lagged indicator and lagged core CPI",
    ),
    "pce_ar": ModelVariant(
        name="pce_ar",
        target="core_pce",
        autoregressive=True,
        description="Core PCE on lagged indicator and lagged core PCE",
    ),
}


@dataclass(frozen=True)
class OLSFit:
    """Summary of a single OLS fit."""

    n_obs: int
    r_squared: float
    adj_r_squared: float
    coefficients: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class RegressionResult:
    """Adjusted R-squared for one (indicator, variant) pair, or why it failed."""

    indicator: str
    variant: str
    adj_r_squared: Optional[float]
    n_obs: int
    r_squared: Optional[float] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


RESULT_SCHEMA = {
    "indicator": pl.String,
    "model_variant": pl.String,
    "adj_r_squared": pl.Float64,
    "r_squared": pl.Float64,
    "n_obs": pl.Int64,
    "error": pl.String,
}


def add_lag(df: pl.DataFrame, column: str, periods: int) -> pl.DataFrame:
    """
    Add `{column}_lag{periods}`, the column shifted down by `periods` rows.

    The first `periods` entries are null. Rows must already be in date order.
    """
    return df.with_columns(
        pl.col(column).shift(periods).alias(f"{column}_lag{periods}")
    )


def group_by_indicator(
    zscores: pl.DataFrame,
    indicators: Optional[list[str]] = None,
) -> dict[str, pl.DataFrame]:
    """
    Split the z-score table into one frame per tightness indicator.

    Each frame has columns [date, indicator, core_cpi, core_pce] in date order.
    """
    indicators = indicators or TIGHTNESS_INDICATORS

    long = zscores.sort("date").unpivot(
        index=["date", *INFLATION_TARGETS],
        on=indicators,
        variable_name="indicator_name",
        value_name="indicator",
    )

    return {
        name: (
            long.filter(pl.col("indicator_name") == name)
            .select(["date", "indicator", *INFLATION_TARGETS])
            .sort("date")
        )
        for name in indicators
    }


def fit_ols(df: pl.DataFrame, target: str, regressors: list[str]) -> OLSFit:
    """
    Fit target on regressors plus a constant.

    Rows with a null or non-finite value in any model column are dropped.

    Raises:
        InsufficientObservationsError: If fewer than len(regressors) + 2 rows remain
        DegenerateFitError: If the fit yields a non-finite R-squared (e.g. constant target)
    """
    cols = [target, *regressors]
    complete = df.select(cols).drop_nulls().filter(
        pl.all_horizontal([pl.col(c).is_finite() for c in cols])
    )

    n_obs, n_regressors = complete.height, len(regressors)
    if n_obs < n_regressors + 2:
        raise InsufficientObservationsError(n_obs, n_regressors)

    y = complete.get_column(target).to_numpy()
    X = sm.add_constant(complete.select(regressors).to_numpy(), has_constant="add")
    result = sm.OLS(y, X).fit()

    r_squared = float(result.rsquared)
    adj_r_squared = float(result.rsquared_adj)
    if not (math.isfinite(r_squared) and math.isfinite(adj_r_squared)):
        raise DegenerateFitError(target, n_obs)

    return OLSFit(
        n_obs=n_obs,
        r_squared=r_squared,
        adj_r_squared=adj_r_squared,
        coefficients=dict(zip(["const", *regressors], map(float, result.params))),
    )


def fit_indicator_models(
    indicator: str,
    frame: pl.DataFrame,
    lag: int = 4,
    variants: Optional[dict[str, ModelVariant]] = None,
) -> list[RegressionResult]:
    """
    Fit every model variant for one indicator.

    A variant that cannot be fitted yields a failed RegressionResult instead
    of aborting the other variants.
    """
    variants = variants or MODEL_VARIANTS

    df = add_lag(frame.sort("date"), "indicator", lag)
    for target in INFLATION_TARGETS:
        df = add_lag(df, target, lag)

    results = []
    for variant in variants.values():
        try:
            fit = fit_ols(df, variant.target, variant.regressors(lag))
        except (InsufficientObservationsError, DegenerateFitError) as e:
            results.append(RegressionResult(
                indicator=indicator,
                variant=variant.name,
                adj_r_squared=None,
                n_obs=e.n_obs,
                error=str(e),
            ))
            continue

        results.append(RegressionResult(
            indicator=indicator,
            variant=variant.name,
            adj_r_squared=fit.adj_r_squared,
            n_obs=fit.n_obs,
            r_squared=fit.r_squared,
        ))

    return results


def run_regressions(
    zscores: pl.DataFrame,
    estimation_end: date,
    lag: int = 4,
    indicators: Optional[list[str]] = None,
) -> list[RegressionResult]:
    """
    Fit all four variants for each tightness indicator on data up to estimation_end.

    Args:
        zscores: Standardized indicator table
        estimation_end: Last date (inclusive) used for estimation
        lag: Lag in periods for the indicator and autoregressive terms
        indicators: Tightness indicators to model (defaults to ur, panr, upjo, qr)

    Returns:
        One RegressionResult per (indicator, variant)
    """
    estimation = zscores.filter(pl.col("date") <= estimation_end)

    results = []
    for name, frame in group_by_indicator(estimation, indicators).items():
        results.extend(fit_indicator_models(name, frame, lag=lag))
    return results


def results_to_frame(results: list[RegressionResult]) -> pl.DataFrame:
    """Tabulate regression results, one row per (indicator, variant)."""
    return pl.DataFrame(
        {
            "indicator": [r.indicator for r in results],
            "model_variant": [r.variant for r in results],
            "adj_r_squared": [r.adj_r_squared for r in results],
            "r_squared": [r.r_squared for r in results],
            "n_obs": [r.n_obs for r in results],
            "error": [r.error for r in results],
        },
        schema=RESULT_SCHEMA,
    )

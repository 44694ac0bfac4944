"""
Tests for the lagged Phillips-curve regressions.

Run with: pytest tests/test_regression.py -v
"""

from __future__ import annotations

import math
from datetime import date

import numpy as np
import polars as pl
import pytest

from labor_tightness.core.errors import DegenerateFitError, InsufficientObservationsError
from labor_tightness.indicators import INDICATOR_COLUMNS, TIGHTNESS_INDICATORS
from labor_tightness.regression import (
    MODEL_VARIANTS,
    add_lag,
    fit_indicator_models,
    fit_ols,
    group_by_indicator,
    results_to_frame,
    run_regressions,
)

from conftest import quarterly_dates


def indicator_frame(n: int = 40, noise: float = 1e-6, seed: int = 3) -> pl.DataFrame:
    """core_cpi(t) = 2 * x(t-4) + noise; core_pce is unrelated noise."""
    rng = np.random.default_rng(seed)
    x = rng.normal(size=n)
    core_cpi = rng.normal(size=n)
    core_cpi[4:] = 2 * x[:-4] + rng.normal(scale=noise, size=n - 4)
    return pl.DataFrame(
        {
            "date": quarterly_dates(n),
            "indicator": x,
            "core_cpi": core_cpi,
            "core_pce": rng.normal(size=n),
        }
    )


class TestAddLag:
    """Test lag construction."""

    def test_ten_period_series(self):
        values = [float(v) for v in range(1, 11)]
        df = pl.DataFrame({"x": values})

        lagged = add_lag(df, "x", 4)["x_lag4"].to_list()

        assert lagged[:4] == [None] * 4
        assert lagged[4:] == values[:6]
        assert sum(v is not None for v in lagged) == 6

    def test_original_column_untouched(self):
        df = pl.DataFrame({"x": [1.0, 2.0, 3.0]})
        result = add_lag(df, "x", 1)

        assert result["x"].to_list() == [1.0, 2.0, 3.0]
        assert "x_lag1" not in df.columns


class TestFitOLS:
    """Test the OLS wrapper."""

    def test_adjusted_r_squared_formula(self):
        df = add_lag(indicator_frame(noise=0.5), "indicator", 4)

        fit = fit_ols(df, "core_cpi", ["indicator_lag4"])

        n, p = fit.n_obs, 1
        expected = 1 - (1 - fit.r_squared) * (n - 1) / (n - p - 1)
        assert fit.adj_r_squared == pytest.approx(expected)
        assert fit.n_obs == 36
        assert fit.coefficients["indicator_lag4"] == pytest.approx(2.0, abs=0.5)

    def test_listwise_deletion(self):
        df = add_lag(indicator_frame(), "indicator", 4).with_columns(
            pl.when(pl.col("date") == date(2007, 1, 1))
            .then(None)
            .otherwise(pl.col("core_cpi"))
            .alias("core_cpi")
        )

        fit = fit_ols(df, "core_cpi", ["indicator_lag4"])

        assert fit.n_obs == 35

    def test_too_few_rows_raises(self):
        df = pl.DataFrame({"y": [1.0, 2.0], "x": [0.5, 0.7]})

        with pytest.raises(InsufficientObservationsError) as excinfo:
            fit_ols(df, "y", ["x"])

        assert excinfo.value.n_obs == 2
        assert excinfo.value.n_regressors == 1

    def test_constant_target_raises(self):
        df = pl.DataFrame({"y": [1.0] * 6, "x": [0.1, 0.4, 0.2, 0.9, 0.5, 0.3]})

        with pytest.raises(DegenerateFitError) as excinfo:
            fit_ols(df, "y", ["x"])

        assert excinfo.value.n_obs == 6


class TestFitIndicatorModels:
    """Test the four model variants for one indicator."""

    def test_four_variants(self):
        results = fit_indicator_models("ur", indicator_frame())

        assert [r.variant for r in results] == list(MODEL_VARIANTS)
        assert all(r.indicator == "ur" for r in results)
        assert all(r.ok for r in results)

    def test_lagged_relationship_is_recovered(self):
        results = {r.variant: r for r in fit_indicator_models("ur", indicator_frame())}

        plain = results["cpi_plain"].adj_r_squared
        ar = results["cpi_ar"].adj_r_squared

        assert plain >= 0.95
        assert ar >= plain - 0.01
        assert results["cpi_plain"].n_obs == 36
        assert results["cpi_ar"].n_obs == 36

    def test_unrelated_target_fits_poorly(self):
        results = {r.variant: r for r in fit_indicator_models("ur", indicator_frame())}
        assert results["pce_plain"].adj_r_squared < 0.5

    def test_insufficient_rows_reported_per_variant(self):
        results = fit_indicator_models("qr", indicator_frame(n=6))

        assert len(results) == 4
        for r in results:
            assert not r.ok
            assert r.adj_r_squared is None
            assert r.n_obs == 2
            assert "Insufficient observations" in r.error

    def test_constant_target_keeps_row_count(self):
        frame = indicator_frame().with_columns(pl.lit(1.5).alias("core_pce"))
        results = {r.variant: r for r in fit_indicator_models("ur", frame)}

        for name in ("pce_plain", "pce_ar"):
            assert not results[name].ok
            assert results[name].n_obs == 36
            assert "Non-finite R-squared" in results[name].error
        assert results["cpi_plain"].ok

    def test_ar_variant_needs_more_rows_than_plain(self):
        # 7 rows, lag 4 -> 3 complete rows: enough for p=1, not for p=2
        results = {r.variant: r for r in fit_indicator_models("qr", indicator_frame(n=7, noise=0.3))}

        assert results["cpi_plain"].ok
        assert not results["cpi_ar"].ok


class TestRunRegressions:
    """Test regressions across all tightness indicators."""

    def _zscores(self, n: int = 60) -> pl.DataFrame:
        rng = np.random.default_rng(5)
        data = {"date": quarterly_dates(n, start_year=2001)}
        for name in INDICATOR_COLUMNS:
            data[name] = rng.normal(size=n)
        return pl.DataFrame(data)

    def test_group_by_indicator(self):
        groups = group_by_indicator(self._zscores())

        assert list(groups) == TIGHTNESS_INDICATORS
        for frame in groups.values():
            assert frame.columns == ["date", "indicator", "core_cpi", "core_pce"]
            assert frame.height == 60
            assert frame["date"].is_sorted()

    def test_group_preserves_values(self):
        zscores = self._zscores()
        groups = group_by_indicator(zscores)

        assert groups["upjo"]["indicator"].to_list() == zscores["upjo"].to_list()

    def test_sixteen_results(self):
        results = run_regressions(self._zscores(), date(2019, 12, 31))

        assert len(results) == 16
        assert {(r.indicator, r.variant) for r in results} == {
            (i, v) for i in TIGHTNESS_INDICATORS for v in MODEL_VARIANTS
        }

    def test_estimation_cutoff(self):
        # 60 quarters from 2001Q1 end at 2015Q4; cut at 2009Q4 keeps 36 rows, 32 complete after the lag
        results = run_regressions(self._zscores(), date(2009, 12, 31))

        assert all(r.n_obs == 32 for r in results)

    def test_results_to_frame(self):
        frame = results_to_frame(run_regressions(self._zscores(), date(2019, 12, 31)))

        assert frame.height == 16
        assert frame.columns == ["indicator", "model_variant", "adj_r_squared", "r_squared", "n_obs", "error"]
        assert frame["error"].null_count() == 16
        assert all(math.isfinite(v) and v <= 1 for v in frame["adj_r_squared"].to_list())

"""
Pipeline error types.

- FetchError: the data provider could not deliver a series (fatal)
- DegenerateBaselineError: an indicator has no spread in the baseline window
- InsufficientObservationsError: a regression has too few complete rows
- DegenerateFitError: a regression produced a non-finite R-squared
"""

from __future__ import annotations


class FetchError(RuntimeError):
    """Raised when a series cannot be retrieved from FRED."""

    def __init__(self, series_id: str, message: str):
        self.series_id = series_id
        super().__init__(f"Failed to fetch {series_id}: {message}")


class DegenerateBaselineError(ValueError):
    """Raised when a baseline standard deviation is zero or undefined."""

    def __init__(self, indicators: dict[str, str]):
        self.indicators = indicators
        details = ", ".join(f"{name} ({reason})" for name, reason in indicators.items())
        super().__init__(f"Degenerate baseline for: {details}")


class InsufficientObservationsError(ValueError):
    """Raised when an OLS fit has fewer than p + 2 complete observations."""

    def __init__(self, n_obs: int, n_regressors: int):
        self.n_obs = n_obs
        self.n_regressors = n_regressors
        super().__init__(
            f"Insufficient observations: {n_obs} complete rows for "
            f"{n_regressors} regressor(s), need at least {n_regressors + 2}"
        )


class DegenerateFitError(ValueError):
    """Raised when an OLS fit yields a non-finite R-squared."""

    def __init__(self, target: str, n_obs: int):
        self.target = target
        self.n_obs = n_obs
        super().__init__(
            f"Non-finite R-squared for {target} over {n_obs} rows (no variation in target?)"
        )

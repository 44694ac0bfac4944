"""
Data fetching module for the labor-market tightness replication.

Uses the FRED API to fetch the eight series behind the tightness indicators:
- Unemployment rate and prime-age employment-to-population ratio
- Unemployed persons, job openings and quits (JOLTS)
- Total nonfarm payrolls
- Core CPI and core PCE inflation (4-period percent change)

Series arrive in long form (one row per series/date) and are pivoted into a
wide table keyed by date.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable, Optional

import polars as pl
import requests

from .core.errors import FetchError


FRED_API_URL = "https://api.stlouisfed.org/fred/series/observations"

# FRED marks missing observations with a single dot
FRED_MISSING = "."

OBSERVATION_SCHEMA = {
    "series_id": pl.String,
    "date": pl.Date,
    "value": pl.Float64,
}


@dataclass(frozen=True)
class SeriesMetadata:
    """Metadata for a FRED series."""

    series_id: str
    description: str
    units: str  # FRED unit transform: "lin" (level) or "pc1" (% change over 4 periods)
    frequency: str
    category: str


@dataclass(frozen=True)
class SeriesRequest:
    """A single series query: id, frequency and unit transform."""

    series_id: str
    frequency: str = "q"
    units: str = "lin"


TIGHTNESS_SERIES = {
    "UNRATE": SeriesMetadata(
        series_id="UNRATE",
        description="Unemployment Rate",
        units="lin",
        frequency="q",
        category="labor",
    ),
    # Prime-age (25-54) employment-population ratio
    "LNS12300060": SeriesMetadata(
        series_id="LNS12300060",
        description="Employment-Population Ratio - 25-54 Yrs.",
        units="lin",
        frequency="q",
        category="labor",
    ),
    "UNEMPLOY": SeriesMetadata(
        series_id="UNEMPLOY",
        description="Unemployment Level",
        units="lin",
        frequency="q",
        category="labor",
    ),
    "JTSJOL": SeriesMetadata(
        series_id="JTSJOL",
        description="Job Openings: Total Nonfarm",
        units="lin",
        frequency="q",
        category="jolts",
    ),
    "JTSQUL": SeriesMetadata(
        series_id="JTSQUL",
        description="Quits: Total Nonfarm",
        units="lin",
        frequency="q",
        category="jolts",
    ),
    "PAYEMS": SeriesMetadata(
        series_id="PAYEMS",
        description="All Employees, Total Nonfarm",
        units="lin",
        frequency="q",
        category="labor",
    ),
    "CPILFESL": SeriesMetadata(
        series_id="CPILFESL",
        description="CPI: All Items Less Food and Energy",
        units="pc1",
        frequency="q",
        category="inflation",
    ),
    "PCEPILFE": SeriesMetadata(
        series_id="PCEPILFE",
        description="PCE Excluding Food and Energy (Chain-Type Price Index)",
        units="pc1",
        frequency="q",
        category="inflation",
    ),
}


def default_requests(frequency: str = "q") -> list[SeriesRequest]:
    """Build the request list for every catalogued series."""
    return [
        SeriesRequest(series_id=meta.series_id, frequency=frequency, units=meta.units)
        for meta in TIGHTNESS_SERIES.values()
    ]


def empty_observations() -> pl.DataFrame:
    """An empty long-form observation table."""
    return pl.DataFrame(schema=OBSERVATION_SCHEMA)


class FREDDataFetcher:
    """
    Fetch data from FRED (Federal Reserve Economic Data).

    Uses the JSON observations endpoint, which requires an API key. The
    provider applies the frequency aggregation and unit transform, so
    inflation arrives already expressed as 4-period percent change.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 30,
        aggregation_method: str = "avg",
    ):
        """
        Initialize the FRED data fetcher.

        Args:
            api_key: FRED API key. Falls back to the FRED_API_KEY environment variable.
            timeout: Request timeout in seconds
            aggregation_method: How FRED aggregates to lower frequencies ("avg", "sum", "eop")
        """
        self.api_key = api_key or os.environ.get("FRED_API_KEY")
        self.timeout = timeout
        self.aggregation_method = aggregation_method
        self._cache: dict[SeriesRequest, pl.DataFrame] = {}

    def fetch_series(self, request: SeriesRequest) -> pl.DataFrame:
        """
        Fetch a single series from FRED.

        Args:
            request: Series id, frequency and unit transform

        Returns:
            Polars DataFrame with columns [series_id, date, value]

        Raises:
            FetchError: On missing API key, HTTP/transport failure or a malformed payload
        """
        if request in self._cache:
            return self._cache[request]

        if not self.api_key:
            raise FetchError(request.series_id, "FRED API key not configured (set FRED_API_KEY)")

        params = {
            "series_id": request.series_id,
            "api_key": self.api_key,
            "file_type": "json",
            "frequency": request.frequency,
            "units": request.units,
            "aggregation_method": self.aggregation_method,
        }

        try:
            response = requests.get(FRED_API_URL, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise FetchError(request.series_id, str(e)) from e

        if response.status_code != 200:
            raise FetchError(request.series_id, _error_message(response))

        try:
            payload = response.json()
            observations = payload["observations"]
            df = _parse_observations(request.series_id, observations)
        except (ValueError, KeyError, TypeError, pl.exceptions.PolarsError) as e:
            raise FetchError(request.series_id, f"malformed response: {e}") from e

        if df.height == 0:
            raise FetchError(request.series_id, "no observations returned")

        self._cache[request] = df
        return df

    def fetch_many(self, series_requests: Iterable[SeriesRequest]) -> pl.DataFrame:
        """
        Fetch several series and stack them in long form.

        Args:
            series_requests: Series requests

        Returns:
            Polars DataFrame with columns [series_id, date, value]
        """
        frames = [self.fetch_series(request) for request in series_requests]
        if not frames:
            return empty_observations()
        return pl.concat(frames, how="vertical")


def _error_message(response: requests.Response) -> str:
    """Extract FRED's error text from a failed response."""
    try:
        message = response.json().get("error_message")
    except (ValueError, AttributeError):
        message = None
    return f"HTTP {response.status_code}: {message or response.text[:200]}"


def _parse_observations(series_id: str, observations: list[dict]) -> pl.DataFrame:
    """Convert FRED observation records into the long observation schema."""
    df = pl.DataFrame(
        {
            "date": [obs["date"] for obs in observations],
            "value": [obs["value"] for obs in observations],
        },
        schema={"date": pl.String, "value": pl.String},
    )

    return df.with_columns(
        pl.lit(series_id).alias("series_id"),
        pl.col("date").str.to_date("%Y-%m-%d"),
        pl.when(pl.col("value") == FRED_MISSING)
        .then(None)
        .otherwise(pl.col("value"))
        .cast(pl.Float64)
        .alias("value"),
    ).select(list(OBSERVATION_SCHEMA))


def to_wide(observations: pl.DataFrame) -> pl.DataFrame:
    """
    Pivot long observations into one row per date and one column per series.

    Series/date combinations absent from the input become null. No
    interpolation or forward-fill is performed.

    Args:
        observations: DataFrame with columns [series_id, date, value]

    Returns:
        DataFrame with a unique, ascending date column and one Float64 column per series

    Raises:
        ValueError: If a (series_id, date) pair occurs more than once
    """
    if observations.height == 0:
        return pl.DataFrame(schema={"date": pl.Date})

    duplicated = observations.select(["series_id", "date"]).is_duplicated()
    if duplicated.any():
        dupes = observations.filter(duplicated).select("series_id").unique().to_series().to_list()
        raise ValueError(f"Duplicate observations for series: {sorted(dupes)}")

    wide = observations.pivot(on="series_id", index="date", values="value")
    series_cols = [c for c in wide.columns if c != "date"]

    return wide.with_columns(
        [pl.col(c).cast(pl.Float64) for c in series_cols]
    ).sort("date")

"""Shared fixtures: a synthetic quarterly FRED panel."""

from __future__ import annotations

from datetime import date

import numpy as np
import polars as pl
import pytest

from labor_tightness.core.config import PipelineConfig


def quarterly_dates(n: int, start_year: int = 2005) -> list[date]:
    return [date(start_year + i // 4, 1 + 3 * (i % 4), 1) for i in range(n)]


def make_panel(n: int = 40, seed: int = 7, start_year: int = 2005) -> dict[str, np.ndarray]:
    """Plausible-looking values for the eight FRED series."""
    rng = np.random.default_rng(seed)
    t = np.arange(n)

    unrate = 5.5 + 1.5 * np.sin(t / 6) + rng.normal(0, 0.1, n)
    slack = unrate - unrate.mean()

    return {
        "UNRATE": unrate,
        "LNS12300060": 79.0 - 0.8 * slack + rng.normal(0, 0.2, n),
        "UNEMPLOY": unrate * 1_600_000 + rng.normal(0, 50_000, n),
        "JTSJOL": 5_000_000 - 600_000 * slack + rng.normal(0, 100_000, n),
        "JTSQUL": 2_500_000 - 200_000 * slack + rng.normal(0, 50_000, n),
        "PAYEMS": 135_000_000 + 300_000 * t + rng.normal(0, 200_000, n),
        "CPILFESL": 2.0 - 0.3 * np.roll(slack, 4) + rng.normal(0, 0.15, n),
        "PCEPILFE": 1.7 - 0.25 * np.roll(slack, 4) + rng.normal(0, 0.15, n),
    }


def panel_to_long(panel: dict[str, np.ndarray], dates: list[date]) -> pl.DataFrame:
    frames = [
        pl.DataFrame(
            {
                "series_id": [series_id] * len(dates),
                "date": dates,
                "value": values.astype(float),
            },
            schema={"series_id": pl.String, "date": pl.Date, "value": pl.Float64},
        )
        for series_id, values in panel.items()
    ]
    return pl.concat(frames)


@pytest.fixture
def synthetic_observations() -> pl.DataFrame:
    """40 quarters x 8 series in long form."""
    return panel_to_long(make_panel(40), quarterly_dates(40))


@pytest.fixture
def config() -> PipelineConfig:
    return PipelineConfig(api_key="test-key", use_cache=False)


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, payload=None, status_code: int = 200, text: str = ""):
        self._payload = payload
        self.status_code = status_code
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


def fred_payload(observations: list[tuple[str, str]]) -> dict:
    return {
        "observations": [
            {
                "realtime_start": "2024-01-01",
                "realtime_end": "2024-01-01",
                "date": d,
                "value": v,
            }
            for d, v in observations
        ]
    }

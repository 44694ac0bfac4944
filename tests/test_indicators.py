"""
Tests for indicator derivation.

Run with: pytest tests/test_indicators.py -v
"""

from __future__ import annotations

from datetime import date

import polars as pl
import pytest

from labor_tightness.core.config import PipelineConfig
from labor_tightness.indicators import (
    INDICATOR_COLUMNS,
    build_indicator_table,
    derive_indicators,
    restrict_window,
)


def wide_row(d: date, **overrides) -> dict:
    row = {
        "date": d,
        "UNRATE": 5.0,
        "LNS12300060": 80.0,
        "UNEMPLOY": 8_000_000.0,
        "JTSJOL": 10_000_000.0,
        "JTSQUL": 2_000_000.0,
        "PAYEMS": 150_000_000.0,
        "CPILFESL": 3.0,
        "PCEPILFE": 2.5,
    }
    row.update(overrides)
    return row


class TestDeriveIndicators:
    """Test the indicator formulas."""

    def test_reference_row(self):
        wide = pl.DataFrame([wide_row(date(2010, 1, 1))])

        row = derive_indicators(wide).row(0, named=True)

        assert row["ur"] == pytest.approx(5.0)
        assert row["panr"] == pytest.approx(20.0)
        assert row["upjo"] == pytest.approx(0.8)
        assert round(row["qr"], 2) == 98.67
        assert row["core_cpi"] == pytest.approx(3.0)
        assert row["core_pce"] == pytest.approx(2.5)

    def test_output_columns(self):
        wide = pl.DataFrame([wide_row(date(2010, 1, 1))])
        assert derive_indicators(wide).columns == ["date", *INDICATOR_COLUMNS]

    def test_deterministic(self):
        wide = pl.DataFrame([wide_row(date(2010, 1, 1)), wide_row(date(2010, 4, 1), UNRATE=6.1)])
        assert derive_indicators(wide).equals(derive_indicators(wide))

    def test_missing_input_propagates_null(self):
        wide = pl.DataFrame(
            [wide_row(date(2010, 1, 1), JTSJOL=None), wide_row(date(2010, 4, 1))],
            schema_overrides={"JTSJOL": pl.Float64},
        )

        result = derive_indicators(wide)

        assert result.height == 2
        assert result["upjo"].to_list()[0] is None
        assert result["ur"].to_list()[0] == pytest.approx(5.0)

    def test_missing_series_column_raises(self):
        wide = pl.DataFrame([wide_row(date(2010, 1, 1))]).drop("JTSQUL")

        with pytest.raises(ValueError, match="JTSQUL"):
            derive_indicators(wide)

    def test_rows_sorted_by_date(self):
        wide = pl.DataFrame([wide_row(date(2010, 4, 1)), wide_row(date(2010, 1, 1))])
        assert derive_indicators(wide)["date"].is_sorted()


class TestSampleWindow:
    """Test the inclusive date window."""

    def _wide(self) -> pl.DataFrame:
        dates = [
            date(2000, 10, 1),
            date(2001, 1, 1),
            date(2010, 7, 1),
            date(2021, 7, 1),
            date(2021, 7, 31),
            date(2021, 10, 1),
        ]
        return pl.DataFrame([wide_row(d) for d in dates])

    def test_window_is_inclusive(self):
        result = build_indicator_table(self._wide(), PipelineConfig(api_key="x"))

        assert result["date"].to_list() == [
            date(2001, 1, 1),
            date(2010, 7, 1),
            date(2021, 7, 1),
            date(2021, 7, 31),
        ]

    def test_restrict_window_does_not_mutate_input(self):
        indicators = derive_indicators(self._wide())
        before = indicators.height

        restrict_window(indicators, date(2005, 1, 1), date(2006, 1, 1))

        assert indicators.height == before

"""
Labor-market tightness indicators.

Derives six indicators from the wide FRED table:

    ur        = UNRATE
    panr      = 100 - prime-age employment-to-population ratio
    upjo      = unemployed persons / job openings
    qr        = 100 - 100 * quits / nonfarm payrolls
    core_cpi  = core CPI, 4-period % change
    core_pce  = core PCE, 4-period % change

The first four are oriented so that higher values mean more slack.
"""

from __future__ import annotations

from datetime import date

import polars as pl

from .core.config import PipelineConfig


TIGHTNESS_INDICATORS = ["ur", "panr", "upjo", "qr"]
INFLATION_TARGETS = ["core_cpi", "core_pce"]
INDICATOR_COLUMNS = TIGHTNESS_INDICATORS + INFLATION_TARGETS

INDICATOR_FORMULAS: dict[str, pl.Expr] = {
    "ur": pl.col("UNRATE"),
    "panr": 100 - pl.col("LNS12300060"),
    "upjo": pl.col("UNEMPLOY") / pl.col("JTSJOL"),
    "qr": 100 - 100 * (pl.col("JTSQUL") / pl.col("PAYEMS")),
    "core_cpi": pl.col("CPILFESL"),
    "core_pce": pl.col("PCEPILFE"),
}

REQUIRED_SERIES = [
    "UNRATE", "LNS12300060", "UNEMPLOY", "JTSJOL",
    "JTSQUL", "PAYEMS", "CPILFESL", "PCEPILFE",
]


def derive_indicators(wide: pl.DataFrame) -> pl.DataFrame:
    """
    Compute the six indicators for every row of the wide table.

    Rows with a missing input series get a null indicator; no row is dropped.

    Args:
        wide: DataFrame with a date column and one column per FRED series

    Returns:
        DataFrame with columns [date, ur, panr, upjo, qr, core_cpi, core_pce]

    Raises:
        ValueError: If required series columns are absent
    """
    missing = [s for s in REQUIRED_SERIES if s not in wide.columns]
    if missing:
        raise ValueError(f"Missing series in wide table: {missing}")

    return wide.sort("date").select(
        pl.col("date"),
        *[expr.cast(pl.Float64).alias(name) for name, expr in INDICATOR_FORMULAS.items()],
    )


def restrict_window(df: pl.DataFrame, start: date, end: date) -> pl.DataFrame:
    """Keep rows with start <= date <= end."""
    return df.filter(pl.col("date").is_between(start, end, closed="both"))


def build_indicator_table(
    wide: pl.DataFrame,
    config: PipelineConfig,
) -> pl.DataFrame:
    """Derive indicators and restrict them to the configured sample window."""
    return restrict_window(
        derive_indicators(wide),
        config.sample_start,
        config.sample_end,
    )

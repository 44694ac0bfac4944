"""
Common Utilities

Shared utility functions for:
- Formatting
- Data validation
"""

from __future__ import annotations

import math
from typing import Optional, Union

import polars as pl


# =============================================================================
# Formatting Utilities
# =============================================================================

def format_float(value: Optional[float], decimals: int = 3) -> str:
    """Format a float, showing n/a for missing or non-finite values."""
    if value is None or not math.isfinite(value):
        return "n/a"
    return f"{value:.{decimals}f}"


def format_delta(value: Optional[float], decimals: int = 3) -> str:
    """Format a change value with +/- sign."""
    if value is None or not math.isfinite(value):
        return "n/a"
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.{decimals}f}"


# =============================================================================
# Data Validation Utilities
# =============================================================================

def check_data_coverage(
    df: pl.DataFrame,
    required_cols: list[str],
    min_rows: int = 10,
    max_null_rate: float = 0.5,
) -> dict[str, Union[bool, list[str], int]]:
    """
    Check data coverage and completeness.

    Returns:
        Dictionary with coverage stats and issues
    """
    result = {
        "valid": True,
        "issues": [],
        "row_count": df.height,
        "column_count": len(df.columns),
    }

    if df.height < min_rows:
        result["valid"] = False
        result["issues"].append(f"Insufficient rows: {df.height} < {min_rows}")

    missing_cols = [c for c in required_cols if c not in df.columns]
    if missing_cols:
        result["valid"] = False
        result["issues"].append(f"Missing columns: {missing_cols}")

    for col in required_cols:
        if col in df.columns and df.height > 0:
            null_rate = df.select(pl.col(col).is_null().mean()).item()
            if null_rate and null_rate > max_null_rate:
                result["issues"].append(f"High null rate for {col}: {null_rate:.1%}")

    return result

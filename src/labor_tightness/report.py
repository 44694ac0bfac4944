"""
Report outputs using Vega-Altair and plain-text tables.

Charts the standardized indicators and tabulates adjusted R-squared by
indicator and model variant.
"""

from __future__ import annotations

from pathlib import Path

import altair as alt
import polars as pl

from .core.utils import format_delta, format_float
from .indicators import INDICATOR_COLUMNS
from .pipeline import PipelineResult
from .regression import MODEL_VARIANTS


alt.data_transformers.disable_max_rows()

INDICATOR_LABELS = {
    "ur": "Unemployment rate",
    "panr": "Prime-age non-employment",
    "upjo": "Unemployed per opening",
    "qr": "Non-quits rate",
    "core_cpi": "Core CPI inflation",
    "core_pce": "Core PCE inflation",
}


def summary_table(regressions: pl.DataFrame) -> pl.DataFrame:
    """
    Pivot adjusted R-squared to one row per indicator, one column per variant.

    Args:
        regressions: Output of results_to_frame()
    """
    table = regressions.pivot(
        on="model_variant",
        index="indicator",
        values="adj_r_squared",
    )
    variants = [v for v in MODEL_VARIANTS if v in table.columns]
    return table.select(["indicator", *variants])


def format_summary(regressions: pl.DataFrame, decimals: int = 3) -> str:
    """
    Render the summary table as aligned text.

    Adds the change in adjusted R-squared from the autoregressive term and
    lists fits that failed below the table.
    """
    table = summary_table(regressions)
    headers = ["indicator", *[c for c in table.columns if c != "indicator"], "ar_gain_cpi", "ar_gain_pce"]

    rows = []
    for row in table.iter_rows(named=True):
        cells = [row["indicator"]]
        cells += [format_float(row[c], decimals) for c in table.columns if c != "indicator"]
        for prefix in ("cpi", "pce"):
            plain, ar = row.get(f"{prefix}_plain"), row.get(f"{prefix}_ar")
            gain = ar - plain if plain is not None and ar is not None else None
            cells.append(format_delta(gain, decimals))
        rows.append(cells)

    widths = [max(len(str(x)) for x in col) for col in zip(headers, *rows)]
    lines = [
        "  ".join(h.ljust(w) for h, w in zip(headers, widths)),
        "  ".join("-" * w for w in widths),
    ]
    lines += ["  ".join(c.ljust(w) for c, w in zip(cells, widths)) for cells in rows]

    failed = regressions.filter(pl.col("error").is_not_null())
    if failed.height > 0:
        lines.append("")
        lines.append("Not fitted:")
        for r in failed.iter_rows(named=True):
            lines.append(f"  {r['indicator']}/{r['model_variant']}: {r['error']}")

    return "\n".join(lines)


def chart_zscores(
    zscores: pl.DataFrame,
    date_col: str = "date",
    title: str = "Labor-Market Tightness Indicators (z-scores vs. baseline)",
) -> alt.LayerChart:
    """
    Create a time series chart of the standardized indicators.

    Args:
        zscores: Standardized indicator table
        date_col: Name of date column
        title: Chart title

    Returns:
        Altair LayerChart (indicator lines over a zero rule)
    """
    cols = [c for c in INDICATOR_COLUMNS if c in zscores.columns]
    if not cols:
        raise ValueError("No indicator columns found")

    df_long = zscores.select([date_col] + cols).unpivot(
        index=date_col,
        variable_name="series",
        value_name="zscore",
    ).with_columns(
        pl.col("series").replace(INDICATOR_LABELS)
    )

    lines = alt.Chart(df_long.to_pandas()).mark_line(strokeWidth=2).encode(
        x=alt.X(f"{date_col}:T", title="Date"),
        y=alt.Y("zscore:Q", title="Standard deviations from baseline"),
        color=alt.Color("series:N", title="Indicator", legend=alt.Legend(orient="bottom")),
        tooltip=[
            alt.Tooltip(f"{date_col}:T", title="Date", format="%Y-%m"),
            alt.Tooltip("series:N", title="Indicator"),
            alt.Tooltip("zscore:Q", title="z-score", format=".2f"),
        ],
    )

    zero = alt.Chart(pl.DataFrame({"y": [0.0]}).to_pandas()).mark_rule(
        strokeDash=[4, 4], color="gray"
    ).encode(y="y:Q")

    return (lines + zero).properties(width=700, height=400, title=title)


def save_report(result: PipelineResult, output_dir: str | Path) -> dict[str, Path]:
    """
    Write tables, the text summary and the chart to output_dir.

    Returns:
        Mapping of artifact name to written path
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    regressions = result.regression_table()
    paths = {
        "zscores": output_dir / "zscores.csv",
        "baseline": output_dir / "baseline.csv",
        "regressions": output_dir / "regressions.csv",
        "summary": output_dir / "summary.txt",
        "chart": output_dir / "zscores.html",
    }

    result.zscores.write_csv(paths["zscores"])
    result.baseline.to_frame().write_csv(paths["baseline"])
    regressions.write_csv(paths["regressions"])
    paths["summary"].write_text(format_summary(regressions) + "\n")
    chart_zscores(result.zscores).save(str(paths["chart"]))

    return paths

"""
Inspection and plotting of persisted duration history.

This module reads the ``.eps`` history files written by the file persistence
manager into a Polars DataFrame, summarises them per work category and method,
and renders interactive Plotly charts of elapsed time over time.

The main functionalities include:
- Loading one category or every ``.eps`` file of a data directory.
- Summarising count, mean and maximum elapsed time and error counts.
- Writing one HTML chart per category, one trace per method.
"""

import logging
from pathlib import Path
from typing import List, Optional

# Third-party library imports
import polars as pl
import plotly.graph_objects as go

from .persistence.codec import LINE_DELIMITER, parse_record
from .persistence.file_handle import DATA_FILE_EXTENSION, data_file_name
from .validation import HistoryLoadError

logger = logging.getLogger(__name__)

HISTORY_SCHEMA = {
    "category": pl.Utf8,
    "thread_id": pl.Utf8,
    "method_name": pl.Utf8,
    "start_ms": pl.Int64,
    "end_ms": pl.Int64,
    "elapsed_ms": pl.Int64,
    "root": pl.Boolean,
    "errored": pl.Boolean,
}


def _read_history_file(path: Path) -> List[dict]:
    rows = []
    with open(path, "r", encoding="utf-8", newline=LINE_DELIMITER) as stream:
        for line_number, line in enumerate(stream, start=1):
            if not line.strip():
                continue
            record = parse_record(line, source=str(path), line_number=line_number)
            if record is None:
                continue
            rows.append({
                "category": record.category,
                "thread_id": record.thread_id,
                "method_name": record.method_name,
                "start_ms": record.start_ms,
                "end_ms": record.end_ms,
                "elapsed_ms": record.elapsed_ms,
                "root": record.root,
                "errored": record.errored,
            })
    return rows


def load_history_frame(data_dir: Path, category: Optional[str] = None) -> pl.DataFrame:
    """
    Load persisted durations into a DataFrame.

    Files that fail to parse are logged and skipped.

    Args:
        data_dir: Directory holding the ``.eps`` files
        category: Only load this category's file

    Returns:
        A DataFrame with the columns of HISTORY_SCHEMA, possibly empty
    """
    data_dir = Path(data_dir)
    if category is not None:
        files = [data_dir / data_file_name(category)]
    else:
        files = sorted(data_dir.glob(f"*{DATA_FILE_EXTENSION}"))

    rows: List[dict] = []
    for path in files:
        if not path.is_file():
            logger.warning(f"History file not found: {path}")
            continue
        try:
            rows.extend(_read_history_file(path))
        except HistoryLoadError as e:
            logger.error(f"Skipping unreadable history file {path}: {e}")

    logger.info(f"Loaded {len(rows)} durations from {len(files)} history file(s) in {data_dir}")
    return pl.DataFrame(rows, schema=HISTORY_SCHEMA)


def summarize_history(frame: pl.DataFrame) -> pl.DataFrame:
    """
    Per (category, method) statistics of successful executions plus error counts.

    Returns:
        Columns: category, method_name, count, mean_ms, max_ms, errors
    """
    successful = pl.col("elapsed_ms").filter(~pl.col("errored"))
    return (
        frame.group_by(["category", "method_name"])
        .agg(
            successful.count().alias("count"),
            successful.mean().alias("mean_ms"),
            successful.max().alias("max_ms"),
            pl.col("errored").sum().alias("errors"),
        )
        .sort(["category", "method_name"])
    )


def _save_plotly_figure(fig: go.Figure, base_filename: str, output_dir: Path) -> Optional[Path]:
    plot_filename_html = output_dir / f"{base_filename}.html"
    try:
        fig.write_html(plot_filename_html)
    except Exception as e:
        logger.error(
            f"Failed to save plot {plot_filename_html} using Plotly: {e}",
            exc_info=True,
        )
        return None
    logger.info(f"Interactive plot saved to: {plot_filename_html}")
    return plot_filename_html


def _generate_category_plot(category_df: pl.DataFrame, category: str,
                            output_dir: Path) -> Optional[Path]:
    plot_df = (
        category_df.filter(~pl.col("errored"))
        .with_columns(pl.from_epoch("start_ms", time_unit="ms").alias("Timestamp"))
        .sort("Timestamp")
    )
    if plot_df.is_empty():
        logger.warning(f"No successful durations for '{category}'. Skipping plot.")
        return None

    fig = go.Figure()
    for (method_name,), method_df in plot_df.group_by(["method_name"], maintain_order=True):
        fig.add_trace(
            go.Scatter(
                x=method_df["Timestamp"].to_list(),
                y=method_df["elapsed_ms"].to_list(),
                mode="lines+markers",
                name=method_name,
            )
        )

    fig.update_layout(
        title=f"Elapsed Time Over Time - {category}",
        legend_title_text="Method",
        xaxis_title="Start time",
        yaxis_title="Elapsed (ms)",
    )
    return _save_plotly_figure(fig, f"{category}_latency_plot", output_dir)


def plot_history(frame: pl.DataFrame, output_dir: Path) -> List[Path]:
    """
    Write one interactive HTML chart per category.

    Returns:
        Paths of the files written
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for category in sorted(frame["category"].unique().to_list()):
        path = _generate_category_plot(frame.filter(pl.col("category") == category), category, output_dir)
        if path is not None:
            written.append(path)
    return written

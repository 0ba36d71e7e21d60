from __future__ import annotations

from pathlib import Path
from typing import Mapping

import matplotlib.pyplot as plt
import pandas as pd

from ev_dashboard.viz.common import BAR_COLOR, EV_TYPE_COLORS, save_figure


def _labels(values: pd.Series) -> list[str]:
    return ["Unknown" if pd.isna(value) else str(value) for value in values]


def plot_ev_type_pie(ev_type_counts: pd.DataFrame, output_path: Path, title: str) -> Path:
    plt.figure(figsize=(6, 5))
    plt.pie(
        ev_type_counts["count"],
        labels=_labels(ev_type_counts["ev_type_label"]),
        colors=[EV_TYPE_COLORS.get(value, "#8d8d8d") for value in ev_type_counts["ev_type"]],
        autopct="%1.2f%%",
    )
    plt.title(title)
    return save_figure(output_path)


def plot_ranked_bars(
    frame: pd.DataFrame,
    label_column: str,
    value_column: str,
    output_path: Path,
    title: str,
    value_label: str = "Count",
) -> Path:
    plt.figure(figsize=(10, 5))
    plt.barh(_labels(frame[label_column]), frame[value_column], color=BAR_COLOR)
    plt.gca().invert_yaxis()
    plt.title(title)
    plt.xlabel(value_label)
    return save_figure(output_path)


def plot_stacked_bars(
    stack: pd.DataFrame,
    label_column: str,
    output_path: Path,
    title: str,
    colors: Mapping[str, str],
    legend_labels: Mapping[str, str] | None = None,
) -> Path:
    """Draw a long-form stack layout (``key``, label, ``baseline``, ``top``)."""
    legend_labels = legend_labels or {}
    plt.figure(figsize=(10, 5))
    for key, layer in stack.groupby("key", sort=False):
        plt.bar(
            _labels(layer[label_column]),
            layer["top"] - layer["baseline"],
            bottom=layer["baseline"],
            color=colors.get(str(key)),
            label=legend_labels.get(str(key), str(key)),
        )
    plt.xticks(rotation=45, ha="right")
    plt.title(title)
    plt.ylabel("Count")
    plt.legend()
    return save_figure(output_path)

from __future__ import annotations

import math
from typing import Iterable, Sequence

import pandas as pd

PERCENT_DECIMALS = 2


def mean_or_nan(values: pd.Series | Iterable[float]) -> float:
    """Arithmetic mean ignoring missing values; NaN for an empty group."""
    if not isinstance(values, pd.Series):
        values = pd.Series(list(values), dtype=float)
    series = pd.to_numeric(values, errors="coerce").astype(float).dropna()
    if series.empty:
        return math.nan
    return float(series.sum() / len(series))


def percentage(part: float, total: float, decimals: int = PERCENT_DECIMALS) -> float:
    if not total:
        return 0.0
    return round((float(part) / float(total)) * 100.0, decimals)


def percentage_columns(
    frame: pd.DataFrame,
    parts: Sequence[str],
    total_column: str,
    decimals: int = PERCENT_DECIMALS,
    suffix: str = "_pct",
) -> pd.DataFrame:
    working = frame.copy()
    totals = pd.to_numeric(working[total_column], errors="coerce").astype(float)
    nonzero = totals > 0
    for part in parts:
        counts = pd.to_numeric(working[part], errors="coerce").astype(float)
        share = ((counts / totals) * 100.0).where(nonzero, 0.0)
        working[f"{part}{suffix}"] = share.round(decimals).astype(float)
    return working


def stack_series(rows: pd.DataFrame, keys: Sequence[str], label: str) -> pd.DataFrame:
    """Cumulative ``[baseline, top]`` offsets per row for each stack key.

    Keys stack bottom-to-top in the given order. The result is long-form,
    ordered by key and then by row.
    """
    columns = ["key", label, "baseline", "top"]
    if len(set(keys)) != len(keys):
        raise ValueError("Stack keys must be unique")
    missing = [key for key in (label, *keys) if key not in rows.columns]
    if missing:
        raise ValueError(f"Cannot stack on missing columns: {', '.join(missing)}")
    if rows.empty or not keys:
        return pd.DataFrame(columns=columns)

    values = rows[list(keys)].apply(pd.to_numeric, errors="coerce").fillna(0.0).astype(float)
    tops = values.cumsum(axis=1)
    baselines = tops - values
    layers = [
        pd.DataFrame(
            {
                "key": key,
                label: rows[label].to_numpy(),
                "baseline": baselines[key].to_numpy(),
                "top": tops[key].to_numpy(),
            }
        )
        for key in keys
    ]
    return pd.concat(layers, ignore_index=True)[columns]

from __future__ import annotations

from pathlib import Path

import pandas as pd

from ev_dashboard.config import AppConfig
from ev_dashboard.io.schema import CANONICAL_ORDER, normalize_columns
from ev_dashboard.preprocess.vehicle import normalize_vehicle_values


def _validate_required_columns(df: pd.DataFrame) -> pd.DataFrame:
    for column in CANONICAL_ORDER:
        if column not in df.columns:
            raise ValueError(f"Normalized data missing column: {column}")
    return df


def _read_source(path: Path) -> pd.DataFrame:
    if path.suffix == ".parquet":
        return pd.read_parquet(path)
    # utf-8-sig strips BOM-prefixed headers commonly found in exported CSV files.
    return pd.read_csv(path, encoding="utf-8-sig", low_memory=False)


def load_records(data_path: Path | None, config: AppConfig) -> pd.DataFrame:
    """Load the vehicle population table and return canonical, typed columns."""
    if data_path is None:
        if not config.input.data_path:
            raise ValueError("A data path is required: pass --csv or set input.data_path")
        data_path = Path(config.input.data_path)

    df = _read_source(data_path)
    normalized = normalize_columns(df=df, columns=config.columns)
    return normalize_vehicle_values(_validate_required_columns(normalized))


def load_table(path: Path) -> pd.DataFrame:
    if path.suffix == ".parquet":
        return pd.read_parquet(path)
    if path.suffix == ".csv":
        return pd.read_csv(path)
    raise ValueError(f"Unsupported table file type: {path.suffix}")

from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from ev_dashboard.config import ColumnsConfig


@dataclass(frozen=True)
class CanonicalColumns:
    county: str = "county"
    city: str = "city"
    make: str = "make"
    model_year: str = "model_year"
    electric_vehicle_type: str = "electric_vehicle_type"
    electric_range: str = "electric_range"
    cafv_eligibility: str = "cafv_eligibility"


CANONICAL_ORDER = [
    CanonicalColumns.county,
    CanonicalColumns.city,
    CanonicalColumns.make,
    CanonicalColumns.model_year,
    CanonicalColumns.electric_vehicle_type,
    CanonicalColumns.electric_range,
    CanonicalColumns.cafv_eligibility,
]


def normalize_columns(df: pd.DataFrame, columns: ColumnsConfig) -> pd.DataFrame:
    """Rename source columns to the canonical names used by the aggregations."""
    rename_map = {
        columns.county: CanonicalColumns.county,
        columns.city: CanonicalColumns.city,
        columns.make: CanonicalColumns.make,
        columns.model_year: CanonicalColumns.model_year,
        columns.electric_vehicle_type: CanonicalColumns.electric_vehicle_type,
        columns.electric_range: CanonicalColumns.electric_range,
        columns.cafv_eligibility: CanonicalColumns.cafv_eligibility,
    }
    missing = [source for source in rename_map if source not in df.columns]
    if missing:
        missing_str = ", ".join(missing)
        raise ValueError(f"Missing required columns in CSV: {missing_str}")
    return df.rename(columns=rename_map)[CANONICAL_ORDER]

from __future__ import annotations

import pandas as pd

from ev_dashboard.records import (
    CAFV_SOURCE_VALUES,
    ELIGIBILITY_KEYS,
    EV_TYPE_KEYS,
    EV_TYPE_SOURCE_VALUES,
    UNKNOWN_VALUE,
)

EV_TYPE_MAP = {
    **{source.upper(): member.value for source, member in EV_TYPE_SOURCE_VALUES.items()},
    **{key.upper(): key for key in EV_TYPE_KEYS},
}

CAFV_MAP = {
    **{source.upper(): member.value for source, member in CAFV_SOURCE_VALUES.items()},
    **{key.upper(): key for key in ELIGIBILITY_KEYS},
}

TEXT_COLUMNS = ("county", "city", "make")


def _normalize_label(series: pd.Series, mapping: dict[str, str]) -> pd.Series:
    text = series.fillna("").astype(str).str.strip().str.upper()
    return text.map(mapping).fillna(UNKNOWN_VALUE)


def normalize_vehicle_values(df: pd.DataFrame) -> pd.DataFrame:
    """Coerce numerics and map enum text to canonical keys.

    Malformed numbers become missing values; unrecognised enum text becomes
    ``Unknown``. Both are reported by the quality table rather than dropped.
    """
    working = df.copy()
    for column in TEXT_COLUMNS:
        working[column] = working[column].astype("string").str.strip()
    model_year = pd.to_numeric(working["model_year"], errors="coerce")
    working["model_year"] = model_year.where(model_year == model_year.round()).astype("Int64")
    electric_range = pd.to_numeric(working["electric_range"], errors="coerce")
    working["electric_range"] = electric_range.where(electric_range >= 0).astype(float)
    working["electric_vehicle_type"] = _normalize_label(
        working["electric_vehicle_type"], EV_TYPE_MAP
    )
    working["cafv_eligibility"] = _normalize_label(working["cafv_eligibility"], CAFV_MAP)
    return working

from __future__ import annotations

from datetime import date
from typing import Any, Literal, Sequence

import pandas as pd

from ev_dashboard.features.binning import ELECTRIC_RANGE_BINS, RangeBin, bin_by_range
from ev_dashboard.features.grouping import count_by, count_by_category, group_by
from ev_dashboard.features.metrics import mean_or_nan, percentage, percentage_columns
from ev_dashboard.features.ranking import top_n
from ev_dashboard.records import (
    ELIGIBILITY_KEYS,
    EV_TYPE_LABELS,
    UNKNOWN_VALUE,
    UNRESEARCHED_RANGE_SENTINEL,
    CafvEligibility,
    ElectricVehicleType,
)

BEV = ElectricVehicleType.battery_electric.value
PHEV = ElectricVehicleType.plug_in_hybrid.value
UNRESEARCHED = CafvEligibility.eligibility_unknown.value

EV_TYPE_CATEGORIES = {"bev": BEV, "phev": PHEV}
ELIGIBILITY_CATEGORIES = {key: key for key in ELIGIBILITY_KEYS}
ELIGIBILITY_PCT_COLUMNS = [f"{key}_pct" for key in ELIGIBILITY_KEYS]

MakeSortKey = Literal["total_count", "avg_range"]

MAKE_SUMMARY_COLUMNS = [
    "make",
    "avg_range",
    "bev_count",
    "phev_count",
    "unresearched_count",
    "total_count",
    "bev_pct",
    "phev_pct",
    "unresearched_pct",
]


def _unresearched(df: pd.DataFrame) -> pd.DataFrame:
    return df.loc[df["cafv_eligibility"] == UNRESEARCHED]


def build_ev_type_counts(df: pd.DataFrame) -> pd.DataFrame:
    counts = count_by(df, "electric_vehicle_type", label="ev_type")
    total = int(counts["count"].sum()) if not counts.empty else 0
    counts["ev_type_label"] = [EV_TYPE_LABELS.get(value, value) for value in counts["ev_type"]]
    counts["percentage"] = [percentage(count, total) for count in counts["count"]]
    return counts[["ev_type", "ev_type_label", "count", "percentage"]]


def build_county_counts(df: pd.DataFrame) -> pd.DataFrame:
    return top_n(count_by(df, "county", label="county"), "count", direction="desc")


def build_top_counties(df: pd.DataFrame, top_n_counties: int = 5) -> pd.DataFrame:
    return top_n(count_by(df, "county", label="county"), "count", n=top_n_counties)


def build_city_type_counts(df: pd.DataFrame, top_n_cities: int = 10) -> pd.DataFrame:
    grouped = count_by_category(
        df,
        "city",
        label="city",
        category_column="electric_vehicle_type",
        categories=EV_TYPE_CATEGORIES,
    )
    grouped["total"] = grouped["bev"] + grouped["phev"]
    return top_n(grouped, "total", n=top_n_cities)


def _make_profile(members: pd.DataFrame) -> dict[str, Any]:
    ev_type = members["electric_vehicle_type"]
    return {
        "avg_range": mean_or_nan(members["electric_range"]),
        "bev_count": int((ev_type == BEV).sum()),
        "phev_count": int((ev_type == PHEV).sum()),
        "unresearched_count": int((members["cafv_eligibility"] == UNRESEARCHED).sum()),
        "total_count": int(len(members)),
    }


def build_make_range_summary(
    df: pd.DataFrame,
    sort_by: MakeSortKey = "total_count",
    min_total: int = 1000,
    top_n_makes: int = 15,
) -> pd.DataFrame:
    """Average electric range per make, for makes above a volume floor.

    The ``total_count > min_total`` floor is applied before ranking so that
    it decides which makes compete for the top slots.
    """
    if sort_by not in ("total_count", "avg_range"):
        raise ValueError(f"Unsupported make sort key: {sort_by}")
    profiles = group_by(df, "make", _make_profile)
    rows = pd.DataFrame(
        [{"make": make, **profile} for make, profile in profiles.items()],
        columns=MAKE_SUMMARY_COLUMNS[:6],
    )
    ranked = top_n(
        rows,
        sort_by,
        n=top_n_makes,
        direction="desc",
        where=lambda frame: frame["total_count"] > min_total,
    )
    ranked = percentage_columns(
        ranked,
        parts=["bev_count", "phev_count", "unresearched_count"],
        total_column="total_count",
    ).rename(
        columns={
            "bev_count_pct": "bev_pct",
            "phev_count_pct": "phev_pct",
            "unresearched_count_pct": "unresearched_pct",
        }
    )
    return ranked[MAKE_SUMMARY_COLUMNS]


def build_eligibility_by_range(
    df: pd.DataFrame,
    bins: Sequence[RangeBin] = ELECTRIC_RANGE_BINS,
) -> pd.DataFrame:
    return percentage_columns(bin_by_range(df, bins), ELIGIBILITY_KEYS, "total")


def build_eligibility_by_model_year(df: pd.DataFrame) -> pd.DataFrame:
    grouped = count_by_category(
        df,
        "model_year",
        label="model_year",
        category_column="cafv_eligibility",
        categories=ELIGIBILITY_CATEGORIES,
    )
    grouped["total"] = grouped[ELIGIBILITY_KEYS].sum(axis=1).astype(int)
    ordered = top_n(grouped, "model_year", direction="asc")
    return percentage_columns(ordered, ELIGIBILITY_KEYS, "total")


def _unresearched_make_profile(members: pd.DataFrame) -> dict[str, int]:
    ev_type = members["electric_vehicle_type"]
    return {
        "total": int(len(members)),
        "bev": int((ev_type == BEV).sum()),
        "phev": int((ev_type == PHEV).sum()),
    }


def build_top_unresearched_makes(df: pd.DataFrame, top_n_makes: int = 10) -> pd.DataFrame:
    profiles = group_by(_unresearched(df), "make", _unresearched_make_profile)
    rows = pd.DataFrame(
        [{"make": make, **profile} for make, profile in profiles.items()],
        columns=["make", "total", "bev", "phev"],
    )
    return top_n(rows, "total", n=top_n_makes)


def build_unresearched_by_model_year(
    df: pd.DataFrame,
    reference_year: int | None = None,
    window_years: int = 15,
) -> pd.DataFrame:
    """Unresearched BEV/PHEV counts for the most recent model years.

    Covers ``reference_year - window_years`` through ``reference_year``
    inclusive; ``reference_year`` defaults to the current calendar year.
    """
    year = date.today().year if reference_year is None else int(reference_year)
    unresearched = _unresearched(df)
    in_window = unresearched["model_year"].between(year - window_years, year)
    grouped = count_by_category(
        unresearched.loc[in_window.fillna(False).astype(bool)],
        "model_year",
        label="model_year",
        category_column="electric_vehicle_type",
        categories=EV_TYPE_CATEGORIES,
    )
    grouped["total"] = grouped["bev"] + grouped["phev"]
    return top_n(grouped, "model_year", direction="asc")


def _missing_text(series: pd.Series) -> int:
    return int((series.fillna("").astype(str).str.strip() == "").sum())


def build_basic_quality(df: pd.DataFrame) -> pd.DataFrame:
    zero_range = (df["electric_range"] == UNRESEARCHED_RANGE_SENTINEL).fillna(False)
    unresearched = df["cafv_eligibility"] == UNRESEARCHED
    metrics = [
        ("rows_total", int(len(df))),
        ("missing_county", _missing_text(df["county"])),
        ("missing_city", _missing_text(df["city"])),
        ("missing_make", _missing_text(df["make"])),
        ("invalid_model_year", int(df["model_year"].isna().sum())),
        ("invalid_electric_range", int(df["electric_range"].isna().sum())),
        ("unknown_ev_type", int((df["electric_vehicle_type"] == UNKNOWN_VALUE).sum())),
        ("unknown_eligibility", int((df["cafv_eligibility"] == UNKNOWN_VALUE).sum())),
        ("zero_range_rows", int(zero_range.sum())),
        ("sentinel_mismatch_rows", int((zero_range.astype(bool) != unresearched).sum())),
    ]
    return pd.DataFrame(metrics, columns=["metric", "value"])

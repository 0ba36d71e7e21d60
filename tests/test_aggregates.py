from __future__ import annotations

import math

import pandas as pd
import pytest

from ev_dashboard.features.aggregates import (
    MAKE_SUMMARY_COLUMNS,
    build_basic_quality,
    build_city_type_counts,
    build_county_counts,
    build_eligibility_by_model_year,
    build_eligibility_by_range,
    build_ev_type_counts,
    build_make_range_summary,
    build_top_counties,
    build_top_unresearched_makes,
    build_unresearched_by_model_year,
)
from ev_dashboard.records import (
    CafvEligibility,
    ElectricVehicleType,
    VehicleRecord,
    records_to_frame,
)

BEV = ElectricVehicleType.battery_electric
PHEV = ElectricVehicleType.plug_in_hybrid
ELIGIBLE = CafvEligibility.eligible
INELIGIBLE = CafvEligibility.ineligible_low_range
UNKNOWN = CafvEligibility.eligibility_unknown


def _vehicle(
    county: str,
    city: str,
    make: str,
    model_year: int,
    ev_type: ElectricVehicleType,
    electric_range: int,
    eligibility: CafvEligibility,
) -> VehicleRecord:
    return VehicleRecord(
        county=county,
        city=city,
        make=make,
        model_year=model_year,
        electric_vehicle_type=ev_type,
        electric_range=electric_range,
        cafv_eligibility=eligibility,
    )


def _fleet() -> pd.DataFrame:
    return records_to_frame(
        [
            _vehicle("King", "Seattle", "TESLA", 2020, BEV, 300, ELIGIBLE),
            _vehicle("King", "Seattle", "TESLA", 2023, BEV, 0, UNKNOWN),
            _vehicle("King", "Bellevue", "TESLA", 2023, BEV, 0, UNKNOWN),
            _vehicle("King", "Seattle", "NISSAN", 2015, BEV, 84, ELIGIBLE),
            _vehicle("Pierce", "Tacoma", "TOYOTA", 2019, PHEV, 25, INELIGIBLE),
            _vehicle("Pierce", "Tacoma", "CHEVROLET", 2012, PHEV, 35, INELIGIBLE),
            _vehicle("Snohomish", "Everett", "KIA", 2024, PHEV, 0, UNKNOWN),
            _vehicle("Pierce", "Tacoma", "TESLA", 2008, BEV, 0, UNKNOWN),
        ]
    )


ALL_BUILDERS = [
    build_ev_type_counts,
    build_county_counts,
    build_top_counties,
    build_city_type_counts,
    build_make_range_summary,
    build_eligibility_by_range,
    build_eligibility_by_model_year,
    build_top_unresearched_makes,
    lambda df: build_unresearched_by_model_year(df, reference_year=2024),
]


def test_ev_type_counts_and_percentages() -> None:
    result = build_ev_type_counts(_fleet())

    assert result["ev_type"].tolist() == ["BEV", "PHEV"]
    assert result["count"].tolist() == [5, 3]
    assert result["ev_type_label"].tolist() == [
        "Battery Electric Vehicle (BEV)",
        "Plug-in Hybrid Electric Vehicle (PHEV)",
    ]
    assert result["percentage"].tolist() == [62.5, 37.5]


def test_county_counts_are_ranked_descending() -> None:
    counties = build_county_counts(_fleet())
    top = build_top_counties(_fleet(), top_n_counties=2)

    assert counties["county"].tolist() == ["King", "Pierce", "Snohomish"]
    assert counties["count"].tolist() == [4, 3, 1]
    assert top["county"].tolist() == ["King", "Pierce"]


def test_city_type_counts_rank_by_total() -> None:
    result = build_city_type_counts(_fleet(), top_n_cities=2)

    assert result.columns.tolist() == ["city", "bev", "phev", "total"]
    assert result["city"].tolist() == ["Seattle", "Tacoma"]
    tacoma = result.loc[result["city"] == "Tacoma"].iloc[0]
    assert (int(tacoma["bev"]), int(tacoma["phev"]), int(tacoma["total"])) == (1, 2, 3)


def test_make_range_summary_sorted_by_count() -> None:
    result = build_make_range_summary(_fleet(), sort_by="total_count", min_total=0, top_n_makes=2)

    assert result.columns.tolist() == MAKE_SUMMARY_COLUMNS
    assert result["make"].tolist() == ["TESLA", "NISSAN"]
    tesla = result.iloc[0]
    assert tesla["avg_range"] == pytest.approx(75.0)
    assert int(tesla["total_count"]) == 4
    assert int(tesla["unresearched_count"]) == 3
    assert tesla["bev_pct"] == 100.0
    assert tesla["unresearched_pct"] == 75.0


def test_make_range_summary_floor_applies_before_ranking_by_mileage() -> None:
    result = build_make_range_summary(_fleet(), sort_by="avg_range", min_total=1, top_n_makes=1)

    # NISSAN has the best single-vehicle average but falls under the floor.
    assert result["make"].tolist() == ["TESLA"]


def test_make_range_summary_rejects_unknown_sort_key() -> None:
    with pytest.raises(ValueError, match="sort key"):
        build_make_range_summary(_fleet(), sort_by="make")  # type: ignore[arg-type]


def test_eligibility_by_range_adds_percentages() -> None:
    result = build_eligibility_by_range(_fleet())
    lowest = result.iloc[0]

    assert lowest["range"] == "0-50 miles"
    assert (int(lowest["ineligible"]), int(lowest["unresearched"])) == (2, 4)
    assert lowest["unresearched_pct"] == pytest.approx(66.67)
    assert int(result["total"].sum()) == len(_fleet())


def test_eligibility_by_model_year_is_chronological() -> None:
    result = build_eligibility_by_model_year(_fleet())

    assert result["model_year"].tolist() == [2008, 2012, 2015, 2019, 2020, 2023, 2024]
    row_2023 = result.loc[result["model_year"] == 2023].iloc[0]
    assert int(row_2023["unresearched"]) == 2
    assert row_2023["unresearched_pct"] == 100.0
    assert int(result["total"].sum()) == len(_fleet())


def test_top_unresearched_makes() -> None:
    result = build_top_unresearched_makes(_fleet(), top_n_makes=10)

    assert result.columns.tolist() == ["make", "total", "bev", "phev"]
    assert result["make"].tolist() == ["TESLA", "KIA"]
    assert result["total"].tolist() == [3, 1]
    assert result["phev"].tolist() == [0, 1]


def test_unresearched_by_model_year_limits_to_window() -> None:
    result = build_unresearched_by_model_year(_fleet(), reference_year=2024, window_years=15)

    # 2008 is outside 2009..2024.
    assert result["model_year"].tolist() == [2023, 2024]
    assert result["bev"].tolist() == [2, 0]
    assert result["phev"].tolist() == [0, 1]
    assert result["total"].tolist() == [2, 1]


def test_basic_quality_counts_sentinel_mismatches() -> None:
    fleet = _fleet()
    fleet.loc[0, "electric_range"] = 0

    metrics = dict(zip(build_basic_quality(fleet)["metric"], build_basic_quality(fleet)["value"]))

    assert metrics["rows_total"] == 8
    assert metrics["zero_range_rows"] == 5
    assert metrics["sentinel_mismatch_rows"] == 1
    assert metrics["unknown_eligibility"] == 0


def test_basic_quality_counts_blank_and_missing_text_once() -> None:
    fleet = _fleet()
    fleet.loc[0, "city"] = None
    fleet.loc[1, "city"] = "  "

    quality = build_basic_quality(fleet)
    metrics = dict(zip(quality["metric"], quality["value"]))

    assert metrics["missing_city"] == 2
    assert metrics["missing_county"] == 0


@pytest.mark.parametrize("builder", ALL_BUILDERS)
def test_builders_return_empty_results_for_empty_input(builder) -> None:
    result = builder(records_to_frame([]))

    assert isinstance(result, pd.DataFrame)
    assert result.empty


@pytest.mark.parametrize("builder", ALL_BUILDERS)
def test_builders_are_idempotent_and_leave_input_untouched(builder) -> None:
    fleet = _fleet()
    snapshot = fleet.copy()

    first = builder(fleet)
    second = builder(fleet)

    pd.testing.assert_frame_equal(first, second)
    pd.testing.assert_frame_equal(fleet, snapshot)


def test_degenerate_make_group_reports_nan_average() -> None:
    fleet = _fleet()
    fleet["electric_range"] = pd.array([None] * len(fleet), dtype="Int64")

    result = build_make_range_summary(fleet, min_total=0)

    assert all(math.isnan(value) for value in result["avg_range"])

from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from ev_dashboard.config import AppConfig
from ev_dashboard.io import read as read_module
from ev_dashboard.io.read import load_records, load_table
from ev_dashboard.io.schema import CANONICAL_ORDER

EXPORT_HEADER = (
    "VIN (1-10),County,City,State,Model Year,Make,Model,Electric Vehicle Type,"
    "Clean Alternative Fuel Vehicle (CAFV) Eligibility,Electric Range"
)


def _write_export(path: Path, rows: list[str]) -> Path:
    path.write_text("\n".join([EXPORT_HEADER, *rows]) + "\n", encoding="utf-8")
    return path


def test_load_records_normalizes_columns_and_values(tmp_path: Path) -> None:
    csv_path = _write_export(
        tmp_path / "ev.csv",
        [
            '5YJ3E1EA7K,King,Seattle,WA,2019,TESLA,MODEL 3,Battery Electric Vehicle (BEV),'
            "Clean Alternative Fuel Vehicle Eligible,220",
            "1N4AZ0CP5D,Pierce,Tacoma,WA,2013,NISSAN,LEAF,Plug-in Hybrid Electric Vehicle (PHEV),"
            "Not eligible due to low battery range,25",
            "KNDCE3LG2L,King,Kent,WA,2023,KIA,NIRO,Battery Electric Vehicle (BEV),"
            "Eligibility unknown as battery range has not been researched,0",
        ],
    )

    loaded = load_records(data_path=csv_path, config=AppConfig())

    assert list(loaded.columns) == CANONICAL_ORDER
    assert loaded["electric_vehicle_type"].tolist() == ["BEV", "PHEV", "BEV"]
    assert loaded["cafv_eligibility"].tolist() == ["eligible", "ineligible", "unresearched"]
    assert loaded["model_year"].tolist() == [2019, 2013, 2023]
    assert loaded["electric_range"].tolist() == [220.0, 25.0, 0.0]


def test_load_records_strips_bom_and_flags_malformed_values(tmp_path: Path) -> None:
    csv_path = tmp_path / "ev.csv"
    csv_path.write_text(
        "\ufeff"
        + EXPORT_HEADER
        + "\nX,King,Seattle,WA,not-a-year,TESLA,MODEL Y,Hydrogen,Something else,-5\n",
        encoding="utf-8",
    )

    loaded = load_records(data_path=csv_path, config=AppConfig())

    assert loaded.loc[0, "county"] == "King"
    assert pd.isna(loaded.loc[0, "model_year"])
    assert pd.isna(loaded.loc[0, "electric_range"])
    assert loaded.loc[0, "electric_vehicle_type"] == "Unknown"
    assert loaded.loc[0, "cafv_eligibility"] == "Unknown"


def test_load_records_reports_missing_source_columns(tmp_path: Path) -> None:
    csv_path = tmp_path / "ev.csv"
    csv_path.write_text("County,City,Make\nKing,Seattle,TESLA\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Model Year"):
        load_records(data_path=csv_path, config=AppConfig())


def test_load_records_raises_when_normalized_output_is_missing_required_column(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    csv_path = _write_export(tmp_path / "ev.csv", [])

    def _bad_normalize(df: pd.DataFrame, columns: object) -> pd.DataFrame:
        return pd.DataFrame({"county": ["King"], "city": ["Seattle"]})

    monkeypatch.setattr(read_module, "normalize_columns", _bad_normalize)

    with pytest.raises(ValueError, match="make"):
        load_records(data_path=csv_path, config=AppConfig())


def test_load_records_requires_a_data_path() -> None:
    with pytest.raises(ValueError, match="data path"):
        load_records(data_path=None, config=AppConfig())


def test_load_records_falls_back_to_configured_path(tmp_path: Path) -> None:
    csv_path = _write_export(
        tmp_path / "ev.csv",
        [
            "X,King,Seattle,WA,2020,TESLA,MODEL 3,Battery Electric Vehicle (BEV),"
            "Clean Alternative Fuel Vehicle Eligible,266",
        ],
    )
    config = AppConfig.model_validate({"input": {"data_path": str(csv_path)}})

    loaded = load_records(data_path=None, config=config)

    assert len(loaded) == 1


def test_load_table_supports_csv_and_parquet_and_rejects_unknown_types(tmp_path: Path) -> None:
    csv_path = tmp_path / "table.csv"
    parquet_path = tmp_path / "table.parquet"
    text_path = tmp_path / "table.txt"

    frame = pd.DataFrame({"x": [1, 2], "y": ["a", "b"]})
    frame.to_csv(csv_path, index=False)
    frame.to_parquet(parquet_path, index=False)
    text_path.write_text("not-a-table", encoding="utf-8")

    assert list(load_table(csv_path).columns) == ["x", "y"]
    assert list(load_table(parquet_path).columns) == ["x", "y"]
    with pytest.raises(ValueError, match="Unsupported table file type"):
        load_table(text_path)

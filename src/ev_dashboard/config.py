from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_RANGE_EDGES_MILES = [50, 100, 150, 200]


class ColumnsConfig(BaseModel):
    county: str = "County"
    city: str = "City"
    make: str = "Make"
    model_year: str = "Model Year"
    electric_vehicle_type: str = "Electric Vehicle Type"
    electric_range: str = "Electric Range"
    cafv_eligibility: str = "Clean Alternative Fuel Vehicle (CAFV) Eligibility"


class ThresholdsConfig(BaseModel):
    top_counties: int = Field(default=5, ge=1)
    top_cities: int = Field(default=10, ge=1)
    top_makes: int = Field(default=15, ge=1)
    min_make_total: int = Field(default=1000, ge=0)
    top_unresearched_makes: int = Field(default=10, ge=1)
    unresearched_window_years: int = Field(default=15, ge=0)
    reference_year: int | None = Field(default=None, ge=1900)


class RangeBinsConfig(BaseModel):
    edges_miles: list[int] = Field(default_factory=lambda: list(DEFAULT_RANGE_EDGES_MILES))

    @field_validator("edges_miles")
    @classmethod
    def _edges_strictly_increasing(cls, value: list[int]) -> list[int]:
        if not value:
            raise ValueError("range_bins.edges_miles must not be empty")
        if any(edge <= 0 for edge in value):
            raise ValueError("range_bins.edges_miles must be positive")
        if any(later <= earlier for earlier, later in zip(value, value[1:])):
            raise ValueError("range_bins.edges_miles must be strictly increasing")
        return value


class SelectionConfig(BaseModel):
    county: str | None = None


class InputConfig(BaseModel):
    data_path: str | None = None


class OutputsConfig(BaseModel):
    tables_format: Literal["parquet", "csv"] = "parquet"
    figures_format: str = "png"
    render_figures: bool = True


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    columns: ColumnsConfig = Field(default_factory=ColumnsConfig)
    thresholds: ThresholdsConfig = Field(default_factory=ThresholdsConfig)
    range_bins: RangeBinsConfig = Field(default_factory=RangeBinsConfig)
    selection: SelectionConfig = Field(default_factory=SelectionConfig)
    input: InputConfig = Field(default_factory=InputConfig)
    outputs: OutputsConfig = Field(default_factory=OutputsConfig)


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")


def _resolve_optional_path(path_value: str | None, base_dir: Path) -> str | None:
    if not path_value:
        return None
    candidate = Path(path_value)
    if candidate.is_absolute():
        return str(candidate)
    return str((base_dir / candidate).resolve())


def load_config(path: Path) -> AppConfig:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    config = AppConfig.model_validate(data)
    base_dir = path.resolve().parent

    config.input.data_path = _resolve_optional_path(
        config.input.data_path or os.getenv("EV_DASHBOARD_DATA_CSV"),
        base_dir,
    )
    return config

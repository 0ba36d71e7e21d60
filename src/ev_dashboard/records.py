from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Iterable

import pandas as pd

from ev_dashboard.io.schema import CANONICAL_ORDER


class ElectricVehicleType(str, Enum):
    battery_electric = "BEV"
    plug_in_hybrid = "PHEV"


class CafvEligibility(str, Enum):
    eligible = "eligible"
    ineligible_low_range = "ineligible"
    eligibility_unknown = "unresearched"


UNKNOWN_VALUE = "Unknown"

EV_TYPE_SOURCE_VALUES: dict[str, ElectricVehicleType] = {
    "Battery Electric Vehicle (BEV)": ElectricVehicleType.battery_electric,
    "Plug-in Hybrid Electric Vehicle (PHEV)": ElectricVehicleType.plug_in_hybrid,
}

CAFV_SOURCE_VALUES: dict[str, CafvEligibility] = {
    "Clean Alternative Fuel Vehicle Eligible": CafvEligibility.eligible,
    "Not eligible due to low battery range": CafvEligibility.ineligible_low_range,
    "Eligibility unknown as battery range has not been researched": (
        CafvEligibility.eligibility_unknown
    ),
}

EV_TYPE_LABELS: dict[str, str] = {
    member.value: source for source, member in EV_TYPE_SOURCE_VALUES.items()
}

ELIGIBILITY_KEYS: list[str] = [member.value for member in CafvEligibility]
EV_TYPE_KEYS: list[str] = [member.value for member in ElectricVehicleType]

# Electric range recorded for vehicles whose range has not been researched.
UNRESEARCHED_RANGE_SENTINEL = 0


@dataclass(frozen=True)
class VehicleRecord:
    county: str
    city: str
    make: str
    model_year: int
    electric_vehicle_type: ElectricVehicleType
    electric_range: int
    cafv_eligibility: CafvEligibility

    @property
    def is_unresearched(self) -> bool:
        return self.cafv_eligibility is CafvEligibility.eligibility_unknown

    def to_row(self) -> dict[str, Any]:
        row = asdict(self)
        row["electric_vehicle_type"] = self.electric_vehicle_type.value
        row["cafv_eligibility"] = self.cafv_eligibility.value
        return row

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> VehicleRecord:
        return cls(
            county=str(row["county"]),
            city=str(row["city"]),
            make=str(row["make"]),
            model_year=int(row["model_year"]),
            electric_vehicle_type=ElectricVehicleType(row["electric_vehicle_type"]),
            electric_range=int(row["electric_range"]),
            cafv_eligibility=CafvEligibility(row["cafv_eligibility"]),
        )


def records_to_frame(records: Iterable[VehicleRecord]) -> pd.DataFrame:
    rows = [record.to_row() for record in records]
    frame = pd.DataFrame(rows, columns=CANONICAL_ORDER)
    frame["model_year"] = frame["model_year"].astype("Int64")
    frame["electric_range"] = frame["electric_range"].astype("Int64")
    return frame


def frame_to_records(frame: pd.DataFrame) -> list[VehicleRecord]:
    return [VehicleRecord.from_row(row) for row in frame.to_dict(orient="records")]

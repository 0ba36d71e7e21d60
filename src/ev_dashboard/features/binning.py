from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

import pandas as pd

from ev_dashboard.config import DEFAULT_RANGE_EDGES_MILES
from ev_dashboard.records import ELIGIBILITY_KEYS

BIN_LABEL_COLUMN = "range"
BIN_COLUMNS = [BIN_LABEL_COLUMN, *ELIGIBILITY_KEYS, "total"]


@dataclass(frozen=True)
class RangeBin:
    label: str
    predicate: Callable[[pd.Series], pd.Series]


def build_range_bins(
    edges: Sequence[int] = DEFAULT_RANGE_EDGES_MILES,
    unit: str = "miles",
) -> list[RangeBin]:
    """Build contiguous, non-overlapping bins from increasing upper edges.

    The first bin is closed at zero, so zero-range (unresearched) vehicles land
    in it alongside genuine short-range vehicles.
    """
    bins: list[RangeBin] = []
    lower: int | None = None
    for edge in edges:
        if lower is None:
            bins.append(RangeBin(f"0-{edge} {unit}", lambda r, hi=edge: r <= hi))
        else:
            bins.append(
                RangeBin(
                    f"{lower}-{edge} {unit}",
                    lambda r, lo=lower, hi=edge: (r > lo) & (r <= hi),
                )
            )
        lower = edge
    if lower is not None:
        bins.append(RangeBin(f"> {lower} {unit}", lambda r, lo=lower: r > lo))
    return bins


ELECTRIC_RANGE_BINS: tuple[RangeBin, ...] = tuple(build_range_bins())


def bin_by_range(
    records: pd.DataFrame,
    bins: Sequence[RangeBin] = ELECTRIC_RANGE_BINS,
    range_column: str = "electric_range",
    eligibility_column: str = "cafv_eligibility",
) -> pd.DataFrame:
    """Count CAFV eligibility per range bin, in the caller's bin order.

    Each record is tested against every bin independently. ``total`` is the
    sum of the three eligibility counts.
    """
    if records.empty:
        return pd.DataFrame(columns=BIN_COLUMNS)

    ranges = records[range_column]
    eligibility = records[eligibility_column]
    rows = []
    for range_bin in bins:
        in_bin = pd.Series(range_bin.predicate(ranges), index=records.index)
        members = eligibility[in_bin.fillna(False).astype(bool)]
        counts = {key: int((members == key).sum()) for key in ELIGIBILITY_KEYS}
        rows.append({BIN_LABEL_COLUMN: range_bin.label, **counts, "total": sum(counts.values())})
    return pd.DataFrame(rows, columns=BIN_COLUMNS)

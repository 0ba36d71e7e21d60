from __future__ import annotations

from typing import Callable, Hashable, Mapping, Sequence, TypeVar

import pandas as pd
from pandas.core.groupby import DataFrameGroupBy

V = TypeVar("V")

KeySpec = str | Callable[[pd.DataFrame], pd.Series]


def _key_series(records: pd.DataFrame, key: KeySpec) -> pd.Series:
    if callable(key):
        keys = key(records)
        if not isinstance(keys, pd.Series):
            keys = pd.Series(keys, index=records.index)
        if len(keys) != len(records):
            raise ValueError("Key function must return one key per record")
        return keys
    if key not in records.columns:
        raise ValueError(f"Cannot group on missing column: {key}")
    return records[key]


def _grouped(records: pd.DataFrame, key: KeySpec, label: str) -> DataFrameGroupBy:
    keys = _key_series(records, key).rename(label)
    # NaN keys form their own group so every record lands in exactly one group.
    return records.groupby(keys, sort=False, dropna=False)


def group_by(
    records: pd.DataFrame,
    key: KeySpec,
    reduce: Callable[[pd.DataFrame], V],
) -> dict[Hashable, V]:
    """Partition ``records`` by ``key`` and reduce each group's rows.

    ``key`` is a column name or a function returning one key per record. The
    mapping carries no ordering guarantee; callers sort downstream.
    """
    if records.empty:
        return {}
    return {
        group_key: reduce(members)
        for group_key, members in _grouped(records, key, label="__group_key__")
    }


def count_by(
    records: pd.DataFrame,
    key: KeySpec,
    label: str,
    count_column: str = "count",
) -> pd.DataFrame:
    counts = group_by(records, key, len)
    rows = [{label: group_key, count_column: int(count)} for group_key, count in counts.items()]
    return pd.DataFrame(rows, columns=[label, count_column])


def count_by_category(
    records: pd.DataFrame,
    key: KeySpec,
    label: str,
    category_column: str,
    categories: Mapping[str, str] | Sequence[str],
) -> pd.DataFrame:
    """Count records per key, split into one column per category value.

    ``categories`` maps output column name to category value; a plain sequence
    uses each value as its own column name.
    """
    if not isinstance(categories, Mapping):
        categories = {str(value): value for value in categories}
    columns = [label, *categories.keys()]
    if records.empty:
        return pd.DataFrame(columns=columns)

    aggregations = {
        column: (category_column, lambda s, value=value: int((s == value).sum()))
        for column, value in categories.items()
    }
    grouped = _grouped(records, key, label=label).agg(**aggregations).reset_index()
    return grouped[columns]

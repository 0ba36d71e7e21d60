from __future__ import annotations

import pandas as pd

ALL_SELECTION = "all"


def is_unfiltered(value: object | None) -> bool:
    return value is None or (isinstance(value, str) and value.strip().lower() == ALL_SELECTION)


def filter_records(df: pd.DataFrame, column: str, value: object | None) -> pd.DataFrame:
    """Narrow the table to rows where ``column == value``.

    ``None`` or ``"all"`` returns an unfiltered copy. The input frame is never
    modified.
    """
    if is_unfiltered(value):
        return df.copy()
    if column not in df.columns:
        raise ValueError(f"Cannot filter on missing column: {column}")
    mask = (df[column] == value).fillna(False).astype(bool)
    return df.loc[mask].reset_index(drop=True)

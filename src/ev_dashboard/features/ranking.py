from __future__ import annotations

from typing import Callable, Literal

import pandas as pd

SortDirection = Literal["desc", "asc"]


def top_n(
    rows: pd.DataFrame,
    sort_key: str,
    n: int | None = None,
    direction: SortDirection = "desc",
    where: Callable[[pd.DataFrame], pd.Series] | None = None,
) -> pd.DataFrame:
    """Stable-sort ``rows`` by ``sort_key`` and keep the first ``n``.

    ``where`` filters rows before sorting and slicing. ``n=None`` keeps every
    row. Ties keep their input order.
    """
    if direction not in ("desc", "asc"):
        raise ValueError(f"Unsupported sort direction: {direction}")
    if n is not None and n < 0:
        raise ValueError("n must be non-negative")
    if sort_key not in rows.columns:
        raise ValueError(f"Cannot rank on missing column: {sort_key}")

    candidates = rows
    if where is not None and not rows.empty:
        mask = pd.Series(where(rows), index=rows.index).fillna(False).astype(bool)
        candidates = rows.loc[mask]

    ranked = candidates.sort_values(
        sort_key,
        ascending=direction == "asc",
        kind="mergesort",
        na_position="last",
    )
    if n is not None:
        ranked = ranked.head(n)
    return ranked.reset_index(drop=True)

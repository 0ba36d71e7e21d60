from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

import pandas as pd

from ev_dashboard import __version__
from ev_dashboard.config import AppConfig
from ev_dashboard.features.aggregates import (
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
from ev_dashboard.features.binning import build_range_bins
from ev_dashboard.features.metrics import stack_series
from ev_dashboard.io.read import load_records, load_table
from ev_dashboard.io.write import write_summary, write_table
from ev_dashboard.paths import SUMMARY_FILENAME, build_output_paths
from ev_dashboard.preprocess.selection import filter_records, is_unfiltered
from ev_dashboard.records import ELIGIBILITY_KEYS, EV_TYPE_LABELS
from ev_dashboard.viz.charts import plot_ev_type_pie, plot_ranked_bars, plot_stacked_bars
from ev_dashboard.viz.common import ELIGIBILITY_COLORS, EV_TYPE_COLORS

LOGGER = logging.getLogger(__name__)

STACK_SPECS: dict[str, tuple[str, list[str]]] = {
    "city_type_counts": ("city", ["bev", "phev"]),
    "eligibility_by_range": ("range", list(ELIGIBILITY_KEYS)),
    "eligibility_by_model_year": ("model_year", list(ELIGIBILITY_KEYS)),
    "unresearched_by_model_year": ("model_year", ["bev", "phev"]),
}

STACK_LEGEND_LABELS = {
    "bev": EV_TYPE_LABELS["BEV"],
    "phev": EV_TYPE_LABELS["PHEV"],
    "eligible": "Eligible",
    "ineligible": "Ineligible",
    "unresearched": "Unresearched",
}


def prepare_base_dataframe(data_path: Path | None, config: AppConfig) -> pd.DataFrame:
    df = load_records(data_path=data_path, config=config)
    LOGGER.info("Loaded %d vehicle records", len(df))
    return df


def build_dashboard_artifacts(
    records: pd.DataFrame,
    config: AppConfig,
    county: str | None = None,
) -> dict[str, pd.DataFrame]:
    """Compute every chart's summary table for ``records`` narrowed to ``county``.

    County selector options always come from the full table.
    """
    selected = filter_records(records, "county", county)
    if not is_unfiltered(county):
        LOGGER.info("Filtered to county=%s: %d of %d records", county, len(selected), len(records))
    thresholds = config.thresholds
    bins = build_range_bins(config.range_bins.edges_miles)

    return {
        "ev_type_counts": build_ev_type_counts(selected),
        "top_counties": build_top_counties(records, thresholds.top_counties),
        "county_counts": build_county_counts(selected),
        "city_type_counts": build_city_type_counts(selected, thresholds.top_cities),
        "make_range_by_count": build_make_range_summary(
            selected,
            sort_by="total_count",
            min_total=thresholds.min_make_total,
            top_n_makes=thresholds.top_makes,
        ),
        "make_range_by_mileage": build_make_range_summary(
            selected,
            sort_by="avg_range",
            min_total=thresholds.min_make_total,
            top_n_makes=thresholds.top_makes,
        ),
        "eligibility_by_range": build_eligibility_by_range(selected, bins),
        "eligibility_by_model_year": build_eligibility_by_model_year(selected),
        "top_unresearched_makes": build_top_unresearched_makes(
            selected, thresholds.top_unresearched_makes
        ),
        "unresearched_by_model_year": build_unresearched_by_model_year(
            selected,
            reference_year=thresholds.reference_year,
            window_years=thresholds.unresearched_window_years,
        ),
        "basic_quality": build_basic_quality(selected),
    }


def build_stack_layouts(artifacts: dict[str, pd.DataFrame]) -> dict[str, pd.DataFrame]:
    stacks: dict[str, pd.DataFrame] = {}
    for name, (label, keys) in STACK_SPECS.items():
        table = artifacts.get(name)
        if table is None:
            continue
        stacks[name] = stack_series(table, keys, label)
    return stacks


def _table_extension(config: AppConfig) -> str:
    return "parquet" if config.outputs.tables_format == "parquet" else "csv"


def write_dashboard_artifacts(
    artifacts: dict[str, pd.DataFrame],
    stacks: dict[str, pd.DataFrame],
    out_dir: Path,
    config: AppConfig,
    county: str | None = None,
) -> dict[str, Path]:
    paths = build_output_paths(out_dir)
    extension = _table_extension(config)
    written: dict[str, Path] = {}
    for name, table in artifacts.items():
        written[name] = write_table(
            table, paths.table(name, extension), fmt=config.outputs.tables_format
        )
    for name, table in stacks.items():
        written[f"{name}_stack"] = write_table(
            table, paths.stack(name, extension), fmt=config.outputs.tables_format
        )

    quality = artifacts.get("basic_quality", pd.DataFrame(columns=["metric", "value"]))
    write_summary(
        {
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "version": __version__,
            "county": None if is_unfiltered(county) else county,
            "tables": {name: int(len(table)) for name, table in sorted(artifacts.items())},
            "quality": {
                str(row.metric): int(row.value) for row in quality.itertuples(index=False)
            },
        },
        paths.summary / SUMMARY_FILENAME,
    )
    LOGGER.info("Wrote %d tables to %s", len(written), paths.tables)
    return written


def render_dashboard_figures(
    artifacts: dict[str, pd.DataFrame],
    stacks: dict[str, pd.DataFrame],
    out_dir: Path,
    config: AppConfig,
    county: str | None = None,
) -> list[Path]:
    paths = build_output_paths(out_dir)
    suffix = config.outputs.figures_format
    scope = "all counties" if is_unfiltered(county) else str(county)
    figures: list[Path] = []

    try:
        ev_type_counts = artifacts.get("ev_type_counts", pd.DataFrame())
        if not ev_type_counts.empty:
            figures.append(
                plot_ev_type_pie(
                    ev_type_counts,
                    paths.figure("ev_type_split", suffix),
                    title=f"EV type split ({scope})",
                )
            )

        county_counts = artifacts.get("county_counts", pd.DataFrame())
        if not county_counts.empty:
            figures.append(
                plot_ranked_bars(
                    county_counts.head(20),
                    "county",
                    "count",
                    paths.figure("county_counts", suffix),
                    title="EV count by county",
                )
            )

        for name, value_column, title, value_label in (
            ("make_range_by_count", "avg_range", "Average range, top makes by count", "Miles"),
            ("make_range_by_mileage", "avg_range", "Average range, top makes by range", "Miles"),
            ("top_unresearched_makes", "total", "Makes with unresearched range", "Count"),
        ):
            table = artifacts.get(name, pd.DataFrame())
            if not table.empty:
                figures.append(
                    plot_ranked_bars(
                        table,
                        "make",
                        value_column,
                        paths.figure(name, suffix),
                        title=title,
                        value_label=value_label,
                    )
                )

        for name, title in (
            ("city_type_counts", "BEV and PHEV counts, top cities"),
            ("eligibility_by_range", "CAFV eligibility by electric range"),
            ("eligibility_by_model_year", "CAFV eligibility by model year"),
            ("unresearched_by_model_year", "Unresearched vehicles by model year"),
        ):
            stack = stacks.get(name, pd.DataFrame())
            if not stack.empty:
                label, keys = STACK_SPECS[name]
                colors = EV_TYPE_COLORS if keys == ["bev", "phev"] else ELIGIBILITY_COLORS
                figures.append(
                    plot_stacked_bars(
                        stack,
                        label,
                        paths.figure(name, suffix),
                        title=title,
                        colors=colors,
                        legend_labels=STACK_LEGEND_LABELS,
                    )
                )
    except Exception:  # pragma: no cover
        LOGGER.exception("Failed rendering one or more dashboard figures")
    return figures


def build_profile(
    data_path: Path | None,
    out_dir: Path,
    config: AppConfig,
    county: str | None = None,
) -> dict[str, pd.DataFrame]:
    records = prepare_base_dataframe(data_path=data_path, config=config)
    county = county if county is not None else config.selection.county
    artifacts = build_dashboard_artifacts(records, config=config, county=county)
    stacks = build_stack_layouts(artifacts)
    write_dashboard_artifacts(artifacts, stacks, out_dir=out_dir, config=config, county=county)
    if config.outputs.render_figures:
        render_dashboard_figures(artifacts, stacks, out_dir=out_dir, config=config, county=county)
    return artifacts


def load_dashboard_artifacts(out_dir: Path, config: AppConfig) -> dict[str, pd.DataFrame]:
    paths = build_output_paths(out_dir)
    extension = f".{_table_extension(config)}"

    artifacts: dict[str, pd.DataFrame] = {}
    for path in sorted(paths.tables.glob(f"*{extension}")):
        artifacts[path.stem] = load_table(path)
    return artifacts

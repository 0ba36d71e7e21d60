from __future__ import annotations

import math
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pandas as pd
from jinja2 import Environment, FileSystemLoader, select_autoescape

from ev_dashboard.io.read import load_table
from ev_dashboard.io.write import read_summary
from ev_dashboard.paths import SUMMARY_FILENAME, build_output_paths

# Tab id, tab title, and the tables and figures shown in it, in display order.
DASHBOARD_TABS: list[dict[str, Any]] = [
    {
        "id": "overview",
        "title": "Overview",
        "tables": ["ev_type_counts", "top_counties"],
        "figures": ["ev_type_split"],
    },
    {
        "id": "geography",
        "title": "Geographic Distribution",
        "tables": ["county_counts", "city_type_counts"],
        "figures": ["county_counts", "city_type_counts"],
    },
    {
        "id": "specifications",
        "title": "Vehicle Specifications",
        "tables": ["make_range_by_count", "make_range_by_mileage"],
        "figures": ["make_range_by_count", "make_range_by_mileage"],
    },
    {
        "id": "cafv",
        "title": "CAFV Eligibility",
        "tables": [
            "eligibility_by_range",
            "eligibility_by_model_year",
            "top_unresearched_makes",
            "unresearched_by_model_year",
        ],
        "figures": [
            "eligibility_by_range",
            "eligibility_by_model_year",
            "top_unresearched_makes",
            "unresearched_by_model_year",
        ],
    },
    {
        "id": "quality",
        "title": "Data Quality",
        "tables": ["basic_quality"],
        "figures": [],
    },
]

TABLE_TITLES = {
    "ev_type_counts": "Vehicles by EV type",
    "ev_type_split": "Share of BEV and PHEV vehicles",
    "top_counties": "Counties with the most EVs",
    "county_counts": "EV count by county",
    "city_type_counts": "BEV and PHEV counts for the top cities",
    "make_range_by_count": "Average electric range, top makes by vehicle count",
    "make_range_by_mileage": "Average electric range, top makes by range",
    "eligibility_by_range": "CAFV eligibility by electric range",
    "eligibility_by_model_year": "CAFV eligibility by model year",
    "top_unresearched_makes": "Makes with the most unresearched vehicles",
    "unresearched_by_model_year": "Unresearched vehicles by model year",
    "basic_quality": "Data quality checks",
}

ZERO_RANGE_NOTE = (
    "Vehicles with a zero electric range have not had their battery range researched; "
    "they are counted in the lowest range bin."
)


def _template_env() -> Environment:
    templates_path = Path(__file__).resolve().parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(templates_path)),
        autoescape=select_autoescape(enabled_extensions=("html", "xml", "html.j2")),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def _json_safe(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(key): _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    if hasattr(value, "item"):
        try:
            value = value.item()
        except (TypeError, ValueError):
            pass
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, (int, str, bool)) or value is None:
        return value
    if pd.isna(value):
        return None
    return str(value)


def _table_preview(df: pd.DataFrame, max_rows: int = 25) -> dict[str, Any]:
    limited = df.head(max_rows)
    return {
        "columns": [str(column) for column in limited.columns],
        "rows": _json_safe(limited.to_numpy().tolist()),
        "row_count": int(len(df)),
    }


def _load_tables_from_disk(tables_dir: Path) -> dict[str, pd.DataFrame]:
    tables: dict[str, pd.DataFrame] = {}
    for path in sorted(tables_dir.glob("*")):
        if path.is_file() and path.suffix in (".parquet", ".csv"):
            tables[path.stem] = load_table(path)
    return tables


def _figure_index(figures_dir: Path) -> dict[str, str]:
    return {
        path.stem: f"figures/{path.name}"
        for path in sorted(figures_dir.glob("*"))
        if path.is_file()
    }


def build_tab_payload(
    tables: dict[str, pd.DataFrame],
    figures: dict[str, str],
) -> list[dict[str, Any]]:
    tabs = []
    for tab in DASHBOARD_TABS:
        tabs.append(
            {
                "id": tab["id"],
                "title": tab["title"],
                "tables": [
                    {
                        "name": name,
                        "title": TABLE_TITLES.get(name, name),
                        **_table_preview(tables[name]),
                    }
                    for name in tab["tables"]
                    if name in tables
                ],
                "figures": [
                    {"name": name, "src": figures[name], "title": TABLE_TITLES.get(name, name)}
                    for name in tab["figures"]
                    if name in figures
                ],
            }
        )
    return tabs


def render_report(
    out_dir: Path,
    artifacts: dict[str, pd.DataFrame] | None = None,
) -> Path:
    """Render ``dashboard.html`` from in-memory tables or from ``out_dir/tables``."""
    env = _template_env()
    template = env.get_template("dashboard.html.j2")

    paths = build_output_paths(out_dir)
    tables = artifacts if artifacts else _load_tables_from_disk(paths.tables)
    summary = read_summary(paths.summary / SUMMARY_FILENAME)

    rendered = template.render(
        generated_at=datetime.now(timezone.utc).isoformat(),
        county=summary.get("county"),
        version=summary.get("version"),
        tabs=build_tab_payload(tables, _figure_index(paths.figures)),
        zero_range_note=ZERO_RANGE_NOTE,
    )

    paths.report.write_text(rendered, encoding="utf-8")
    return paths.report

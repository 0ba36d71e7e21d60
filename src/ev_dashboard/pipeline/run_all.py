from __future__ import annotations

from pathlib import Path

from ev_dashboard.config import AppConfig
from ev_dashboard.pipeline.profile import build_profile
from ev_dashboard.report.render import render_report


def run_all(
    data_path: Path | None,
    out_dir: Path,
    config: AppConfig,
    *,
    county: str | None = None,
) -> Path:
    artifacts = build_profile(data_path=data_path, out_dir=out_dir, config=config, county=county)
    return render_report(out_dir=out_dir, artifacts=artifacts)

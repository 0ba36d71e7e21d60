from __future__ import annotations

import logging
from pathlib import Path

import typer

from ev_dashboard.config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from ev_dashboard.logging import configure_logging
from ev_dashboard.paths import build_output_paths
from ev_dashboard.pipeline.profile import build_profile, load_dashboard_artifacts
from ev_dashboard.pipeline.run_all import run_all
from ev_dashboard.report.render import render_report

LOGGER = logging.getLogger(__name__)

app = typer.Typer(no_args_is_help=True, add_completion=False)


def _load_app_config(config_path: Path) -> AppConfig:
    return load_config(config_path)


def _require_data_path(csv: Path | None, cfg: AppConfig) -> Path | None:
    if csv is None and not cfg.input.data_path:
        raise typer.BadParameter(
            "Missing --csv. Pass the vehicle population export or set input.data_path "
            "(or EV_DASHBOARD_DATA_CSV)."
        )
    return csv


@app.command()
def profile(
    csv: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    county: str | None = typer.Option(
        None, help="Restrict every chart to one county ('all' for no filter)."
    ),
    log_level: str = typer.Option("INFO", help="Logging level."),
) -> None:
    """Build dashboard summary tables and figures from the vehicle export."""
    configure_logging(log_level)
    cfg = _load_app_config(config)
    csv = _require_data_path(csv=csv, cfg=cfg)
    paths = build_output_paths(out)
    artifacts = build_profile(data_path=csv, out_dir=paths.root, config=cfg, county=county)
    typer.echo(f"Profile complete. Tables: {', '.join(sorted(artifacts.keys()))}")


@app.command()
def report(
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    log_level: str = typer.Option("INFO", help="Logging level."),
) -> None:
    """Render dashboard.html from tables already written to out/."""
    configure_logging(log_level)
    cfg = _load_app_config(config)
    paths = build_output_paths(out)
    artifacts = load_dashboard_artifacts(out_dir=paths.root, config=cfg)
    if not artifacts:
        LOGGER.warning("No tables found under %s; run 'profile' first", paths.tables)
    report_path = render_report(out_dir=paths.root, artifacts=artifacts)
    typer.echo(f"Report written to: {report_path}")


@app.command("run-all")
def run_all_command(
    csv: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    county: str | None = typer.Option(
        None, help="Restrict every chart to one county ('all' for no filter)."
    ),
    log_level: str = typer.Option("INFO", help="Logging level."),
) -> None:
    """Build tables and figures, then render the HTML dashboard."""
    configure_logging(log_level)
    cfg = _load_app_config(config)
    csv = _require_data_path(csv=csv, cfg=cfg)
    paths = build_output_paths(out)
    report_path = run_all(data_path=csv, out_dir=paths.root, config=cfg, county=county)
    typer.echo(f"Dashboard written to: {report_path}")


if __name__ == "__main__":
    app()

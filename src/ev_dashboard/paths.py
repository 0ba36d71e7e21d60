from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

REPORT_FILENAME = "dashboard.html"
SUMMARY_FILENAME = "dashboard_summary.json"


@dataclass(frozen=True)
class OutputPaths:
    root: Path
    tables: Path
    stacks: Path
    figures: Path
    summary: Path

    @property
    def report(self) -> Path:
        return self.root / REPORT_FILENAME

    def table(self, name: str, fmt: str) -> Path:
        return self.tables / f"{name}.{fmt}"

    def stack(self, name: str, fmt: str) -> Path:
        return self.stacks / f"{name}.{fmt}"

    def figure(self, name: str, fmt: str) -> Path:
        return self.figures / f"{name}.{fmt}"


def build_output_paths(out_dir: Path) -> OutputPaths:
    """Lay out ``out_dir`` as tables/, tables/stacks/, figures/ and summary/."""
    tables = out_dir / "tables"
    paths = OutputPaths(
        root=out_dir,
        tables=tables,
        stacks=tables / "stacks",
        figures=out_dir / "figures",
        summary=out_dir / "summary",
    )
    for path in (paths.stacks, paths.figures, paths.summary):
        path.mkdir(parents=True, exist_ok=True)
    return paths

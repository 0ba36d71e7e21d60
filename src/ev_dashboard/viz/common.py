from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt

EV_TYPE_COLORS = {"BEV": "#ffc107", "PHEV": "#a56eff", "bev": "#ffc107", "phev": "#a56eff"}
ELIGIBILITY_COLORS = {"eligible": "#3ddbd9", "ineligible": "#012749", "unresearched": "red"}
BAR_COLOR = "#fa4d56"


def save_figure(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    plt.tight_layout()
    plt.savefig(path)
    plt.close()
    return path

"""Grouped bar chart of build time and asset sizes per scenario."""
from __future__ import annotations
import math
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

from .report import AssetFamily, ReportOptions, delta_percent, family_sizes
from .types import ScenarioResult

# Tableau 10 Palette
COLOR_LIST = [
    "#1f77b4",  # blue
    "#ff7f0e",  # orange
    "#2ca02c",  # green
    "#d62728",  # red
    "#9467bd",  # purple
    "#8c564b",  # brown
]


def _get_scale_and_unit(max_val: float) -> Tuple[float, str]:
    if max_val >= 1e9: return 1e9, 'GB'
    if max_val >= 1e6: return 1e6, 'MB'
    if max_val >= 1e3: return 1e3, 'KB'
    return 1.0, 'B'


def _family_table(results: Mapping[str, ScenarioResult],
                  options: ReportOptions) -> Tuple[List[AssetFamily], Dict[str, Dict[AssetFamily, int]]]:
    families: List[AssetFamily] = []
    table: Dict[str, Dict[AssetFamily, int]] = {}
    for name, result in results.items():
        table[name] = family_sizes(result, options)
        for fam in table[name]:
            if fam not in families:
                families.append(fam)
    return families, table


def _label_bars(ax, bars, texts: List[str]) -> None:
    for rect, txt in zip(bars, texts):
        if not txt:
            continue
        height = rect.get_height()
        if not math.isfinite(height):
            continue
        ax.text(rect.get_x() + rect.get_width() / 2.0, height,
                txt, ha='center', va='bottom', fontsize=7)


def plot_results(results: Mapping[str, ScenarioResult], out_file: Path,
                 options: Optional[ReportOptions] = None, title: Optional[str] = None) -> Path:
    """Render time and size comparisons to out_file (format from the suffix, svg by default)."""
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    options = options or ReportOptions()
    out_file = Path(out_file)
    names = list(results.keys())
    families, table = _family_table(results, options)

    fig, (ax_time, ax_size) = plt.subplots(
        1, 2, figsize=(max(8, 3 + len(names) * 1.2 + len(families) * 1.5), 5),
        gridspec_kw={"width_ratios": [1, max(len(families), 1)]})

    # Build time, one bar per scenario
    times = [results[n].elapsed_ms / 1000.0 for n in names]
    min_time = min(times) if times else 0.0
    positions = list(range(len(names)))
    bars = ax_time.bar(positions, times, edgecolor="#333333",
                       color=[COLOR_LIST[i % len(COLOR_LIST)] for i in positions])
    _label_bars(ax_time, bars, [delta_percent(min_time, t) for t in times])
    ax_time.set_xticks(positions)
    ax_time.set_xticklabels(names, rotation=30, ha='right', fontsize=8)
    ax_time.set_ylabel("Build time (s)")
    ax_time.grid(axis='y', linestyle='--', alpha=0.3)

    # Asset sizes, grouped by family with one bar per scenario
    y_max = max((s for row in table.values() for s in row.values()), default=0)
    scale, unit = _get_scale_and_unit(y_max)
    n_names = len(names)
    width = 0.8 / max(n_names, 1)
    base_positions = list(range(len(families)))
    min_sizes = {
        fam: min(row[fam] for row in table.values() if fam in row) for fam in families
    }
    for idx, name in enumerate(names):
        row = table[name]
        vals = [row[f] / scale if f in row else float('nan') for f in families]
        texts = [delta_percent(min_sizes[f], row[f]) if f in row else "" for f in families]
        pos = [p + idx * width for p in base_positions]
        bars = ax_size.bar(pos, vals, width=width, label=name, edgecolor="#333333",
                           color=COLOR_LIST[idx % len(COLOR_LIST)])
        _label_bars(ax_size, bars, texts)
    centers = [p + (n_names - 1) * width / 2 for p in base_positions]
    ax_size.set_xticks(centers)
    ax_size.set_xticklabels([f.key for f in families], rotation=30, ha='right', fontsize=8)
    ax_size.set_ylabel(f"Size ({unit})")
    ax_size.grid(axis='y', linestyle='--', alpha=0.3)
    if names:
        ax_size.legend(loc='best', fontsize=8)

    if title:
        fig.suptitle(title, fontsize=14)
    fig.tight_layout()
    fmt = out_file.suffix.lstrip(".") or "svg"
    out_file.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_file, format=fmt)
    plt.close(fig)
    return out_file

"""Comparison table of build time and asset sizes across scenarios.

Every value is shown next to its delta against the smallest value observed
for the same column, so the best scenario always reads `+0%`.

Asset files are compared by *family*: the file name with its content hash
removed. Minifiers change the hash, so `vendor-abc123.js` in one scenario and
`vendor-def456.js` in another are the same asset (`vendor.js`).
"""
from __future__ import annotations
import dataclasses as dc
import re
from fnmatch import fnmatch
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .types import ScenarioResult
from .utils import format_duration, format_size

# Hex content hash; requires a digit so words like "facade" survive
_HASH_RE = re.compile(r"^(?=.*\d)[0-9a-f]{6,}$", re.IGNORECASE)
_TRAILING_HASH_RE = re.compile(r"-(?=[0-9a-f]*\d)[0-9a-f]{6,}$", re.IGNORECASE)
_EXT_RE = re.compile(r"^[a-z]{1,4}$", re.IGNORECASE)

DEFAULT_EXCLUDE = ("*.txt*",)
CHUNK_EXCLUDE = ("*chunk*", "*assets-fingerprint*")

Row = Tuple[str, Dict[str, str]]


@dc.dataclass(frozen=True)
class AssetFamily:
    short_name: str
    ext: str

    @property
    def key(self) -> str:
        return f"{self.short_name}{self.ext}"


def asset_family(path: str) -> AssetFamily:
    """Normalize an output file name to its asset family.

    - trailing short alphabetic segments form the extension (.js, .js.gz, .js.map)
    - hash-like segments are dropped from the rest, as is a trailing -<hash>

    >>> asset_family("dist/assets/vendor-abc123.js.gz").key
    'vendor.js.gz'
    >>> asset_family("chunk.143.7a8b9c0d.js").key
    'chunk.143.js'
    """
    parts = Path(path).name.split(".")
    ext_parts: List[str] = []
    while len(parts) > 1 and _EXT_RE.match(parts[-1]):
        ext_parts.insert(0, parts.pop())
    stem = [p for p in parts if not _HASH_RE.match(p)] or parts[:1]
    stem[-1] = _TRAILING_HASH_RE.sub("", stem[-1])
    ext = "".join(f".{e}" for e in ext_parts)
    return AssetFamily(".".join(stem), ext)


def delta_percent(minimum: float, current: float) -> str:
    """Signed percentage of `current` over `minimum`, two decimals at most."""
    if minimum <= 0:
        return "+0%" if current == minimum else "n/a"
    # + 0.0 turns -0.0 into 0.0
    diff = round((current / minimum - 1) * 100, 2) + 0.0
    text = f"{diff:.2f}".rstrip("0").rstrip(".")
    return f"{'' if diff < 0 else '+'}{text}%"


@dc.dataclass
class ReportOptions:
    # fnmatch patterns against the file name
    exclude: Sequence[str] = DEFAULT_EXCLUDE + CHUNK_EXCLUDE
    include: Sequence[str] = ()

    @classmethod
    def build(cls, show_chunks: bool = False, exclude: Sequence[str] = (),
              include: Sequence[str] = ()) -> "ReportOptions":
        base = DEFAULT_EXCLUDE if show_chunks else DEFAULT_EXCLUDE + CHUNK_EXCLUDE
        return cls(exclude=tuple(base) + tuple(exclude), include=tuple(include))

    def shows(self, path: str) -> bool:
        name = Path(path).name
        if self.include and not any(fnmatch(name, p) for p in self.include):
            return False
        return not any(fnmatch(name, p) for p in self.exclude)


def family_sizes(result: ScenarioResult, options: ReportOptions) -> Dict[AssetFamily, int]:
    out: Dict[AssetFamily, int] = {}
    for path, size in result.sizes.items():
        if not options.shows(path):
            continue
        # first match wins when two files normalize to the same family
        out.setdefault(asset_family(path), size)
    return out


def build_table(results: Mapping[str, ScenarioResult],
                options: Optional[ReportOptions] = None) -> Tuple[List[str], List[Row]]:
    options = options or ReportOptions()
    if not results:
        return [], []

    min_time = min(r.elapsed_ms for r in results.values())
    per_scenario = {name: family_sizes(r, options) for name, r in results.items()}

    families: List[AssetFamily] = []
    min_size: Dict[AssetFamily, int] = {}
    for sizes in per_scenario.values():
        for fam, size in sizes.items():
            if fam not in min_size:
                families.append(fam)
                min_size[fam] = size
            else:
                min_size[fam] = min(min_size[fam], size)

    columns = ["time", "Δt"]
    for fam in families:
        columns += [fam.key, f"{fam.short_name} Δ{fam.ext}"]

    rows: List[Row] = []
    for name, result in results.items():
        cells = {
            "time": format_duration(result.elapsed_ms),
            "Δt": delta_percent(min_time, result.elapsed_ms),
        }
        for fam, size in per_scenario[name].items():
            cells[fam.key] = format_size(size)
            cells[f"{fam.short_name} Δ{fam.ext}"] = delta_percent(min_size[fam], size)
        rows.append((name, cells))
    return columns, rows


def render_table(columns: Sequence[str], rows: Sequence[Row]) -> str:
    headers = ["(index)"] + list(columns)
    body = [[name] + [cells.get(c, "") for c in columns] for name, cells in rows]
    widths = [max(len(str(r[i])) for r in [headers] + body) for i in range(len(headers))]

    def _line(left: str, mid: str, right: str) -> str:
        return left + mid.join("─" * (w + 2) for w in widths) + right

    def _row(values: Sequence[str]) -> str:
        cells = []
        for i, (v, w) in enumerate(zip(values, widths)):
            cells.append(f" {v:<{w}} " if i == 0 else f" {v:>{w}} ")
        return "│" + "│".join(cells) + "│"

    lines = [_line("┌", "┬", "┐"), _row(headers), _line("├", "┼", "┤")]
    lines += [_row(r) for r in body]
    lines.append(_line("└", "┴", "┘"))
    return "\n".join(lines)


def format_results(results: Mapping[str, ScenarioResult], options: Optional[ReportOptions] = None) -> str:
    columns, rows = build_table(results, options)
    if not rows:
        return "No results."
    return render_table(columns, rows)

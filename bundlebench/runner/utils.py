from __future__ import annotations
from typing import List
import os
import re
import shutil
import tempfile
from pathlib import Path


# --- Sweep value parsing ---

def parse_number_list_spec(spec: str) -> List[int]:
    """Parse "1,3,7", "1..8" or "1..8:2" into a list of ints."""
    s = spec.strip()
    if not s:
        return []
    if "," in s:
        try:
            return [int(x.strip()) for x in s.split(",") if x.strip()]
        except ValueError:
            raise ValueError(f"Invalid CSV list: {spec}")
    m = re.match(r"^\s*(-?\d+)\s*\.\.\s*(-?\d+)(?::\s*(-?\d+)\s*)?$", s)
    if m:
        start = int(m.group(1))
        end = int(m.group(2))
        step = int(m.group(3)) if m.group(3) else (1 if end >= start else -1)
        if step == 0:
            raise ValueError("Range step cannot be 0")
        stop = end + 1 if step > 0 else end - 1
        return list(range(start, stop, step))
    if re.match(r"^\s*-?\d+\s*$", s):
        return [int(s)]
    raise ValueError(f"Invalid number list spec: {spec}")


# --- Humanized values ---

def format_size(num_bytes: float) -> str:
    """Decimal units with up to two decimals, e.g. 1.23 MB."""
    value = float(num_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if abs(value) < 1000 or unit == "GB":
            break
        value /= 1000
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {unit}"


def format_duration(ms: float) -> str:
    """Compact durations: 850ms, 12.3s, 1m 4.2s, 1h 2m 3s."""
    # round to the displayed precision before picking the unit
    if int(round(ms)) < 1000:
        return f"{int(round(ms))}ms"
    tenths = int(round(ms / 100))
    if tenths < 600:
        return f"{tenths / 10:.1f}s"
    if tenths < 36000:
        mins, tenths = divmod(tenths, 600)
        return f"{mins}m {tenths / 10:.1f}s"
    hours, secs = divmod(int(round(ms / 1000)), 3600)
    mins, secs = divmod(secs, 60)
    return f"{hours}h {mins}m {secs}s"


# --- Files ---

def atomic_write_text(path: Path, text: str) -> None:
    """Replace `path` via a sibling temp file; newlines are written verbatim."""
    path = Path(path)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        if path.exists():
            shutil.copymode(path, tmp)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise

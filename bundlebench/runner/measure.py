"""Build output compression and size measurement."""
from __future__ import annotations
import gzip
import logging
import shutil
from pathlib import Path
from typing import Callable, Dict, List, Sequence

import brotli

from .constants import ASSET_GLOB, COMPRESSED_EXTENSIONS
from .types import SizeReport

log = logging.getLogger(__name__)

COMPRESSORS: Dict[str, Callable[[bytes], bytes]] = {
    "gz": lambda data: gzip.compress(data, compresslevel=9),
    "br": lambda data: brotli.compress(data, quality=11),
}


def _is_compressed(path: Path) -> bool:
    return path.suffix.lstrip(".") in COMPRESSED_EXTENSIONS


def run_compressors(output_dir: Path, pattern: str = ASSET_GLOB,
                    extensions: Sequence[str] = COMPRESSED_EXTENSIONS) -> List[Path]:
    """Write a compressed sibling (<file>.<ext>) for every matched file."""
    written: List[Path] = []
    for src in sorted(Path(output_dir).glob(pattern)):
        if not src.is_file() or _is_compressed(src):
            continue
        data = src.read_bytes()
        for ext in extensions:
            try:
                compress = COMPRESSORS[ext]
            except KeyError:
                raise ValueError(f"Unsupported compression extension: {ext}") from None
            dst = src.with_name(f"{src.name}.{ext}")
            dst.write_bytes(compress(data))
            written.append(dst)
    log.debug("Wrote %d compressed files", len(written))
    return written


def measure_sizes(output_dir: Path, pattern: str = ASSET_GLOB) -> SizeReport:
    """Map each matched file to its size in bytes; no matches gives {}."""
    sizes: SizeReport = {}
    for path in sorted(Path(output_dir).glob(pattern)):
        if path.is_file():
            sizes[str(path)] = path.stat().st_size
    return sizes


def remove_output(dist_dir: Path) -> None:
    if Path(dist_dir).exists():
        shutil.rmtree(dist_dir)

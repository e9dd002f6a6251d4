"""package.json dependency edits and dependency manager detection."""
from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from .constants import DEP_MANAGERS, LOCKFILES
from .errors import EnvironmentSetupError, ManifestError
from .utils import atomic_write_text

log = logging.getLogger(__name__)

DEP_KEYS = ("dependencies", "devDependencies")

Manifest = Dict[str, Any]


def remove_dependencies(manifest: Manifest, names: Iterable[str]) -> Manifest:
    """Drop `names` from both dependency maps. Unknown names are ignored."""
    drop = set(names)
    out = dict(manifest)
    for key in DEP_KEYS:
        deps = manifest.get(key)
        if deps is None:
            continue
        out[key] = {name: ver for name, ver in deps.items() if name not in drop}
    return out


def add_dev_dependency(manifest: Manifest, name: str, version: str = "*") -> Manifest:
    out = dict(manifest)
    dev = dict(manifest.get("devDependencies") or {})
    dev[name] = version
    out["devDependencies"] = dev
    return out


def has_dependency(manifest: Manifest, name: str) -> bool:
    return any(name in (manifest.get(key) or {}) for key in DEP_KEYS)


def read_manifest(path: Path) -> Manifest:
    with open(path, "r", encoding="utf-8") as f:
        try:
            manifest = json.load(f)
        except ValueError as e:
            raise ManifestError(f"Could not parse {path}: {e}") from e
    if not isinstance(manifest, dict):
        raise ManifestError(f"{path} must contain a JSON object")
    return manifest


def write_manifest(path: Path, manifest: Manifest) -> None:
    path = Path(path)
    text = json.dumps(manifest, indent=2, ensure_ascii=False)
    # keep the file's trailing-newline convention
    if path.exists() and path.read_bytes().endswith(b"\n"):
        text += "\n"
    atomic_write_text(path, text)


def detect_dependency_manager(project_dir: Path, forced: Optional[str] = None) -> str:
    if forced:
        if forced not in DEP_MANAGERS:
            raise EnvironmentSetupError(f"{forced} not supported (expected one of {', '.join(DEP_MANAGERS)})")
        return forced
    for manager, lockfile in LOCKFILES.items():
        if (Path(project_dir) / lockfile).exists():
            log.debug("Found %s, using %s", lockfile, manager)
            return manager
    raise EnvironmentSetupError(
        "Could not determine dependency manager or dependency manager is not supported")

from __future__ import annotations
import argparse
import dataclasses as dc
import json
import logging
import shlex
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .constants import BUILD_COMMAND
from .types import RunSettings, Scenario
from .utils import parse_number_list_spec

log = logging.getLogger(__name__)


def _coerce_value(value: str) -> Any:
    """Parse a CLI value as JSON, falling back to the raw string."""
    try:
        return json.loads(value)
    except ValueError:
        return value


def parse_env_overrides(items: Optional[Sequence[str]]) -> Dict[str, str]:
    """Parse repeated KEY=VALUE items."""
    env: Dict[str, str] = {}
    for item in items or []:
        if "=" not in item:
            raise ValueError(f"Expected KEY=VALUE, got: {item}")
        k, v = item.split("=", 1)
        env[k.strip()] = v
    return env


def apply_scenario_config_overrides(scenarios: Sequence[Scenario],
                                    items: Optional[Sequence[str]] = None) -> List[Scenario]:
    """Return scenarios with per-scenario app config overrides applied.

    items: list of 'scenario:key=JSON'
    """
    per: Dict[str, Dict[str, Any]] = {}
    for item in items or []:
        if ":" not in item:
            raise ValueError(f"Expected scenario:key=value, got: {item}")
        scen_part, kv = item.split(":", 1)
        if "=" not in kv:
            raise ValueError(f"Expected scenario:key=value, got: {item}")
        k, v = kv.split("=", 1)
        per.setdefault(scen_part.strip(), {})[k.strip()] = _coerce_value(v)

    names = {sc.name for sc in scenarios}
    for scen in per:
        if scen not in names:
            log.warning("Ignoring config override for unknown scenario: %s", scen)

    out: List[Scenario] = []
    for sc in scenarios:
        extra = per.get(sc.name)
        if extra:
            sc = dc.replace(sc, app_config={**sc.app_config, **extra})
        out.append(sc)
    return out


def select_scenarios(scenarios: Sequence[Scenario], names: Optional[Sequence[str]]) -> List[Scenario]:
    if not names:
        return list(scenarios)
    unknown = set(names) - {sc.name for sc in scenarios}
    for name in sorted(unknown):
        log.warning("Unknown scenario: %s", name)
    return [sc for sc in scenarios if sc.name in names]


def load_scenarios_file(path: Path) -> List[Scenario]:
    """Load scenarios from a JSON list of {name, minifier, config} objects."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON list of scenarios")
    scs: List[Scenario] = []
    for i, entry in enumerate(data):
        if not isinstance(entry, dict) or not entry.get("name"):
            raise ValueError(f"{path}: scenario #{i} needs a name")
        config = entry.get("config") or {}
        if not isinstance(config, dict):
            raise ValueError(f"{path}: config of {entry['name']} must be an object")
        scs.append(Scenario(name=entry["name"], minifier=entry.get("minifier"), app_config=config))
    names = [sc.name for sc in scs]
    dupes = sorted({n for n in names if names.count(n) > 1})
    if dupes:
        raise ValueError(f"{path}: duplicate scenario names: {', '.join(dupes)}")
    return scs


def settings_from_args(args: argparse.Namespace) -> RunSettings:
    jobs = parse_number_list_spec(args.jobs) if getattr(args, "jobs", None) else []
    build_cmd = getattr(args, "build_command", None)
    return RunSettings(
        project_dir=Path(getattr(args, "project_dir", None) or Path.cwd()).resolve(),
        dep_manager=getattr(args, "dep_manager", None),
        jobs=jobs,
        env=parse_env_overrides(getattr(args, "env", None)),
        build_command=tuple(shlex.split(build_cmd)) if build_cmd else BUILD_COMMAND,
        timeout=getattr(args, "timeout", None),
        compress=not getattr(args, "no_compress", False),
        fail_fast=getattr(args, "fail_fast", False),
    )

#!/usr/bin/env python3
"""
Scenario runner entrypoint for bundlebench.

This file only defines CLI arguments and default scenarios; the
implementation details live under bundlebench/runner/.

Run it from the ember-cli project to benchmark (or pass --project-dir).
"""
from __future__ import annotations
import argparse
from pathlib import Path
from typing import List, Optional, Sequence
import sys

# Support running both as a module (`python -m bundlebench.run_scenarios`) and as a script
if __package__ is None or __package__ == "":
    # Add repo root to sys.path so absolute package imports work
    _REPO_ROOT = Path(__file__).resolve().parents[1]
    if str(_REPO_ROOT) not in sys.path:
        sys.path.insert(0, str(_REPO_ROOT))
    from bundlebench.runner.constants import DEP_MANAGERS, ESBUILD, SWC, TERSER
    from bundlebench.runner.types import Scenario
    from bundlebench.runner.exec import run_from_args
    from bundlebench.runner.log import setup_logging, use_color_default
else:
    from .runner.constants import DEP_MANAGERS, ESBUILD, SWC, TERSER
    from .runner.types import Scenario
    from .runner.exec import run_from_args
    from .runner.log import setup_logging, use_color_default


def default_scenarios() -> List[Scenario]:
    return [
        Scenario(
            name="Default Terser",
            minifier=TERSER,
            app_config={"ember-cli-terser": {}},
        ),
        Scenario(
            name="Terser w/ sequences/semicolons",
            minifier=TERSER,
            app_config={
                "ember-cli-terser": {
                    "terser": {
                        "compress": {"sequences": False},
                        "output": {"semicolons": False},
                    },
                },
            },
        ),
        Scenario(name="Default ESBuild", minifier=ESBUILD),
        Scenario(name="Default SWC", minifier=SWC),
    ]


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="bundlebench",
        description="Compare ember-cli production build time and asset sizes across minifier setups.")
    p.add_argument("--project-dir", type=Path, default=None,
                   help="ember-cli project to benchmark (defaults to the current directory)")
    p.add_argument("--scenario", action="append",
                   help="Scenario(s) to run; filter by scenario name")
    p.add_argument("--scenarios-file", type=Path,
                   help="JSON list of {name, minifier, config} objects replacing the default scenarios")
    p.add_argument("--scenario-config", action="append", default=[],
                   help="Override an EmberApp option for a specific scenario, scenario:key=JSON (repeatable). "
                        "Example: --scenario-config 'Default Terser:ember-cli-terser={\"enabled\":true}'")
    p.add_argument("--strict-config", action="store_true",
                   help="Fail a scenario when an overridden option is missing instead of adding it")
    p.add_argument("--jobs", help="Run every scenario once per JOBS value: CSV or range, e.g. 1,3,7 or 1..4")
    p.add_argument("--env", action="append", default=[],
                   help="Extra environment for the build, KEY=VALUE (repeatable)")
    p.add_argument("--dep-manager", choices=list(DEP_MANAGERS),
                   help="Force the dependency manager instead of detecting it from the lockfile")
    p.add_argument("--build-command", help="Build command (default: ember build --environment production)")
    p.add_argument("--timeout", type=float, help="Seconds before an install or build is killed")
    p.add_argument("--no-compress", action="store_true", help="Skip gzip/brotli post-processing")
    p.add_argument("--fail-fast", action="store_true", help="Stop after the first failed scenario")
    # Table options
    p.add_argument("--show-chunks", action="store_true", help="Include chunks and the assets fingerprint")
    p.add_argument("--exclude", action="append", default=[], help="Hide assets matching GLOB (repeatable)")
    p.add_argument("--include", action="append", default=[], help="Only show assets matching GLOB (repeatable)")
    p.add_argument("--plot-out", type=Path, help="Also render a comparison chart (svg/png by suffix)")
    p.add_argument("--dry-run", action="store_true")
    p.add_argument("-v", "--verbose", action="store_true")
    p.add_argument("--no-color", action="store_true")
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(verbose=args.verbose, use_color=use_color_default() and not args.no_color)
    return run_from_args(args, default_scenarios())


if __name__ == "__main__":
    raise SystemExit(main())

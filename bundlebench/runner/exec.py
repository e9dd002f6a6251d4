from __future__ import annotations
import argparse
import dataclasses as dc
import json
import logging
import os
import time
from typing import Dict, Iterable, List, Optional, Sequence

from .config import apply_scenario_config_overrides, load_scenarios_file, select_scenarios, settings_from_args
from .config_patch import clean_build_file, find_options_object, patch_build_file, read_build_file
from .constants import EXTRA_MINIFIERS, JOBS_ENV_VAR, MINIFIERS, NATIVE_REBUILD_DEPS
from .errors import BenchError, MeasurementError, ProcessError
from .manifest import (
    add_dev_dependency,
    detect_dependency_manager,
    has_dependency,
    read_manifest,
    remove_dependencies,
    write_manifest,
)
from .measure import measure_sizes, remove_output, run_compressors
from .process import CommandRunner, install_command, list_command, parse_listed_version, run_command
from .report import ReportOptions, format_results
from .types import RunReport, RunSettings, Scenario, ScenarioFailure, ScenarioResult, Stage

log = logging.getLogger(__name__)


def known_minifiers(scenarios: Iterable[Scenario]) -> List[str]:
    """Every minifier package that has to be absent before a scenario installs its own."""
    names: List[str] = []
    for name in list(EXTRA_MINIFIERS) + list(MINIFIERS) + [s.minifier for s in scenarios if s.minifier]:
        if name not in names:
            names.append(name)
    return names


def display_name(sc: Scenario, jobs: Optional[int]) -> str:
    if jobs is None:
        return sc.name
    return f"{JOBS_ENV_VAR}={jobs} :: {sc.name}"


class Runner:
    def __init__(self,
                 settings: RunSettings,
                 minifiers: Optional[Sequence[str]] = None,
                 run_cmd: CommandRunner = run_command,
                 strict_config: bool = False):
        self.settings = settings
        # None: derive from the scenarios passed to run()
        self.minifiers = list(minifiers) if minifiers is not None else None
        self.run_cmd = run_cmd
        # raise instead of inserting options missing from the build config
        self.strict_config = strict_config
        self.dep_manager: Optional[str] = None
        self.stage = Stage.IDLE
        self.report = RunReport()

    def _enter(self, stage: Stage) -> None:
        log.debug("%s -> %s", self.stage.value, stage.value)
        self.stage = stage

    # --- Checks that abort before any scenario runs ---

    def check_project(self) -> None:
        s = self.settings
        self.dep_manager = detect_dependency_manager(s.project_dir, s.dep_manager)
        log.info("Using %s", self.dep_manager)
        read_manifest(s.manifest_path)
        find_options_object(read_build_file(s.build_file_path), s.constructor)
        log.debug("Build output root: %s", s.dist_path)

    # --- Steps ---

    def remove_minifiers(self, names: Sequence[str]) -> None:
        path = self.settings.manifest_path
        write_manifest(path, remove_dependencies(read_manifest(path), names))

    def add_dependency(self, name: str) -> None:
        path = self.settings.manifest_path
        write_manifest(path, add_dev_dependency(read_manifest(path), name))

    def apply_config(self, sc: Scenario) -> None:
        if sc.app_config:
            patch_build_file(self.settings.build_file_path, sc.app_config, self.settings.constructor,
                             strict=self.strict_config)

    def clean_config(self, sc: Scenario) -> None:
        clean_build_file(self.settings.build_file_path, sc.app_config.keys(), self.settings.constructor)

    def install_dependencies(self) -> None:
        s = self.settings
        log.info("Installing deps with %s", self.dep_manager)
        self.run_cmd(install_command(self.dep_manager), cwd=s.project_dir, timeout=s.timeout)
        manifest = read_manifest(s.manifest_path)
        for dep in NATIVE_REBUILD_DEPS:
            if has_dependency(manifest, dep):
                log.info("Rebuilding %s....", dep)
                self.run_cmd(["npm", "rebuild", dep], cwd=s.project_dir, timeout=s.timeout)

    def print_version(self, package: str) -> None:
        try:
            proc = self.run_cmd(list_command(self.dep_manager, package), cwd=self.settings.project_dir,
                                timeout=self.settings.timeout)
        except ProcessError as e:
            log.warning("Could not list installed %s: %s", package, e)
            return
        version = parse_listed_version(proc.stdout or "", package)
        if version:
            log.info("Using %s", version)
        else:
            log.warning("%s not found in %s list output", package, self.dep_manager)

    def build_env(self, jobs: Optional[int]) -> Dict[str, str]:
        env = dict(os.environ)
        env.update(self.settings.env)
        if jobs is not None:
            env[JOBS_ENV_VAR] = str(jobs)
        return env

    def production_build(self, jobs: Optional[int] = None) -> int:
        """Run the build and return its wall time in milliseconds."""
        s = self.settings
        log.info("Running %s", " ".join(s.build_command))
        start = time.perf_counter()
        self.run_cmd(list(s.build_command), cwd=s.project_dir, env=self.build_env(jobs), timeout=s.timeout)
        return int(round((time.perf_counter() - start) * 1000))

    def measure(self) -> Dict[str, int]:
        s = self.settings
        assets = s.assets_path
        if not assets.is_dir():
            raise MeasurementError(f"Build output directory {assets} does not exist")
        if s.compress:
            log.info("Running gzip and brotli")
            run_compressors(assets, s.asset_glob)
        sizes = measure_sizes(assets, s.asset_glob)
        if not sizes:
            raise MeasurementError(f"No files matching {s.asset_glob} in {assets}")
        return sizes

    # --- Scenario lifecycle ---

    def run_scenario(self, sc: Scenario, jobs: Optional[int] = None,
                     minifiers: Sequence[str] = ()) -> ScenarioResult:
        """PREPARING -> INSTALLING -> BUILDING -> MEASURING. Cleanup is the caller's job."""
        self._enter(Stage.PREPARING)
        self.remove_minifiers(minifiers)
        remove_output(self.settings.dist_path)
        if sc.minifier:
            self.add_dependency(sc.minifier)
        self.apply_config(sc)

        self._enter(Stage.INSTALLING)
        self.install_dependencies()
        if sc.minifier:
            self.print_version(sc.minifier)

        self._enter(Stage.BUILDING)
        elapsed_ms = self.production_build(jobs)

        self._enter(Stage.MEASURING)
        return ScenarioResult(elapsed_ms=elapsed_ms, sizes=self.measure())

    def _run_one(self, sc: Scenario, name: str, jobs: Optional[int],
                 minifiers: Sequence[str]) -> Optional[ScenarioFailure]:
        failure: Optional[ScenarioFailure] = None
        try:
            result = self.run_scenario(sc, jobs, minifiers)
            self._enter(Stage.RECORDING)
            self.report.results[name] = result
        except (BenchError, OSError) as e:
            failure = ScenarioFailure(name=name, stage=self.stage, error=str(e))
            self._enter(Stage.FAILED)
            log.error("%s errored with %s", name, e)
            log.debug("Scenario %s failed during %s", name, failure.stage.value, exc_info=True)
        finally:
            # A failure here is fatal: the next scenario could not start clean
            self._enter(Stage.CLEANING)
            self.clean_config(sc)
            self._enter(Stage.IDLE)
        return failure

    def run(self, scenarios: Sequence[Scenario]) -> RunReport:
        self.report = RunReport()
        self.check_project()
        minifiers = self.minifiers if self.minifiers is not None else known_minifiers(scenarios)
        sweep: List[Optional[int]] = list(self.settings.jobs) or [None]

        for jobs in sweep:
            for sc in scenarios:
                name = display_name(sc, jobs)
                log.info("Scenario: %s", name)
                failure = self._run_one(sc, name, jobs, minifiers)
                if failure is None:
                    continue
                self.report.failures.append(failure)
                if self.settings.fail_fast:
                    log.error("Aborting remaining scenarios (--fail-fast)")
                    self.report.aborted = True
                    return self.report
        return self.report


def _scenario_asdict_json(s: Scenario) -> Dict:
    d = dc.asdict(s)
    d["app_config"] = dict(s.app_config)
    return d


def _settings_asdict_json(settings: RunSettings) -> Dict:
    d = dc.asdict(settings)
    d["project_dir"] = str(settings.project_dir)
    return d


def print_report(report: RunReport, options: ReportOptions) -> None:
    print(format_results(report.results, options))
    if report.failures:
        print("Failed scenarios:")
        for f in report.failures:
            first_line = f.error.splitlines()[0] if f.error else ""
            print(f" - {f.name} ({f.stage.value}): {first_line}")


def run_from_args(args: argparse.Namespace, scenarios: Sequence[Scenario],
                  run_cmd: CommandRunner = run_command) -> int:
    scs = list(scenarios)
    try:
        if getattr(args, "scenarios_file", None):
            scs = load_scenarios_file(args.scenarios_file)
        # minifiers of every defined scenario, also the ones filtered out below
        minifiers = known_minifiers(scs)
        scs = apply_scenario_config_overrides(scs, getattr(args, "scenario_config", None))
        scs = select_scenarios(scs, getattr(args, "scenario", None))
        settings = settings_from_args(args)
    except (ValueError, OSError) as e:
        log.error("Invalid configuration: %s", e)
        return 2
    if not scs:
        log.error("No scenarios selected")
        return 2

    options = ReportOptions.build(show_chunks=getattr(args, "show_chunks", False),
                                  exclude=getattr(args, "exclude", None) or (),
                                  include=getattr(args, "include", None) or ())

    if getattr(args, "dry_run", False):
        print("Planned runs:")
        for s in scs:
            print(json.dumps(_scenario_asdict_json(s), indent=2))
        print("Runner:", json.dumps(_settings_asdict_json(settings), indent=2))
        return 0

    runner = Runner(settings, minifiers=minifiers, run_cmd=run_cmd,
                    strict_config=getattr(args, "strict_config", False))
    try:
        runner.run(scs)
    except (BenchError, OSError) as e:
        log.critical("%s", e)
        print_report(runner.report, options)
        return 2

    print_report(runner.report, options)
    plot_out = getattr(args, "plot_out", None)
    if plot_out and runner.report.results:
        from .plotting import plot_results
        written = plot_results(runner.report.results, plot_out, options)
        print(f"Wrote: {written}")
    return 1 if runner.report.failures else 0

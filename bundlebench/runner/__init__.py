"""Scenario runner internals.

Modules:
- constants: minifier package names, default paths and commands
- types: dataclasses for Scenario, ScenarioResult and RunSettings
- errors: BenchError and the per-stage failures
- config: CLI-level settings, scenario files and per-scenario overrides
- config_patch: sets/clears options on `new EmberApp(...)` in ember-cli-build.js
- manifest: package.json dependency edits, dependency manager detection
- process: install, build and version listing subprocesses
- measure: gzip/brotli post-processing and asset sizes
- report: asset families, deltas and the comparison table
- plotting: optional matplotlib chart of a run
- exec: core orchestration logic
"""

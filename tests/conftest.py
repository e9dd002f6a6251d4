import json
import subprocess
from pathlib import Path

import pytest

from bundlebench.runner.errors import ProcessError
from bundlebench.runner.types import RunSettings


BUILD_JS = """'use strict';

const EmberApp = require('ember-cli/lib/broccoli/ember-app');

module.exports = function (defaults) {
  let app = new EmberApp(defaults, {});

  return app.toTree();
};
"""

PACKAGE_JSON = {
    "name": "my-app",
    "version": "0.0.0",
    "private": True,
    "scripts": {"build": "ember build --environment=production"},
    "dependencies": {"ember-source": "~4.4.0"},
    "devDependencies": {
        "ember-cli": "~4.4.0",
        "ember-cli-babel": "^7.26.11",
        "ember-cli-esbuild-minifier": "*",
    },
}


class FakeCommands:
    """Stands in for run_command: records calls and fakes installs and builds."""

    def __init__(self, project: Path, fail_on=None, build_outputs=None, list_stdout=None):
        self.project = project
        self.fail_on = fail_on
        self.calls = []
        self.envs = []
        self.build_snapshots = []
        self.install_snapshots = []
        self.build_outputs = build_outputs if build_outputs is not None else {
            "vendor-abc123.js": b"v" * 2000,
            "my-app-0a1b2c3d.js": b"a" * 500,
            "chunk.143.7a8b9c0d.js": b"c" * 100,
        }
        self.list_stdout = list_stdout

    def __call__(self, cmd, cwd, env=None, timeout=None):
        cmd = list(cmd)
        self.calls.append(cmd)
        self.envs.append(env)
        if cmd[1:2] == ["install"]:
            self.install_snapshots.append(json.loads((self.project / "package.json").read_text()))
            if self.fail_on == "install":
                raise ProcessError(cmd, 1, "error An unexpected error occurred")
        elif cmd[1:2] == ["list"]:
            stdout = self.list_stdout
            if stdout is None:
                stdout = f"yarn list v1.22.19\n└─ {cmd[2]}@1.2.3\nDone in 0.5s.\n"
            return subprocess.CompletedProcess(cmd, 0, stdout=stdout)
        elif cmd[:2] == ["ember", "build"]:
            self.build_snapshots.append((self.project / "ember-cli-build.js").read_text())
            if self.fail_on == "build":
                raise ProcessError(cmd, 1, "Build Error (TerserPlugin)")
            assets = self.project / "dist" / "assets"
            assets.mkdir(parents=True, exist_ok=True)
            for name, data in self.build_outputs.items():
                (assets / name).write_bytes(data)
        return subprocess.CompletedProcess(cmd, 0, stdout="")

    def commands(self, prefix):
        return [c for c in self.calls if c[:len(prefix)] == list(prefix)]


@pytest.fixture
def project(tmp_path):
    (tmp_path / "package.json").write_text(json.dumps(PACKAGE_JSON, indent=2) + "\n")
    (tmp_path / "yarn.lock").write_text("")
    (tmp_path / "ember-cli-build.js").write_text(BUILD_JS)
    return tmp_path


@pytest.fixture
def settings(project):
    return RunSettings(project_dir=project)


def read_manifest(project: Path) -> dict:
    return json.loads((project / "package.json").read_text())

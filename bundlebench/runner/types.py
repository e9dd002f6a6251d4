from __future__ import annotations
import dataclasses as dc
import enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .constants import (
    ASSET_GLOB,
    BUILD_COMMAND,
    BUILD_FILE_NAME,
    APP_CONSTRUCTOR,
    OUTPUT_ASSETS_DIR,
)
from .errors import BenchError


# Sizes are keyed by the full output file path.
SizeReport = Dict[str, int]


@dc.dataclass(frozen=True)
class Scenario:
    name: str
    # Optional: minifier package added as a devDependency for this scenario
    minifier: Optional[str] = None
    # Option key -> JSON-serializable value injected into the EmberApp options
    app_config: Mapping[str, Any] = dc.field(default_factory=dict)


@dc.dataclass
class ScenarioResult:
    elapsed_ms: int
    sizes: SizeReport = dc.field(default_factory=dict)


class Stage(enum.Enum):
    IDLE = "idle"
    PREPARING = "preparing"
    INSTALLING = "installing"
    BUILDING = "building"
    MEASURING = "measuring"
    RECORDING = "recording"
    CLEANING = "cleaning"
    FAILED = "failed"


@dc.dataclass
class ScenarioFailure:
    name: str
    stage: Stage
    error: str


@dc.dataclass
class RunReport:
    # insertion order == execution order
    results: Dict[str, ScenarioResult] = dc.field(default_factory=dict)
    failures: List[ScenarioFailure] = dc.field(default_factory=list)
    aborted: bool = False


@dc.dataclass
class RunSettings:
    project_dir: Path = dc.field(default_factory=Path.cwd)
    # npm|yarn; None means detect from lockfiles
    dep_manager: Optional[str] = None
    # Outer sweep over the JOBS build env var; empty means no sweep
    jobs: Sequence[int] = ()
    # Extra environment for the build task
    env: Dict[str, str] = dc.field(default_factory=dict)
    build_command: Sequence[str] = BUILD_COMMAND
    # Seconds; None means no limit
    timeout: Optional[float] = None
    compress: bool = True
    fail_fast: bool = False
    build_file: str = BUILD_FILE_NAME
    constructor: str = APP_CONSTRUCTOR
    output_dir: str = OUTPUT_ASSETS_DIR
    asset_glob: str = ASSET_GLOB

    @property
    def build_file_path(self) -> Path:
        return self.project_dir / self.build_file

    @property
    def manifest_path(self) -> Path:
        return self.project_dir / "package.json"

    @property
    def assets_path(self) -> Path:
        return self.project_dir / self.output_dir

    @property
    def dist_path(self) -> Path:
        """Build output root: the first segment of output_dir (dist for dist/assets)."""
        out = Path(self.output_dir)
        if out.is_absolute() or not out.parts or out.parts[0] in (".", ".."):
            raise BenchError(f"Output directory must be inside the project: {self.output_dir}")
        return self.project_dir / out.parts[0]

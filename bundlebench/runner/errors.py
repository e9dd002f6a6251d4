from __future__ import annotations
from typing import Optional, Sequence


class BenchError(RuntimeError):
    """Base class for all bundlebench errors."""


class EnvironmentSetupError(BenchError):
    """The project's dependency manager could not be determined. Fatal."""


class ConfigPatchError(BenchError):
    """The build config does not have the expected shape."""


class ManifestError(BenchError):
    """package.json is not a readable JSON object."""


class ProcessError(BenchError):
    """An external process exited non-zero or timed out."""

    def __init__(self, cmd: Sequence[str], returncode: Optional[int], output: str = "",
                 timed_out: bool = False):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.output = output
        self.timed_out = timed_out
        if timed_out:
            msg = f"`{' '.join(self.cmd)}` timed out"
        else:
            msg = f"`{' '.join(self.cmd)}` exited with {returncode}"
        tail = _tail(output)
        if tail:
            msg += f":\n{tail}"
        super().__init__(msg)


class MeasurementError(BenchError):
    """Build reported success but the expected output is missing."""


def _tail(text: str, lines: int = 20) -> str:
    if not text:
        return ""
    return "\n".join(text.rstrip().splitlines()[-lines:])

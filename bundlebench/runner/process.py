"""External processes: dependency installer, production build, version listing."""
from __future__ import annotations
import logging
import re
import shlex
import subprocess
from pathlib import Path
from typing import Callable, Dict, Optional, Sequence, Union

from .errors import ProcessError

log = logging.getLogger(__name__)

# run_command and test doubles share this signature
CommandRunner = Callable[..., subprocess.CompletedProcess]


# TimeoutExpired carries the raw bytes read before the kill
def _decode(out: Union[bytes, str, None]) -> str:
    if out is None:
        return ""
    if isinstance(out, bytes):
        return out.decode("utf-8", errors="replace")
    return out


def run_command(cmd: Sequence[str], cwd: Path, env: Optional[Dict[str, str]] = None,
                timeout: Optional[float] = None) -> subprocess.CompletedProcess:
    """Run cmd to completion; non-zero exit or timeout raises ProcessError."""
    log.debug("$ %s", " ".join(shlex.quote(c) for c in cmd))
    try:
        proc = subprocess.run(list(cmd), cwd=str(cwd), env=env, stdout=subprocess.PIPE,
                              stderr=subprocess.STDOUT, encoding="utf-8", errors="replace",
                              timeout=timeout)
    except subprocess.TimeoutExpired as e:
        # run() kills the child before re-raising
        raise ProcessError(cmd, None, _decode(e.output), timed_out=True) from e
    except FileNotFoundError as e:
        raise ProcessError(cmd, None, str(e)) from e
    if proc.returncode != 0:
        raise ProcessError(cmd, proc.returncode, proc.stdout or "")
    return proc


def install_command(manager: str) -> list:
    return [manager, "install"]


def list_command(manager: str, package: str) -> list:
    # npm and yarn both accept `list <pkg>`
    return [manager, "list", package]


def parse_listed_version(stdout: str, package: str) -> Optional[str]:
    """Return `<package>@<version>` from `npm list`/`yarn list` output.

    The last line mentioning the package wins; that is the top-level install
    in both tools' tree output.
    """
    pattern = re.compile(rf"({re.escape(package)}@[^ ]+)")
    for line in reversed(stdout.splitlines()):
        if package not in line:
            continue
        m = pattern.search(line)
        if m:
            return m.group(1)
    return None

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Sequence

from .events import log_event


class CommandFailed(RuntimeError):
    def __init__(self, cmd: Sequence[str], returncode: int, stderr: str = "") -> None:
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = stderr.strip()
        detail = f": {self.stderr}" if self.stderr else ""
        super().__init__(f"'{' '.join(self.cmd)}' exited with {returncode}{detail}")


def run_command(cmd: Sequence[str], cwd: str | Path | None = None, capture: bool = True) -> str:
    """Run a command to completion and return its stdout.

    The process working directory is never changed; ``cwd`` is handed to
    the child only. No timeout: a hung command hangs the run.
    """
    log_event("DEBUG", f"Running: {' '.join(cmd)}")
    try:
        result = subprocess.run(
            list(cmd),
            cwd=str(cwd) if cwd is not None else None,
            stdin=subprocess.DEVNULL,
            capture_output=capture,
            text=True,
        )
    except FileNotFoundError as e:
        raise CommandFailed(cmd, 127, str(e)) from e
    if result.returncode != 0:
        raise CommandFailed(cmd, result.returncode, result.stderr or "")
    return result.stdout or ""

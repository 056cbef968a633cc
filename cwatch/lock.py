from __future__ import annotations

import os
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from .events import log_event


class AlreadyRunning(RuntimeError):
    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Found {path}. Another run is probably in progress.")


@dataclass
class Lease:
    path: Path
    owned: bool
    released: bool = field(default=False)


class RunLock:
    """Single-run guard backed by a marker file.

    A marker that already exists rejects the run unless ``force`` is set.
    A forced run over someone else's marker gets a lease that does not own
    the marker, so releasing it leaves the marker in place.
    """

    def __init__(self, path: str | Path, force: bool = False) -> None:
        self.path = Path(path)
        self.force = force

    def acquire(self) -> Lease:
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            if not self.force:
                raise AlreadyRunning(self.path) from None
            log_event("WARN", f"Ignoring existing lock {self.path} (force run)")
            return Lease(path=self.path, owned=False)
        try:
            with os.fdopen(fd, "w") as fh:
                fh.write(f"{os.getpid()}\n")
        except BaseException:
            self.path.unlink(missing_ok=True)
            raise
        return Lease(path=self.path, owned=True)

    def release(self, lease: Lease) -> None:
        if lease.released:
            return
        lease.released = True
        if not lease.owned:
            return
        try:
            self.path.unlink()
        except FileNotFoundError:
            log_event("WARN", f"Lock {self.path} was already removed")


@contextmanager
def held(path: str | Path, force: bool = False) -> Iterator[Lease]:
    """Hold the run lock for the duration of the block, on every exit path."""
    guard = RunLock(path, force=force)
    lease = guard.acquire()
    try:
        yield lease
    finally:
        guard.release(lease)

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import Iterable, Protocol

from .events import log_event
from .shell import CommandFailed

MANIFEST_RE = re.compile(r"(^|/)docker-compose\.ya?ml$")


class DiffSource(Protocol):
    def diff_names(self, rev1: str, rev2: str) -> list[str]: ...


def manifest_projects(paths: Iterable[str]) -> frozenset[str]:
    """Map changed file paths to the projects whose manifest changed."""
    found: set[str] = set()
    for raw in paths:
        path = raw.strip()
        if path.startswith("./"):
            path = path[2:]
        if not MANIFEST_RE.search(path):
            continue
        parent = PurePosixPath(path).parent.as_posix()
        if parent in {"", "."}:
            # Manifest at the repository root belongs to no project.
            continue
        found.add(parent)
    return frozenset(found)


def resolve_changes(git: DiffSource, base: str, remote: str) -> frozenset[str]:
    """Projects whose manifest differs between ``base`` and ``remote``.

    Read-only. A failing diff counts as no changes.
    """
    try:
        paths = git.diff_names(base, remote)
    except CommandFailed as e:
        log_event("WARN", f"git diff {base}..{remote} failed, assuming no changes: {e}")
        return frozenset()
    return manifest_projects(paths)

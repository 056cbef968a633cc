from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

MANIFEST_NAMES = ("docker-compose.yml", "docker-compose.yaml")


@dataclass(frozen=True)
class Project:
    name: str  # directory name, also the compose project name
    path: Path
    manifest: Path


def find_manifest(directory: Path) -> Path | None:
    for name in MANIFEST_NAMES:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None


def list_projects(root: str | Path) -> list[Project]:
    """Immediate subdirectories of ``root`` that hold a compose manifest.

    Only one level deep: nested projects are not discovered.
    """
    base = Path(root).resolve()
    projects: list[Project] = []
    for entry in sorted(base.iterdir(), key=lambda p: p.name):
        if not entry.is_dir():
            continue
        manifest = find_manifest(entry)
        if manifest is None:
            continue
        projects.append(Project(name=entry.name, path=entry, manifest=manifest))
    return projects

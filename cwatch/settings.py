from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


@dataclass(frozen=True)
class Settings:
    # Layout
    repo_root: str = os.getenv("CWATCH_REPO_ROOT", ".")
    lock_file: str = os.getenv("CWATCH_LOCK_FILE", ".container-watch.lock")

    # Tracking branch
    branch: str = os.getenv("CWATCH_BRANCH", "main")
    remote: str = os.getenv("CWATCH_REMOTE", "origin")

    # Tooling
    docker_bin: str = os.getenv("CWATCH_DOCKER_BIN", "docker")
    log_level: str = os.getenv("CWATCH_LOG_LEVEL", "INFO")

    # Environment equivalent of --force-run.
    force_run: bool = _env_bool("CWATCH_FORCE_RUN", False)

    @property
    def repo_path(self) -> Path:
        return Path(self.repo_root).resolve()

    @property
    def lock_path(self) -> Path:
        p = Path(self.lock_file)
        return p if p.is_absolute() else self.repo_path / p

    @property
    def tracking_ref(self) -> str:
        return f"{self.remote}/{self.branch}"


@dataclass(frozen=True)
class RunOptions:
    """Flags for one invocation. Built once by the CLI, never mutated."""

    force_run: bool = False
    force_all: bool = False
    check_images: bool = False
    prune_images: bool = False
    ignored_images: frozenset[str] = field(default_factory=frozenset)
    ignored_projects: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def build(
        cls,
        force_run: bool = False,
        force_all: bool = False,
        check_images: bool = False,
        prune_images: bool = False,
        ignored_images: Iterable[str] = (),
        ignored_projects: Iterable[str] = (),
    ) -> "RunOptions":
        return cls(
            force_run=force_run,
            force_all=force_all,
            check_images=check_images,
            prune_images=prune_images,
            ignored_images=frozenset(x for x in ignored_images if x),
            ignored_projects=frozenset(x for x in ignored_projects if x),
        )


settings = Settings()

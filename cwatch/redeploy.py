from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from .events import log_event
from .inventory import Project
from .shell import CommandFailed


class ProjectUnavailable(RuntimeError):
    """The project directory cannot be used for running compose commands."""


class Lifecycle(Protocol):
    def pull(self, project: Project) -> None: ...

    def down(self, project: Project) -> None: ...

    def up(self, project: Project) -> None: ...


class OutcomeKind(str, Enum):
    UPDATED = "updated"
    SKIPPED_NOT_RUNNING = "skipped-not-running"
    SKIPPED_IGNORED = "skipped-ignored"
    FAILED_STEP = "failed-step"


@dataclass
class RedeployOutcome:
    project: str
    kind: OutcomeKind
    failed_steps: list[str] = field(default_factory=list)
    workflow: str = ""

    @property
    def attempted(self) -> bool:
        """A redeploy ran, whatever its individual step results."""
        if self.kind is OutcomeKind.UPDATED:
            return True
        return self.kind is OutcomeKind.FAILED_STEP and "chdir" not in self.failed_steps


def redeploy(compose: Lifecycle, project: Project) -> RedeployOutcome:
    """Pull, tear down (with orphans) and start one project.

    Every step is attempted even if an earlier one failed: a failed pull
    still lets the cached image come up, a failed teardown still lets
    fresh containers start. Only an unusable project directory raises.
    """
    if not project.path.is_dir() or not project.manifest.is_file():
        raise ProjectUnavailable(f"Cannot use project directory {project.path}")

    failed: list[str] = []

    log_event("INFO", "Pulling latest images...", project=project.name, step="pull")
    try:
        compose.pull(project)
    except CommandFailed as e:
        log_event("WARN", f"Failed to pull images: {e}", project=project.name, step="pull")
        failed.append("pull")

    log_event("INFO", "Shutting down old containers...", project=project.name, step="down")
    try:
        compose.down(project)
    except CommandFailed as e:
        log_event("WARN", f"Failed to shut down: {e}", project=project.name, step="down")
        failed.append("down")

    log_event("INFO", "Starting updated services...", project=project.name, step="up")
    try:
        compose.up(project)
    except CommandFailed as e:
        log_event("ERROR", f"Failed to restart: {e}", project=project.name, step="up")
        failed.append("up")

    if failed:
        return RedeployOutcome(project=project.name, kind=OutcomeKind.FAILED_STEP, failed_steps=failed)
    return RedeployOutcome(project=project.name, kind=OutcomeKind.UPDATED)

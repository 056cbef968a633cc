from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from .changes import resolve_changes
from .compose_ops import ComposeClient, ComposeError
from .drift import DriftVerdict, Finding, ServiceNotRunning, detect_drift
from .events import log_event
from .git_ops import GitClient
from .inventory import Project, list_projects
from .lock import held
from .probe import is_running
from .redeploy import OutcomeKind, ProjectUnavailable, RedeployOutcome, redeploy
from .settings import RunOptions, Settings
from .shell import CommandFailed

UPDATE = "update"
AUDIT = "audit"


class FatalError(RuntimeError):
    """A tracking-branch operation failed; the run must stop."""


@dataclass
class RunReport:
    outcomes: list[RedeployOutcome] = field(default_factory=list)
    changed: frozenset[str] = frozenset()
    no_changes: bool = False
    findings: dict[str, list[Finding]] = field(default_factory=dict)
    pruned_bytes: int | None = None

    def record(self, outcome: RedeployOutcome) -> RedeployOutcome:
        self.outcomes.append(outcome)
        return outcome

    def redeployed(self, workflow: str | None = None) -> list[str]:
        return [
            o.project for o in self.outcomes if o.attempted and (workflow is None or o.workflow == workflow)
        ]


class Reconciler:
    """Brings running compose projects in line with git and with their manifests.

    ``run`` holds the run lock for its whole duration, then performs the
    change-driven update, the optional image audit and the optional prune,
    in that order. Each workflow redeploys a project at most once.
    """

    def __init__(
        self,
        options: RunOptions,
        settings: Settings,
        git: GitClient | None = None,
        compose: ComposeClient | None = None,
    ) -> None:
        self.options = options
        self.settings = settings
        self.git = git or GitClient(settings.repo_path)
        self.compose = compose or ComposeClient(settings.docker_bin)

    def run(self) -> RunReport:
        report = RunReport()
        force = self.options.force_run or self.settings.force_run
        with held(self.settings.lock_path, force=force):
            self._ensure_branch()
            self.update_changed(report)
            if self.options.check_images:
                self.audit_images(report)
            if self.options.prune_images:
                self.prune(report)
            self._summarize(report)
        return report

    # --- tracking branch --------------------------------------------------

    def _ensure_branch(self) -> None:
        branch = self.settings.branch
        try:
            current = self.git.current_branch()
            if current != branch:
                log_event("INFO", f"Switching from '{current}' to '{branch}'...")
                self.git.checkout(branch)
        except CommandFailed as e:
            raise FatalError(f"Failed to checkout {branch}: {e}") from e

    def _fetch(self) -> None:
        log_event("INFO", f"Fetching latest changes from {self.settings.tracking_ref}...")
        try:
            self.git.fetch(self.settings.remote, self.settings.branch)
        except CommandFailed as e:
            raise FatalError(f"git fetch failed: {e}") from e

    def _pull(self) -> None:
        log_event("INFO", f"Pulling latest changes from {self.settings.tracking_ref}...")
        try:
            self.git.pull(self.settings.remote, self.settings.branch)
        except CommandFailed as e:
            raise FatalError(f"git pull failed: {e}") from e

    # --- helpers ----------------------------------------------------------

    def _projects(self, report: RunReport, workflow: str) -> Iterator[Project]:
        """All projects, minus the ignored ones (recorded, never probed)."""
        for project in list_projects(self.settings.repo_path):
            if project.name in self.options.ignored_projects:
                log_event("INFO", "Ignored project, skipping", project=project.name)
                report.record(RedeployOutcome(project.name, OutcomeKind.SKIPPED_IGNORED, workflow=workflow))
                continue
            yield project

    def _redeploy(self, report: RunReport, project: Project, workflow: str) -> RedeployOutcome:
        try:
            outcome = redeploy(self.compose, project)
        except ProjectUnavailable as e:
            log_event("ERROR", str(e), project=project.name, step="chdir")
            outcome = RedeployOutcome(project.name, OutcomeKind.FAILED_STEP, failed_steps=["chdir"])
        outcome.workflow = workflow
        if outcome.kind is OutcomeKind.UPDATED:
            log_event("INFO", "Updated", project=project.name)
        return report.record(outcome)

    # --- workflow A -------------------------------------------------------

    def update_changed(self, report: RunReport) -> None:
        """Redeploy running projects whose manifest changed upstream.

        With ``force_all`` every running project is redeployed and change
        detection is skipped.
        """
        force_all = self.options.force_all
        self._fetch()

        if not force_all:
            report.changed = resolve_changes(self.git, "HEAD", self.settings.tracking_ref)
            if not report.changed:
                log_event("INFO", "No compose file changes detected.")
                report.no_changes = True
                return
            log_event("INFO", f"Changed projects: {', '.join(sorted(report.changed))}")
            self._pull()
        elif self.options.check_images:
            # Audit reads the manifests.
            self._pull()

        for project in self._projects(report, UPDATE):
            if not force_all and project.name not in report.changed:
                continue
            if not is_running(self.compose, project):
                if force_all:
                    log_event("DEBUG", "Not running, skipping", project=project.name)
                else:
                    log_event("WARN", "Changed but not running. Skipping.", project=project.name)
                report.record(RedeployOutcome(project.name, OutcomeKind.SKIPPED_NOT_RUNNING, workflow=UPDATE))
                continue
            label = "FORCE-ALL" if force_all else "CHANGED"
            log_event("INFO", f"[{label}] Updating running project", project=project.name)
            self._redeploy(report, project, UPDATE)

    # --- workflow B -------------------------------------------------------

    def audit_images(self, report: RunReport) -> None:
        """Redeploy running projects whose containers run a different image than declared."""
        log_event("INFO", "Checking images for all running compose projects...")
        ignored = self.options.ignored_images
        for project in self._projects(report, AUDIT):
            if not is_running(self.compose, project):
                report.record(RedeployOutcome(project.name, OutcomeKind.SKIPPED_NOT_RUNNING, workflow=AUDIT))
                continue

            log_event("INFO", "[CHECK] Checking service images", project=project.name)
            findings = list(detect_drift(self.compose, project, ignored))
            report.findings[project.name] = findings

            mismatched: list[DriftVerdict] = []
            for f in findings:
                if isinstance(f, ServiceNotRunning):
                    log_event("WARN", f"Service '{f.service}' is not running.", project=project.name)
                elif f.matched:
                    log_event("INFO", f"[MATCH] {f.service} -> {f.actual}", project=project.name)
                else:
                    log_event(
                        "WARN",
                        f"[MISMATCH] {f.service} expected '{f.expected}' but running '{f.actual}'",
                        project=project.name,
                    )
                    mismatched.append(f)

            if mismatched:
                log_event(
                    "INFO",
                    f"[ACTION] Redeploying due to image mismatch in '{mismatched[0].service}'",
                    project=project.name,
                )
                self._redeploy(report, project, AUDIT)

    # --- prune ------------------------------------------------------------

    def prune(self, report: RunReport) -> None:
        log_event("INFO", "Pruning images...")
        try:
            report.pruned_bytes = self.compose.prune_dangling_images()
        except ComposeError as e:
            log_event("WARN", f"Image prune failed: {e}")

    def _summarize(self, report: RunReport) -> None:
        for o in report.outcomes:
            if o.kind is OutcomeKind.SKIPPED_IGNORED:
                continue
            detail = f" ({', '.join(o.failed_steps)})" if o.failed_steps else ""
            level = "DEBUG" if o.kind is OutcomeKind.SKIPPED_NOT_RUNNING else "INFO"
            log_event(level, f"{o.workflow}: {o.kind.value}{detail}", project=o.project)
        if not report.redeployed():
            log_event("INFO", "No services were updated.")

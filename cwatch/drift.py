from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Iterator, Protocol

from .compose_ops import ComposeError
from .events import log_event
from .inventory import Project
from .shell import CommandFailed


class ImageSource(Protocol):
    def resolve_images(self, project: Project) -> dict[str, str | None]: ...

    def container_id(self, project: Project, service: str) -> str | None: ...

    def inspect_image(self, container_id: str) -> str: ...


@dataclass(frozen=True)
class DriftVerdict:
    service: str
    expected: str
    actual: str

    @property
    def matched(self) -> bool:
        return self.expected == self.actual


@dataclass(frozen=True)
class ServiceNotRunning:
    service: str
    expected: str


Finding = DriftVerdict | ServiceNotRunning


def detect_drift(compose: ImageSource, project: Project, ignored_images: AbstractSet[str] = frozenset()) -> Iterator[Finding]:
    """Compare each declared service image with the image its container runs.

    Yields one ``DriftVerdict`` per comparable service and a
    ``ServiceNotRunning`` for services without a container. Services whose
    declared image is ignored yield nothing. Comparison is exact string
    equality; no digest/tag equivalence is attempted.
    """
    try:
        declared = compose.resolve_images(project)
    except (CommandFailed, ComposeError) as e:
        log_event("WARN", f"Cannot resolve compose config: {e}", project=project.name)
        return

    for service, expected in declared.items():
        if not expected:
            log_event("DEBUG", f"Service '{service}' declares no image, skipping", project=project.name)
            continue
        if expected in ignored_images:
            log_event("INFO", f"Ignoring image {expected} for service '{service}'", project=project.name)
            continue
        try:
            cid = compose.container_id(project, service)
            actual = compose.inspect_image(cid) if cid else None
        except (CommandFailed, ComposeError) as e:
            log_event("WARN", f"Cannot inspect service '{service}': {e}", project=project.name)
            cid, actual = None, None
        if not cid or actual is None:
            yield ServiceNotRunning(service=service, expected=expected)
            continue
        yield DriftVerdict(service=service, expected=expected, actual=actual)

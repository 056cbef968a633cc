from __future__ import annotations

from typing import Protocol

from .compose_ops import ComposeError
from .events import log_event
from .inventory import Project
from .shell import CommandFailed


class StatusSource(Protocol):
    def service_states(self, project: Project) -> dict[str, bool]: ...


def is_running(compose: StatusSource, project: Project) -> bool:
    """True if at least one service of the project is up.

    A project whose status cannot be read is treated as not running.
    """
    try:
        states = compose.service_states(project)
    except (CommandFailed, ComposeError) as e:
        log_event("WARN", f"Cannot read service status: {e}", project=project.name)
        return False
    return any(states.values())

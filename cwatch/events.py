from __future__ import annotations

import logging

LOGGER_NAME = "cwatch"

logger = logging.getLogger(LOGGER_NAME)

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=_LEVELS.get(level.upper(), logging.INFO),
        format="[%(levelname)s] %(message)s",
        force=True,
    )


def log_event(level: str, message: str, project: str | None = None, step: str | None = None) -> None:
    """Emit one reconciliation event.

    The project and step are prefixed to the message and attached as
    ``extra`` fields (``cwatch_project`` / ``cwatch_step``) for handlers
    that want to filter on them.
    """
    prefix = ""
    if project:
        prefix = f"[{project}{'/' + step if step else ''}] "
    logger.log(
        _LEVELS.get(level.upper(), logging.INFO),
        f"{prefix}{message}",
        extra={"cwatch_project": project, "cwatch_step": step},
    )

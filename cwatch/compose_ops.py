from __future__ import annotations

import json
from typing import Any

import docker
from docker.errors import DockerException, NotFound
from pydantic import BaseModel, Field, ValidationError
from requests.exceptions import RequestException

from .events import log_event
from .inventory import Project
from .shell import run_command

# docker-py lets transport errors (daemon gone mid-run) through as requests exceptions.
ENGINE_ERRORS = (DockerException, RequestException)


class ComposeError(RuntimeError):
    """Compose output could not be understood, or the docker API refused a call."""


class ComposeService(BaseModel):
    image: str | None = Field(None, description="Declared image after interpolation")


class ComposeConfig(BaseModel):
    """Subset of ``docker compose config --format json`` we rely on."""

    name: str | None = None
    services: dict[str, ComposeService] = Field(default_factory=dict)


class ServiceStatus(BaseModel):
    """One row of ``docker compose ps --format json``."""

    service: str = Field(..., alias="Service")
    container_id: str = Field("", alias="ID")
    state: str = Field("", alias="State")
    status: str = Field("", alias="Status")

    @property
    def is_up(self) -> bool:
        return self.state.lower() == "running" or self.status.startswith("Up")


def parse_config(raw: str) -> ComposeConfig:
    try:
        return ComposeConfig.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as e:
        raise ComposeError(f"Unreadable compose config: {e}") from e


def parse_ps(raw: str) -> list[ServiceStatus]:
    """Parse ``ps --format json`` output.

    Older compose releases print one JSON array, newer ones one object per line.
    """
    raw = raw.strip()
    if not raw:
        return []
    try:
        if raw.startswith("["):
            rows: list[Any] = json.loads(raw)
        else:
            rows = [json.loads(line) for line in raw.splitlines() if line.strip()]
        return [ServiceStatus.model_validate(r) for r in rows]
    except (json.JSONDecodeError, ValidationError) as e:
        raise ComposeError(f"Unreadable compose ps output: {e}") from e


class ComposeClient:
    """Compose CLI for project-scoped calls, docker SDK for engine-wide ones.

    CLI failures surface as ``CommandFailed``, everything else as ``ComposeError``.
    """

    def __init__(self, docker_bin: str = "docker", docker_client: docker.DockerClient | None = None) -> None:
        self.docker_bin = docker_bin
        self._docker = docker_client

    def _client(self) -> docker.DockerClient:
        if self._docker is None:
            try:
                self._docker = docker.from_env()
            except ENGINE_ERRORS as e:
                raise ComposeError(f"Docker is not available: {e}") from e
        return self._docker

    def _compose(self, project: Project, *args: str, scoped: bool = True, capture: bool = True) -> str:
        cmd = [self.docker_bin, "compose"]
        if scoped:
            cmd += ["-p", project.name]
        cmd += ["-f", str(project.manifest), *args]
        return run_command(cmd, cwd=project.path, capture=capture)

    # --- inspection -----------------------------------------------------

    def resolve_images(self, project: Project) -> dict[str, str | None]:
        """Declared image per service, after variable interpolation."""
        cfg = parse_config(self._compose(project, "config", "--format", "json", scoped=False))
        return {name: svc.image for name, svc in cfg.services.items()}

    def service_states(self, project: Project) -> dict[str, bool]:
        """Service name -> whether at least one of its containers is up."""
        states: dict[str, bool] = {}
        for row in parse_ps(self._compose(project, "ps", "--all", "--format", "json")):
            states[row.service] = states.get(row.service, False) or row.is_up
        return states

    def container_id(self, project: Project, service: str) -> str | None:
        out = self._compose(project, "ps", "-q", service)
        ids = [line.strip() for line in out.splitlines() if line.strip()]
        return ids[0] if ids else None

    def inspect_image(self, container_id: str) -> str:
        """Image reference the container was created from (``Config.Image``)."""
        try:
            cont = self._client().containers.get(container_id)
        except NotFound as e:
            raise ComposeError(f"Container {container_id} disappeared") from e
        except ENGINE_ERRORS as e:
            raise ComposeError(f"Cannot inspect container {container_id}: {e}") from e
        image = (cont.attrs.get("Config") or {}).get("Image")
        if not image:
            raise ComposeError(f"Container {container_id} reports no image")
        return image

    # --- lifecycle ------------------------------------------------------

    def pull(self, project: Project) -> None:
        self._compose(project, "pull", capture=False)

    def down(self, project: Project) -> None:
        self._compose(project, "down", "--remove-orphans", capture=False)

    def up(self, project: Project) -> None:
        self._compose(project, "up", "-d", capture=False)

    def prune_dangling_images(self) -> int:
        """Remove dangling images engine-wide. Returns reclaimed bytes."""
        try:
            result = self._client().images.prune(filters={"dangling": True})
        except ENGINE_ERRORS as e:
            raise ComposeError(f"Image prune failed: {e}") from e
        deleted = result.get("ImagesDeleted") or []
        reclaimed = int(result.get("SpaceReclaimed") or 0)
        log_event("INFO", f"Pruned {len(deleted)} image layer(s), reclaimed {reclaimed} bytes")
        return reclaimed

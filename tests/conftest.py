import os as _os
import sys

import pytest

# Ensure project root is importable (so `import cwatch` and `import cli` work without installing)
_project_root = _os.path.dirname(_os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from cwatch.compose_ops import ComposeError  # noqa: E402
from cwatch.inventory import Project  # noqa: E402
from cwatch.settings import Settings  # noqa: E402
from cwatch.shell import CommandFailed  # noqa: E402


class FakeGit:
    """In-memory stand-in for GitClient."""

    def __init__(self, branch="main", diff=None, fail=()):
        self.branch = branch
        self.diff = list(diff or [])
        self.fail = set(fail)
        self.calls = []

    def _maybe_fail(self, op):
        self.calls.append(op)
        if op in self.fail:
            raise CommandFailed(["git", op], 1, f"{op} broke")

    def current_branch(self):
        self._maybe_fail("rev-parse")
        return self.branch

    def checkout(self, branch):
        self._maybe_fail("checkout")
        self.branch = branch

    def fetch(self, remote, branch):
        self._maybe_fail("fetch")

    def diff_names(self, rev1, rev2):
        self._maybe_fail("diff")
        return list(self.diff)

    def pull(self, remote, branch):
        self._maybe_fail("pull")


class FakeCompose:
    """In-memory stand-in for ComposeClient.

    ``services`` maps project -> {service: declared image}; ``containers``
    maps (project, service) -> running image. A project is up when it has
    at least one container.
    """

    def __init__(self):
        self.services = {}
        self.containers = {}
        self.fail = {}  # project -> set of lifecycle steps that fail
        self.calls = []
        self.pruned = 0

    def add(self, name, services, running=None):
        self.services[name] = dict(services)
        for svc, image in (running or {}).items():
            self.containers[(name, svc)] = image

    def _record(self, op, project):
        self.calls.append((op, project.name))
        if op in self.fail.get(project.name, set()):
            raise CommandFailed(["docker", "compose", op], 1, f"{op} broke")

    def probed(self):
        return [name for op, name in self.calls if op == "ps"]

    def redeploys(self, name=None):
        return [n for op, n in self.calls if op == "up" and (name is None or n == name)]

    def resolve_images(self, project):
        self._record("config", project)
        return dict(self.services.get(project.name, {}))

    def service_states(self, project):
        self._record("ps", project)
        return {svc: (project.name, svc) in self.containers for svc in self.services.get(project.name, {})}

    def container_id(self, project, service):
        if (project.name, service) in self.containers:
            return f"{project.name}-{service}-1"
        return None

    def inspect_image(self, container_id):
        for (name, svc), image in self.containers.items():
            if f"{name}-{svc}-1" == container_id:
                return image
        raise ComposeError(f"no such container {container_id}")

    def pull(self, project):
        self._record("pull", project)

    def down(self, project):
        self._record("down", project)

    def up(self, project):
        self._record("up", project)

    def prune_dangling_images(self):
        self.calls.append(("prune", None))
        self.pruned += 1
        return 1024


@pytest.fixture
def make_project(tmp_path):
    def _make(name, manifest="docker-compose.yml"):
        d = tmp_path / name
        d.mkdir()
        m = d / manifest
        m.write_text("services: {}\n")
        return Project(name=name, path=d, manifest=m)

    return _make


@pytest.fixture
def settings(tmp_path):
    return Settings(repo_root=str(tmp_path), lock_file=".container-watch.lock", branch="main", remote="origin")


@pytest.fixture
def git():
    return FakeGit()


@pytest.fixture
def compose():
    return FakeCompose()

from conftest import FakeCompose

from cwatch.probe import is_running
from cwatch.shell import CommandFailed


def test_running_if_any_service_is_up(make_project):
    project = make_project("web")
    compose = FakeCompose()
    compose.add("web", {"app": "nginx:1.25", "worker": "busybox:1"}, running={"worker": "busybox:1"})

    assert is_running(compose, project) is True


def test_not_running_without_containers(make_project):
    project = make_project("web")
    compose = FakeCompose()
    compose.add("web", {"app": "nginx:1.25"})

    assert is_running(compose, project) is False


def test_unreadable_status_counts_as_not_running(make_project, monkeypatch):
    project = make_project("web")
    compose = FakeCompose()
    compose.add("web", {"app": "nginx:1.25"}, running={"app": "nginx:1.25"})

    def _broken(p):
        raise CommandFailed(["docker", "compose", "ps"], 1, "no such file")

    monkeypatch.setattr(compose, "service_states", _broken)

    assert is_running(compose, project) is False

import shutil
import subprocess

import pytest
from conftest import FakeGit

from cwatch.changes import manifest_projects, resolve_changes
from cwatch.git_ops import GitClient


def _git(repo, *args):
    subprocess.run(
        ["git", "-c", "user.name=cwatch", "-c", "user.email=cwatch@example.invalid", "-c", "commit.gpgsign=false", *args],
        cwd=repo,
        check=True,
        capture_output=True,
    )


def test_maps_manifest_paths_to_project_names():
    paths = [
        "web/docker-compose.yml",
        "web/nginx.conf",
        "./db/docker-compose.yaml",
        "README.md",
        "cache/docker-compose.yml.bak",
        "web/docker-compose.yml",
    ]

    assert manifest_projects(paths) == frozenset({"web", "db"})


def test_root_manifest_belongs_to_no_project():
    assert manifest_projects(["docker-compose.yml"]) == frozenset()


def test_similar_filenames_do_not_match():
    assert manifest_projects(["web/my-docker-compose.yml", "web/docker-compose.json"]) == frozenset()


def test_resolve_uses_revisions_given():
    git = FakeGit(diff=["api/docker-compose.yml", "api/.env"])

    assert resolve_changes(git, "HEAD", "origin/main") == frozenset({"api"})
    assert git.calls == ["diff"]


def test_empty_diff_is_no_changes():
    assert resolve_changes(FakeGit(diff=[]), "HEAD", "origin/main") == frozenset()


def test_failing_diff_is_no_changes():
    git = FakeGit(diff=["api/docker-compose.yml"], fail={"diff"})

    assert resolve_changes(git, "HEAD", "origin/main") == frozenset()


@pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
def test_non_ascii_project_directory_is_detected(tmp_path):
    _git(tmp_path, "init", "-q")
    (tmp_path / "README.md").write_text("fleet\n")
    _git(tmp_path, "add", ".")
    _git(tmp_path, "commit", "-q", "-m", "init")

    for name in ("café", "web"):
        (tmp_path / name).mkdir()
        (tmp_path / name / "docker-compose.yml").write_text("services: {}\n")
    _git(tmp_path, "add", ".")
    _git(tmp_path, "commit", "-q", "-m", "add projects")

    git = GitClient(tmp_path)

    assert sorted(git.diff_names("HEAD~1", "HEAD")) == ["café/docker-compose.yml", "web/docker-compose.yml"]
    assert resolve_changes(git, "HEAD~1", "HEAD") == frozenset({"café", "web"})

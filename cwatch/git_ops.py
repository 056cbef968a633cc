from __future__ import annotations

from pathlib import Path

from .shell import run_command


class GitClient:
    """Thin wrapper over the git CLI, scoped to one checkout.

    Every method raises ``CommandFailed`` on a non-zero exit; callers decide
    whether that is fatal.
    """

    def __init__(self, repo_root: str | Path, git_bin: str = "git") -> None:
        self.repo_root = Path(repo_root)
        self.git_bin = git_bin

    def _git(self, *args: str) -> str:
        return run_command([self.git_bin, *args], cwd=self.repo_root)

    def current_branch(self) -> str:
        return self._git("rev-parse", "--abbrev-ref", "HEAD").strip()

    def checkout(self, branch: str) -> None:
        self._git("checkout", branch)

    def fetch(self, remote: str, branch: str) -> None:
        self._git("fetch", remote, branch)

    def diff_names(self, rev1: str, rev2: str) -> list[str]:
        # -z: paths come back raw, without core.quotepath escaping of non-ASCII names.
        out = self._git("diff", "--name-only", "-z", f"{rev1}..{rev2}")
        return [p for p in out.split("\0") if p]

    def pull(self, remote: str, branch: str) -> None:
        self._git("pull", remote, branch)

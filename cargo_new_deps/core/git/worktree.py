from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from cargo_new_deps.core.errors import SnapshotError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Worktree:
    path: Path
    commit: str


def find_repo_root(start: str | Path | None = None) -> Path:
    p = Path(start or os.getcwd()).resolve()
    for parent in [p] + list(p.parents):
        if (parent / ".git").exists():
            return parent
    return p


def _git(args: list[str], cwd: Path) -> subprocess.CompletedProcess[str]:
    try:
        return subprocess.run(
            ["git", *args],
            cwd=str(cwd),
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as e:
        raise SnapshotError(code="E_GIT_NOT_FOUND", message="could not start command git") from e


def git_default_branch(repo_root: Path) -> str:
    """Return the remote default branch, e.g. ``refs/remotes/origin/main``."""
    proc = _git(["symbolic-ref", "refs/remotes/origin/HEAD"], repo_root)
    if proc.returncode != 0:
        raise SnapshotError(
            code="E_GIT_DEFAULT_BRANCH",
            message="could not get default branch: " + (proc.stderr or "").strip(),
            file=str(repo_root),
        )
    return proc.stdout.strip()


@contextmanager
def temp_worktree(
    repo_root: Path, commit: str, prefix: str = "cargo-new-deps-"
) -> Iterator[Worktree]:
    """Check ``commit`` out into a detached worktree that is removed on exit."""
    base_dir = Path(tempfile.mkdtemp(prefix=prefix))
    try:
        proc = _git(["worktree", "add", "--detach", str(base_dir), commit], repo_root)
        if proc.returncode != 0:
            raise SnapshotError(
                code="E_GIT_WORKTREE",
                message="git working tree creation failed: "
                + ((proc.stdout or "") + (proc.stderr or "")).strip(),
                file=str(repo_root),
                path=commit,
            )
        logger.debug("checked out %s into %s", commit, base_dir)

        yield Worktree(path=base_dir, commit=commit)
    finally:
        if shutil.which("git"):
            proc = subprocess.run(
                ["git", "worktree", "remove", "--force", str(base_dir)],
                cwd=str(repo_root),
                capture_output=True,
                text=True,
            )
            if proc.returncode != 0:
                logger.debug("git worktree remove failed: %s", (proc.stderr or "").strip())
        shutil.rmtree(base_dir, ignore_errors=True)

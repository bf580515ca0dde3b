from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from cargo_new_deps.core.git.worktree import find_repo_root, git_default_branch, temp_worktree
from cargo_new_deps.core.io.cargo import run_cargo_metadata
from cargo_new_deps.core.io.load_metadata import (
    is_cargo_metadata,
    load_metadata_file,
    parse_metadata,
)
from cargo_new_deps.core.io.load_snapshot import load_snapshot_file, parse_snapshot
from cargo_new_deps.core.model import Graph


logger = logging.getLogger(__name__)


def load_graph_file(path: str | Path) -> Graph:
    """Load either a cargo metadata JSON dump or a YAML/JSON snapshot file."""
    p = Path(path)
    if p.suffix.lower() == ".json":
        data = load_metadata_file(p)
        if is_cargo_metadata(data):
            return parse_metadata(data, file=str(p))
        return parse_snapshot(data, file=str(p))
    return parse_snapshot(load_snapshot_file(p), file=str(p))


def graph_from_workdir(cwd: Optional[Path] = None) -> Graph:
    workdir = Path(cwd or os.getcwd())
    return parse_metadata(run_cargo_metadata(workdir), file=str(workdir))


def graph_from_commit(commit: str, cwd: Optional[Path] = None) -> Graph:
    """Resolve the graph as of ``commit``, from the same sub-directory of the repo."""
    workdir = Path(cwd or os.getcwd()).resolve()
    repo_root = find_repo_root(workdir)
    rel = workdir.relative_to(repo_root)

    with temp_worktree(repo_root, commit) as wt:
        data = run_cargo_metadata(wt.path / rel)
    return parse_metadata(data, file=f"{commit}:{rel.as_posix()}")


def load_before(
    from_json: Optional[str] = None,
    from_commit: Optional[str] = None,
    cwd: Optional[Path] = None,
) -> Graph:
    if from_json:
        return load_graph_file(from_json)
    if from_commit:
        return graph_from_commit(from_commit, cwd)
    commit = git_default_branch(find_repo_root(cwd))
    logger.debug("comparing against default branch %s", commit)
    return graph_from_commit(commit, cwd)


def load_after(
    to_json: Optional[str] = None,
    to_commit: Optional[str] = None,
    cwd: Optional[Path] = None,
) -> Graph:
    if to_json:
        return load_graph_file(to_json)
    if to_commit:
        return graph_from_commit(to_commit, cwd)
    return graph_from_workdir(cwd)

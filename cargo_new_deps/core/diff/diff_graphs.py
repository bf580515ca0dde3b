from __future__ import annotations

import logging
from typing import Literal

from cargo_new_deps.core.errors import InconsistentGraph
from cargo_new_deps.core.model import AttributedAddition, Graph, PackageId


logger = logging.getLogger(__name__)

VersionBumpPolicy = Literal["report", "ignore"]
VERSION_BUMP_POLICIES: tuple[str, ...] = ("report", "ignore")


def added_ids(
    before: Graph, after: Graph, version_bumps: VersionBumpPolicy = "report"
) -> list[PackageId]:
    """Package ids present only in ``after``, sorted by (name, version).

    With ``version_bumps="ignore"`` a new version of a name that ``before``
    already has is not counted as an addition.
    """
    if version_bumps not in VERSION_BUMP_POLICIES:
        raise ValueError(
            f"unknown version bump policy: {version_bumps} "
            f"(choose one of: {', '.join(VERSION_BUMP_POLICIES)})"
        )

    added = after.node_ids() - before.node_ids()
    if version_bumps == "ignore":
        known_names = {pid.name for pid in before.node_ids()}
        bumped = {pid for pid in added if pid.name in known_names}
        if bumped:
            logger.debug("ignoring %d version bump(s): %s", len(bumped), sorted(map(str, bumped)))
        added -= bumped

    return sorted(added, key=lambda pid: (pid.name, pid.version))


def diff_graphs(
    before: Graph, after: Graph, version_bumps: VersionBumpPolicy = "report"
) -> list[AttributedAddition]:
    """Attribute every added package to its direct dependents in ``after``.

    Raises on the first malformed package; never returns a partial list.
    """
    out: list[AttributedAddition] = []
    for pid in added_ids(before, after, version_bumps):
        names = _dependent_names(after, pid)
        if not names:
            raise InconsistentGraph(
                code="E_ORPHAN_PACKAGE",
                message=f"added package {pid} has no dependents in the new graph",
            )
        out.append(
            AttributedAddition(
                package_id=pid,
                features=after.features_of(pid),
                dependents=names,
            )
        )

    logger.debug(
        "%d package(s) in before, %d in after, %d added",
        len(before.nodes_by_id),
        len(after.nodes_by_id),
        len(out),
    )
    return out


def _dependent_names(graph: Graph, pid: PackageId) -> tuple[str, ...]:
    names: list[str] = []
    for dependent in graph.dependents_of(pid):
        name = graph.dependent_name(dependent)
        if name not in names:
            names.append(name)
    return tuple(names)

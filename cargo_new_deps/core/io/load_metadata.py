from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from cargo_new_deps.core.errors import InconsistentGraph, MetadataLoadError
from cargo_new_deps.core.model import Edge, Graph, PackageId


logger = logging.getLogger(__name__)


def load_metadata_file(path: str | Path) -> dict[str, Any]:
    """Read a ``cargo metadata --format-version 1`` JSON document.

    Only checks that it is a JSON object; :func:`parse_metadata` owns the shape.
    """

    p = Path(path)
    if not p.exists():
        raise MetadataLoadError(
            code="E_FILE_NOT_FOUND",
            message="file does not exist",
            file=str(p),
        )

    try:
        raw_text = p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise MetadataLoadError(code="E_FILE_READ", message=str(e), file=str(p)) from e

    return loads_metadata(raw_text, file=str(p))


def loads_metadata(raw_text: str, file: Optional[str] = None) -> dict[str, Any]:
    try:
        data = json.loads(raw_text)
    except json.JSONDecodeError as e:
        raise MetadataLoadError(code="E_JSON_PARSE", message=str(e), file=file) from e

    if not isinstance(data, dict):
        raise MetadataLoadError(
            code="E_INVALID_TOP_LEVEL",
            message="top-level document must be an object",
            file=file,
        )
    return data


def is_cargo_metadata(data: dict[str, Any]) -> bool:
    return "packages" in data and "workspace_members" in data


def parse_metadata(data: dict[str, Any], file: Optional[str] = None) -> Graph:
    """Convert cargo metadata into a Graph.

    Workspace members are never nodes: they only show up as dependents, and
    edges between members are dropped. Packages sharing a name and version
    (different sources) collapse into one node with the union of features.
    """

    packages = data.get("packages")
    if not isinstance(packages, list):
        raise MetadataLoadError(
            code="E_INVALID_TOP_LEVEL",
            message="packages must be an array",
            file=file,
            path="packages",
        )

    resolve = data.get("resolve")
    if not isinstance(resolve, dict) or not isinstance(resolve.get("nodes"), list):
        raise MetadataLoadError(
            code="E_METADATA_NO_RESOLVE",
            message="metadata has no resolve graph (was it generated with --no-deps?)",
            file=file,
            path="resolve",
        )

    members = {m for m in data.get("workspace_members") or [] if isinstance(m, str)}

    ids: dict[str, PackageId] = {}
    for i, pkg in enumerate(packages):
        if not isinstance(pkg, dict):
            raise MetadataLoadError(
                code="E_METADATA_INVALID_PACKAGE",
                message="package must be an object",
                file=file,
                path=f"packages[{i}]",
            )
        raw_id, name, version = pkg.get("id"), pkg.get("name"), pkg.get("version")
        if not all(isinstance(v, str) and v for v in (raw_id, name, version)):
            raise MetadataLoadError(
                code="E_METADATA_INVALID_PACKAGE",
                message="package needs non-empty string id, name and version",
                file=file,
                path=f"packages[{i}]",
            )
        ids[raw_id] = PackageId(name=name, version=version)

    resolve_nodes: list[dict[str, Any]] = resolve["nodes"]
    features: dict[PackageId, set[str]] = {}
    for i, rnode in enumerate(resolve_nodes):
        rid = rnode.get("id") if isinstance(rnode, dict) else None
        if rid not in ids:
            raise MetadataLoadError(
                code="E_METADATA_UNKNOWN_PACKAGE",
                message=f"resolve node references unknown package: {rid}",
                file=file,
                path=f"resolve.nodes[{i}]",
            )
        if rid in members:
            continue
        pid = ids[rid]
        if pid in features:
            logger.debug("merging duplicate package identity %s (%s)", pid, rid)
        features.setdefault(pid, set()).update(
            f for f in rnode.get("features") or [] if isinstance(f, str)
        )

    edges: list[Edge] = []
    for i, rnode in enumerate(resolve_nodes):
        dependent = ids[rnode["id"]]
        for dep_rid in _resolved_dependencies(rnode):
            if dep_rid in members:
                continue
            if dep_rid not in ids:
                raise InconsistentGraph(
                    code="E_DANGLING_EDGE",
                    message=f"{dependent} depends on unknown package: {dep_rid}",
                    file=file,
                    path=f"resolve.nodes[{i}]",
                )
            edges.append((dependent, ids[dep_rid]))

    root_name = "root"
    root_id = resolve.get("root")
    if isinstance(root_id, str) and root_id in ids:
        root_name = ids[root_id].name

    try:
        return Graph.build(features, edges, root_name=root_name)
    except InconsistentGraph as e:
        raise InconsistentGraph(code=e.code, message=e.message, file=file, path=e.path) from e


def _resolved_dependencies(rnode: dict[str, Any]) -> list[str]:
    # Newer cargo emits "deps" with renames and kinds; "dependencies" is the flat id list.
    deps = rnode.get("deps")
    if isinstance(deps, list):
        return [d["pkg"] for d in deps if isinstance(d, dict) and isinstance(d.get("pkg"), str)]
    return [d for d in rnode.get("dependencies") or [] if isinstance(d, str)]

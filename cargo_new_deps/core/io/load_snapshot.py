from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import yaml

from cargo_new_deps.core.errors import InconsistentGraph, MetadataLoadError
from cargo_new_deps.core.model import ROOT, Dependent, Edge, Graph, PackageId, parse_package_ref


def load_snapshot_file(path: str | Path) -> dict[str, Any]:
    """Load a YAML/JSON snapshot file.

    Format:
      root: myapp            # optional display name for the project
      packages:
        - {name: foo, version: "1.0.0", features: [bar]}
      edges:
        - {from: root, to: foo@1.0.0}

    Returns the raw mapping; :func:`parse_snapshot` owns shape checking.
    """

    p = Path(path)
    if not p.exists():
        raise MetadataLoadError(
            code="E_FILE_NOT_FOUND",
            message="file does not exist",
            file=str(p),
        )

    suffix = p.suffix.lower()
    try:
        raw_text = p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise MetadataLoadError(code="E_FILE_READ", message=str(e), file=str(p)) from e

    try:
        if suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(raw_text)
        elif suffix == ".json":
            data = json.loads(raw_text)
        else:
            raise MetadataLoadError(
                code="E_UNSUPPORTED_FORMAT",
                message="supported formats are .yaml/.yml and .json",
                file=str(p),
            )
    except MetadataLoadError:
        raise
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        code = "E_YAML_PARSE" if suffix in {".yaml", ".yml"} else "E_JSON_PARSE"
        raise MetadataLoadError(code=code, message=str(e), file=str(p)) from e

    if not isinstance(data, dict):
        raise MetadataLoadError(
            code="E_INVALID_TOP_LEVEL",
            message="top-level document must be a mapping/object",
            file=str(p),
        )
    return data


def parse_snapshot(data: dict[str, Any], file: Optional[str] = None) -> Graph:
    root_name = data.get("root", ROOT)
    if not isinstance(root_name, str) or not root_name.strip():
        raise MetadataLoadError(
            code="E_INVALID_TOP_LEVEL",
            message="root must be a non-empty string",
            file=file,
            path="root",
        )

    packages = data.get("packages") or []
    if not isinstance(packages, list):
        raise MetadataLoadError(
            code="E_INVALID_TOP_LEVEL",
            message="packages must be an array",
            file=file,
            path="packages",
        )

    nodes: dict[PackageId, frozenset[str]] = {}
    for i, raw in enumerate(packages):
        pkg_path = f"packages[{i}]"
        if not isinstance(raw, dict):
            raise _invalid_package("package must be an object", file, pkg_path)
        name, version = raw.get("name"), raw.get("version")
        if not isinstance(name, str) or not name.strip():
            raise _invalid_package("name is required and must be a non-empty string", file, f"{pkg_path}.name")
        # YAML reads bare 1.0 as a float; only strings are accepted to keep "1.10" intact.
        if not isinstance(version, str) or not version.strip():
            raise _invalid_package("version is required and must be a string", file, f"{pkg_path}.version")
        feats = raw.get("features") or []
        if not isinstance(feats, list) or not all(isinstance(f, str) for f in feats):
            raise _invalid_package("features must be an array of strings", file, f"{pkg_path}.features")

        pid = PackageId(name=name, version=version)
        if pid in nodes:
            raise MetadataLoadError(
                code="E_SNAPSHOT_DUPLICATE_PACKAGE",
                message=f"duplicate package: {pid}",
                file=file,
                path=pkg_path,
            )
        nodes[pid] = frozenset(feats)

    raw_edges = data.get("edges") or []
    if not isinstance(raw_edges, list):
        raise MetadataLoadError(
            code="E_INVALID_TOP_LEVEL",
            message="edges must be an array",
            file=file,
            path="edges",
        )

    edges: list[Edge] = []
    for i, raw in enumerate(raw_edges):
        edge_path = f"edges[{i}]"
        if not isinstance(raw, dict) or not isinstance(raw.get("from"), str) or not isinstance(raw.get("to"), str):
            raise _invalid_edge("edge must be an object with string from/to", file, edge_path)
        try:
            dependent: Dependent = ROOT if raw["from"] == ROOT else parse_package_ref(raw["from"])
            dependency = parse_package_ref(raw["to"])
        except ValueError as e:
            raise _invalid_edge(str(e), file, edge_path) from e
        edges.append((dependent, dependency))

    try:
        return Graph.build(nodes, edges, root_name=root_name)
    except InconsistentGraph as e:
        raise InconsistentGraph(code=e.code, message=e.message, file=file, path=e.path) from e


def _invalid_package(message: str, file: Optional[str], path: str) -> MetadataLoadError:
    return MetadataLoadError(code="E_SNAPSHOT_INVALID_PACKAGE", message=message, file=file, path=path)


def _invalid_edge(message: str, file: Optional[str], path: str) -> MetadataLoadError:
    return MetadataLoadError(code="E_SNAPSHOT_INVALID_EDGE", message=message, file=file, path=path)

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Final, Iterable, Literal, Mapping, Union

from cargo_new_deps.core.errors import InconsistentGraph, UnknownPackage


ROOT: Final = "root"


@dataclass(frozen=True)
class PackageId:
    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.name}@{self.version}"


Dependent = Union[PackageId, Literal["root"]]
FeatureSet = frozenset[str]
Edge = tuple[Dependent, PackageId]  # (dependent, dependency)


@dataclass(frozen=True)
class Node:
    id: PackageId
    features: FeatureSet


@dataclass(frozen=True)
class AttributedAddition:
    package_id: PackageId
    features: FeatureSet
    dependents: tuple[str, ...]


@dataclass(frozen=True)
class Graph:
    """One resolved dependency snapshot.

    Edges are checked and the reverse index behind :meth:`dependents_of` is
    computed once, whether the graph comes from :meth:`Graph.build` or is
    constructed directly.
    """

    nodes_by_id: Mapping[PackageId, Node]
    edges: tuple[Edge, ...]
    root_name: str = ROOT
    _dependents: Mapping[PackageId, tuple[Dependent, ...]] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        edge_list = tuple(self.edges)
        reverse: dict[PackageId, list[Dependent]] = {}
        for i, (dependent, dependency) in enumerate(edge_list):
            if dependency not in self.nodes_by_id:
                raise InconsistentGraph(
                    code="E_DANGLING_EDGE",
                    message=f"edge {_label(dependent)} -> {dependency} references a package with no node",
                    path=f"edges[{i}]",
                )
            seen = reverse.setdefault(dependency, [])
            if dependent not in seen:
                seen.append(dependent)

        object.__setattr__(self, "nodes_by_id", MappingProxyType(dict(self.nodes_by_id)))
        object.__setattr__(self, "edges", edge_list)
        object.__setattr__(
            self, "_dependents", MappingProxyType({k: tuple(v) for k, v in reverse.items()})
        )

    @classmethod
    def build(
        cls,
        nodes: Mapping[PackageId, Iterable[str]],
        edges: Iterable[Edge],
        root_name: str = ROOT,
    ) -> Graph:
        """Build from ``{PackageId: feature names}`` and ``(dependent, dependency)`` edges."""
        nodes_by_id: dict[PackageId, Node] = {}
        for pid, feats in nodes.items():
            # frozenset("bar") is {"b", "a", "r"}.
            if isinstance(feats, str):
                raise TypeError(f"features of {pid} must be a collection of names, not a string")
            nodes_by_id[pid] = Node(id=pid, features=frozenset(feats))
        return cls(nodes_by_id=nodes_by_id, edges=tuple(edges), root_name=root_name)

    def node_ids(self) -> set[PackageId]:
        return set(self.nodes_by_id)

    def features_of(self, pid: PackageId) -> FeatureSet:
        return self._node(pid).features

    def dependents_of(self, pid: PackageId) -> tuple[Dependent, ...]:
        """Distinct dependents of ``pid`` in the order their edges were first seen."""
        self._node(pid)
        return self._dependents.get(pid, ())

    def dependent_name(self, dependent: Dependent) -> str:
        if dependent == ROOT:
            return self.root_name
        return dependent.name

    def _node(self, pid: PackageId) -> Node:
        try:
            return self.nodes_by_id[pid]
        except KeyError:
            raise UnknownPackage(
                code="E_UNKNOWN_PACKAGE",
                message=f"package not in graph: {pid}",
            ) from None


def _label(dependent: Dependent) -> str:
    return ROOT if dependent == ROOT else str(dependent)


def parse_package_ref(ref: str) -> PackageId:
    """Parse ``name@version``. Raises ValueError on anything else."""
    name, sep, version = ref.rpartition("@")
    if not sep or not name or not version:
        raise ValueError(f"expected name@version, got: {ref!r}")
    return PackageId(name=name, version=version)

import pytest

from cargo_new_deps.core.errors import InconsistentGraph, UnknownPackage
from cargo_new_deps.core.model import ROOT, Graph, Node, PackageId, parse_package_ref


FOO = PackageId("foo", "1.0.0")
BAR = PackageId("bar", "0.3.1")
OTHER = PackageId("otherlib", "2.0.0")


def test_package_id_equality_is_name_and_version():
    assert PackageId("foo", "1.0.0") == FOO
    assert PackageId("foo", "1.0.1") != FOO
    assert PackageId("Foo", "1.0.0") != FOO
    assert str(FOO) == "foo@1.0.0"


def test_build_and_query():
    g = Graph.build({FOO: ["bar", "std"], OTHER: []}, [(ROOT, FOO), (ROOT, OTHER)])
    assert g.node_ids() == {FOO, OTHER}
    assert g.features_of(FOO) == frozenset({"bar", "std"})
    assert g.features_of(OTHER) == frozenset()
    assert g.dependents_of(FOO) == (ROOT,)


def test_dependents_keep_first_seen_order_and_are_distinct():
    g = Graph.build(
        {FOO: [], OTHER: [], BAR: []},
        [(OTHER, FOO), (ROOT, FOO), (OTHER, FOO), (ROOT, OTHER), (FOO, BAR)],
    )
    assert g.dependents_of(FOO) == (OTHER, ROOT)
    assert g.dependents_of(BAR) == (FOO,)


def test_node_without_edges_has_no_dependents():
    g = Graph.build({FOO: []}, [])
    assert g.dependents_of(FOO) == ()


def test_dangling_edge_fails():
    with pytest.raises(InconsistentGraph) as exc:
        Graph.build({FOO: []}, [(ROOT, FOO), (FOO, BAR)])
    assert exc.value.code == "E_DANGLING_EDGE"
    assert exc.value.path == "edges[1]"
    assert "bar@0.3.1" in exc.value.message


def test_dependent_does_not_need_a_node():
    app = PackageId("myapp", "0.1.0")
    g = Graph.build({FOO: []}, [(app, FOO)])
    assert g.dependents_of(FOO) == (app,)
    assert g.dependent_name(app) == "myapp"


def test_unknown_package_queries_fail():
    g = Graph.build({FOO: []}, [])
    with pytest.raises(UnknownPackage) as exc:
        g.features_of(BAR)
    assert exc.value.code == "E_UNKNOWN_PACKAGE"
    with pytest.raises(UnknownPackage):
        g.dependents_of(BAR)


def test_root_name_is_used_for_root_sentinel():
    g = Graph.build({FOO: []}, [(ROOT, FOO)], root_name="myapp")
    assert g.dependent_name(ROOT) == "myapp"
    assert Graph.build({}, []).dependent_name(ROOT) == "root"


def test_graph_is_read_only():
    g = Graph.build({FOO: []}, [(ROOT, FOO)])
    with pytest.raises(TypeError):
        g.nodes_by_id[BAR] = None  # type: ignore[index]


def test_parse_package_ref():
    assert parse_package_ref("foo@1.0.0") == FOO
    assert parse_package_ref("@scope/pkg@2.0.0") == PackageId("@scope/pkg", "2.0.0")
    for bad in ("foo", "foo@", "@1.0.0"):
        with pytest.raises(ValueError):
            parse_package_ref(bad)


def test_direct_construction_builds_dependents_index():
    g = Graph(nodes_by_id={FOO: Node(id=FOO, features=frozenset())}, edges=((ROOT, FOO),))
    assert g.dependents_of(FOO) == (ROOT,)


def test_direct_construction_checks_edges():
    with pytest.raises(InconsistentGraph) as exc:
        Graph(nodes_by_id={FOO: Node(id=FOO, features=frozenset())}, edges=((FOO, BAR),))
    assert exc.value.code == "E_DANGLING_EDGE"


def test_string_features_are_rejected():
    with pytest.raises(TypeError):
        Graph.build({FOO: "bar"}, [])

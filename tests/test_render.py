from cargo_new_deps.core.errors import InconsistentGraph
from cargo_new_deps.core.model import AttributedAddition, PackageId
from cargo_new_deps.core.report.render import (
    additions_payload,
    errors_payload,
    format_addition,
    styled_addition,
)


def _addition(features=(), dependents=("myapp",)) -> AttributedAddition:
    return AttributedAddition(
        package_id=PackageId("tokio", "1.14.0"),
        features=frozenset(features),
        dependents=tuple(dependents),
    )


def test_format_without_features():
    assert format_addition(_addition()) == "tokio pulled by: myapp"


def test_format_sorts_features_and_joins_dependents():
    line = format_addition(_addition(features=("rt", "macros"), dependents=("myapp", "myapp-util")))
    assert line == "tokio +macros,+rt pulled by: myapp, myapp-util"


def test_styled_addition_colours_name():
    text = styled_addition(_addition(features=("rt",)))
    styles = {str(span.style) for span in text.spans}
    assert {"bold green", "bold red", "bold yellow"} <= styles


def test_additions_payload():
    payload = additions_payload([_addition(features=("rt",))], version_bumps="report")
    assert payload["ok"] is True
    assert payload["addition_count"] == 1
    assert payload["additions"][0] == {
        "name": "tokio",
        "version": "1.14.0",
        "features": ["rt"],
        "dependents": ["myapp"],
    }


def test_errors_payload():
    err = InconsistentGraph(code="E_DANGLING_EDGE", message="boom", file="after.yaml", path="edges[0]")
    payload = errors_payload([err])
    assert payload["ok"] is False
    assert payload["error_count"] == 1
    assert payload["errors"][0]["kind"] == "InconsistentGraph"
    assert payload["errors"][0]["code"] == "E_DANGLING_EDGE"
    assert str(err) == "after.yaml:edges[0]: E_DANGLING_EDGE: boom"

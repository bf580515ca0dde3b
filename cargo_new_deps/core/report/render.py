from __future__ import annotations

from typing import Any, Iterable

from rich.text import Text

from cargo_new_deps.core.errors import NewDepsError
from cargo_new_deps.core.model import AttributedAddition


TOOL_NAME = "cargo-new-deps"


def format_addition(addition: AttributedAddition) -> str:
    """``<name>[ +f1,+f2] pulled by: a, b``"""
    return styled_addition(addition).plain


def styled_addition(addition: AttributedAddition) -> Text:
    text = Text()
    text.append(addition.package_id.name, style="bold green")
    features = sorted(addition.features)
    if features:
        text.append(" ")
        for i, feature in enumerate(features):
            if i:
                text.append(",")
            text.append(f"+{feature}", style="bold red")
    text.append(" pulled by: ")
    for i, name in enumerate(addition.dependents):
        if i:
            text.append(", ")
        text.append(name, style="bold yellow")
    return text


def addition_item(addition: AttributedAddition) -> dict[str, Any]:
    return {
        "name": addition.package_id.name,
        "version": addition.package_id.version,
        "features": sorted(addition.features),
        "dependents": list(addition.dependents),
    }


def error_item(e: NewDepsError) -> dict[str, Any]:
    return {
        "code": e.code,
        "message": e.message,
        "file": e.file,
        "path": e.path,
        "severity": "error",
        "kind": type(e).__name__,
    }


def additions_payload(
    additions: Iterable[AttributedAddition], *, version_bumps: str
) -> dict[str, Any]:
    items = [addition_item(a) for a in additions]
    return {
        "tool": TOOL_NAME,
        "command": "new-deps",
        "ok": True,
        "version_bumps": version_bumps,
        "addition_count": len(items),
        "additions": items,
        "error_count": 0,
        "errors": [],
    }


def errors_payload(errors: Iterable[NewDepsError]) -> dict[str, Any]:
    items = [error_item(e) for e in errors]
    return {
        "tool": TOOL_NAME,
        "command": "new-deps",
        "ok": False,
        "addition_count": 0,
        "additions": [],
        "error_count": len(items),
        "errors": items,
    }

import json

from typer.testing import CliRunner

from cargo_new_deps.cli import app

runner = CliRunner()


def test_cli_json_success():
    r = runner.invoke(
        app,
        [
            "new-deps",
            "--from-json", "examples/metadata-main.json",
            "--to-json", "examples/metadata-tokio.json",
            "--format", "json",
        ],
    )
    assert r.exit_code == 0
    payload = json.loads(r.stdout)
    assert payload["command"] == "new-deps"
    assert payload["ok"] is True
    assert payload["version_bumps"] == "report"
    assert payload["addition_count"] == 3
    assert [a["name"] for a in payload["additions"]] == ["pin-project-lite", "tokio", "tokio-macros"]
    tokio = payload["additions"][1]
    assert tokio["version"] == "1.14.0"
    assert tokio["features"] == ["default", "macros", "rt", "tokio-macros"]
    assert tokio["dependents"] == ["myapp", "myapp-util"]


def test_cli_json_failure_contains_codes():
    r = runner.invoke(
        app,
        [
            "new-deps",
            "--from-json", "examples/snapshot-before.yaml",
            "--to-json", "examples/snapshot-dangling.yaml",
            "--format", "json",
        ],
    )
    assert r.exit_code == 2
    payload = json.loads(r.stdout)
    assert payload["ok"] is False
    assert payload["additions"] == []
    codes = {e["code"] for e in payload["errors"]}
    assert "E_DANGLING_EDGE" in codes


def test_cli_json_from_config_file():
    r = runner.invoke(
        app,
        [
            "new-deps",
            "--from-json", "examples/snapshot-before.yaml",
            "--to-json", "examples/snapshot-bump.yaml",
            "--config", "examples/config-ignore-json.yaml",
        ],
    )
    assert r.exit_code == 0
    payload = json.loads(r.stdout)
    assert payload["version_bumps"] == "ignore"
    assert [a["name"] for a in payload["additions"]] == ["foo"]


def test_cli_config_from_env(monkeypatch):
    monkeypatch.setenv("CARGO_NEW_DEPS_CONFIG", "examples/config-ignore-json.yaml")
    r = runner.invoke(
        app,
        [
            "new-deps",
            "--from-json", "examples/snapshot-before.yaml",
            "--to-json", "examples/snapshot-bump.yaml",
            "--version-bumps", "report",
        ],
    )
    assert r.exit_code == 0
    payload = json.loads(r.stdout)
    assert payload["version_bumps"] == "report"
    assert [a["name"] for a in payload["additions"]] == ["foo", "serde"]


def test_cli_json_config_error_envelope():
    r = runner.invoke(
        app,
        [
            "new-deps",
            "--from-json", "examples/metadata-main.json",
            "--to-json", "examples/metadata-main.json",
            "--config", "examples/config-invalid.yaml",
            "--format", "json",
        ],
    )
    assert r.exit_code == 2
    payload = json.loads(r.stdout)
    assert payload["ok"] is False
    assert {e["code"] for e in payload["errors"]} == {"E_CONFIG_INVALID"}


def test_cli_json_option_error_envelope():
    r = runner.invoke(
        app,
        [
            "new-deps",
            "--from-json", "examples/metadata-main.json",
            "--to-json", "examples/metadata-main.json",
            "--version-bumps", "sometimes",
            "--format", "json",
        ],
    )
    assert r.exit_code == 2
    payload = json.loads(r.stdout)
    assert {e["code"] for e in payload["errors"]} == {"E_UNKNOWN_OPTION_VALUE"}

from __future__ import annotations

import json
import logging
import sys
from typing import NoReturn

import typer
from rich.console import Console

from cargo_new_deps.core.config import ALLOWED_VALUES, ConfigError, check_value, load_and_merge
from cargo_new_deps.core.diff.diff_graphs import diff_graphs
from cargo_new_deps.core.errors import (
    InconsistentGraph,
    MetadataLoadError,
    NewDepsError,
    OptionError,
    SnapshotError,
    UnknownPackage,
)
from cargo_new_deps.core.io.sources import load_after, load_before
from cargo_new_deps.core.report.render import additions_payload, errors_payload, styled_addition

app = typer.Typer(add_completion=False, no_args_is_help=True)


@app.callback()
def _callback() -> None:
    """Cargo subcommand: list newly added dependencies and their features."""
    return


@app.command("new-deps")
def new_deps(
    from_json: str | None = typer.Option(
        None, "--from-json", help="Read cargo metadata (or a snapshot file) to compare from"
    ),
    to_json: str | None = typer.Option(
        None, "--to-json", help="Read cargo metadata (or a snapshot file) to compare to"
    ),
    from_ref: str | None = typer.Option(
        None, "--from", help="Commit or branch to compare from (default: origin's default branch)"
    ),
    to_ref: str | None = typer.Option(
        None, "--to", help="Commit or branch to compare to (default: the working tree)"
    ),
    format: str | None = typer.Option(None, "--format", help="Output format: text|json"),
    version_bumps: str | None = typer.Option(
        None,
        "--version-bumps",
        help="report: a new version of a known package is an addition; ignore: only new names",
    ),
    color: str | None = typer.Option(None, "--color", help="Colorize text output: auto|always|never"),
    config: str | None = typer.Option(
        None,
        "--config",
        envvar="CARGO_NEW_DEPS_CONFIG",
        help="Optional YAML file with default settings",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log diagnostics to stderr"),
) -> None:
    """List the newly added dependencies and their features."""
    _setup_logging(verbose)
    requested_fmt = _error_format(format)

    try:
        cfg = load_and_merge(config)
    except FileNotFoundError:
        _fail(
            [
                OptionError(
                    code="E_CONFIG_FILE_NOT_FOUND",
                    message=f"config file not found: {config}",
                    path="config",
                )
            ],
            requested_fmt,
            exit_code=1,
        )
    except ConfigError as e:
        _fail(
            [OptionError(code="E_CONFIG_INVALID", message=str(e), file=config, path="config")],
            requested_fmt,
            exit_code=2,
        )

    try:
        fmt = check_value("format", format or cfg.format)
        bumps = check_value("version_bumps", version_bumps or cfg.version_bumps)
        color_mode = check_value("color", color or cfg.color)
    except ConfigError as e:
        _fail(
            [OptionError(code="E_UNKNOWN_OPTION_VALUE", message=str(e))],
            _error_format(format or cfg.format),
            exit_code=2,
        )

    try:
        before = load_before(from_json, from_ref)
        after = load_after(to_json, to_ref)
        additions = diff_graphs(before, after, version_bumps=bumps)  # type: ignore[arg-type]
    except (MetadataLoadError, SnapshotError) as e:
        _fail([e], fmt, exit_code=1)
    except (InconsistentGraph, UnknownPackage) as e:
        _fail([e], fmt, exit_code=2)

    if fmt == "json":
        payload = additions_payload(additions, version_bumps=bumps)
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        return

    console = Console(
        highlight=False,
        force_terminal={"always": True, "never": False}.get(color_mode),
        no_color=color_mode == "never",
    )
    for addition in additions:
        console.print(styled_addition(addition), soft_wrap=True)


def _error_format(fmt: str | None) -> str:
    # Errors follow the requested format when it is itself a valid one.
    return fmt if fmt in ALLOWED_VALUES["format"] else "text"


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _fail(errors: list[NewDepsError], fmt: str, exit_code: int) -> NoReturn:
    if fmt == "json":
        typer.echo(json.dumps(errors_payload(errors), indent=2, sort_keys=True))
    else:
        _print_errors(errors)
    raise typer.Exit(code=exit_code)


def _print_errors(errors: list[NewDepsError]) -> None:
    errors_sorted = sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))
    for e in errors_sorted:
        typer.echo(str(e), err=True)


def main() -> None:
    # cargo runs `cargo-new-deps new-deps ...`; also accept a direct `cargo-new-deps ...`.
    args = sys.argv[1:]
    if not args or args[0] != "new-deps":
        args = ["new-deps", *args]
    app(args=args, prog_name="cargo")


cli = typer.main.get_command(app)

if __name__ == "__main__":
    main()

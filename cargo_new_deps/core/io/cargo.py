from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Any

from cargo_new_deps.core.errors import SnapshotError
from cargo_new_deps.core.io.load_metadata import loads_metadata


logger = logging.getLogger(__name__)


def cargo_command() -> str:
    # cargo exports CARGO to the subcommands it spawns.
    return os.environ.get("CARGO") or "cargo"


def run_cargo_metadata(cwd: Path) -> dict[str, Any]:
    args = [cargo_command(), "metadata", "--format-version", "1"]
    logger.debug("running %s in %s", " ".join(args), cwd)
    try:
        proc = subprocess.run(
            args,
            cwd=str(cwd),
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as e:
        raise SnapshotError(
            code="E_CARGO_NOT_FOUND",
            message=f"could not start command {args[0]}",
            file=str(cwd),
        ) from e

    if proc.returncode != 0:
        raise SnapshotError(
            code="E_CARGO_METADATA",
            message="could not parse metadata: " + (proc.stderr or "").strip(),
            file=str(cwd),
        )

    return loads_metadata(proc.stdout, file=str(cwd))

"""Locating and scaffolding edgecrm.toml.

The walk-up finder locates edgecrm.toml the way git finds .git/. The
EDGECRM_CONFIG env var (and the --config flag, handled by the caller) take
precedence over the walk.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

CONFIG_FILENAME = "edgecrm.toml"
CONFIG_ENV_VAR = "EDGECRM_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Return the edgecrm.toml governing *start* (default: cwd), or None.

    An EDGECRM_CONFIG pointing at a missing file yields None rather than
    falling back to the walk.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        path = Path(override)
        return path if path.is_file() else None

    directory = (start or Path.cwd()).resolve()
    for candidate_dir in (directory, *directory.parents):
        candidate = candidate_dir / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def write_config(directory: Path, *, database_path: str) -> Path:
    """Create a minimal edgecrm.toml in *directory* and return its path.

    Only the database location is written; every other setting keeps its
    code default until overridden by hand.
    """
    path = directory / CONFIG_FILENAME
    # JSON string escapes are valid TOML basic-string escapes.
    path.write_text(
        "# edgecrm configuration; only overrides of the defaults are needed.\n"
        "[storage]\n"
        f"database_path = {json.dumps(database_path)}\n",
        encoding="utf-8",
    )
    return path

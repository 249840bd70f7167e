"""Config file discovery and parsing.

Walk-up finder locates relaykit.toml, similar to how git finds .git/.
Supports RELAYKIT_CONFIG env var and --config CLI flag overrides.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from relaykit.domain.errors import RelayConfigurationError

CONFIG_FILENAME = "relaykit.toml"
CONFIG_ENV_VAR = "RELAYKIT_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for relaykit.toml.

    Returns the path to the config file, or None if not found.
    Checks RELAYKIT_CONFIG env var first.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        if p.is_file():
            return p
        return None

    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def read_config(path: Path) -> dict[str, Any]:
    """Parse *path* as TOML and return the raw section tables.

    Raises:
        RelayConfigurationError: The file is not valid TOML.
    """
    raw = path.read_text(encoding="utf-8")
    try:
        return tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise RelayConfigurationError(msg) from exc

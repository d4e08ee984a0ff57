"""Default locations and environment variables for the talon CLI.

The core never reads these itself; the CLI resolves flags, environment
variables, and these defaults into concrete paths before calling in.
"""

from __future__ import annotations

from pathlib import Path

HOME_ENV = "TALON_HOME"
INDEX_ENV = "TALON_INDEX"

INDEX_FILE = "index.json"
PACKAGES_DIR = "talons"


def default_home() -> Path:
    return Path.home() / ".talon"


def default_packages_root() -> Path:
    return default_home() / PACKAGES_DIR


def default_index_path() -> Path:
    return default_home() / INDEX_FILE

"""Layered lookup of harness settings: process environment, then .env.defaults.

The defaults file lives at the repository root and uses plain KEY=VALUE lines
(optionally quoted). It lets a checkout be pointed at a mirror of the site
under test without exporting anything in the shell.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

DEFAULTS_FILE = Path(__file__).resolve().parents[1] / ".env.defaults"


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


@lru_cache(maxsize=1)
def load_defaults(path: Path = DEFAULTS_FILE) -> Dict[str, str]:
    if not path.is_file():
        return {}

    entries: Dict[str, str] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep or not key.strip():
            continue
        entries[key.strip()] = _unquote(value.strip())
    return entries


def get_env_default(key: str) -> Optional[str]:
    return load_defaults().get(key)


def setting(key: str, fallback: str) -> str:
    """Return ``key`` from the environment, the defaults file, or ``fallback``."""
    if key in os.environ:
        return os.environ[key]
    value = get_env_default(key)
    return fallback if value is None else value

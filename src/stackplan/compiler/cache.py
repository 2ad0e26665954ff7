"""Cache mount identifiers for BuildKit ``RUN --mount=type=cache`` clauses."""

from __future__ import annotations

import re
from collections.abc import Sequence

_DISALLOWED = re.compile(r"[^A-Za-z0-9_-]")

HOME_DIR = "/root"


def sanitize_cache_key(value: str) -> str:
    """Replace every character outside ``[A-Za-z0-9_-]`` with ``-``."""
    return _DISALLOWED.sub("-", value)


def expand_home(directory: str) -> str:
    return directory.replace("~", HOME_DIR)


def cache_mount_clauses(cache_key: str | None, directories: Sequence[str] | None) -> tuple[str, ...]:
    if cache_key is None or directories is None:
        return ()
    clauses: list[str] = []
    for directory in directories:
        target = expand_home(directory)
        mount_id = sanitize_cache_key(f"{cache_key}-{target}")
        clauses.append(f"--mount=type=cache,id={mount_id},target={target}")
    return tuple(clauses)


def cache_mounts(cache_key: str | None, directories: Sequence[str] | None) -> str:
    return " ".join(cache_mount_clauses(cache_key, directories))

"""Runtime version inference helpers.

Inference is advisory: every helper here returns ``None`` (and callers fall
back to a default) instead of raising on text it cannot parse.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from stackplan.app import App
from stackplan.environment import Environment

_VERSION = re.compile(r"""^["']?v?(\d+)(?:\.(\d+))?(?:\.\d+)*["']?$""")


def parse_major_version(raw: str | None, *, legacy_java: bool = False) -> int | None:
    """Major version of ``raw``; with ``legacy_java``, ``1.8`` reads as ``8``."""
    if raw is None:
        return None
    match = _VERSION.match(raw.strip())
    if match is None:
        return None
    major = int(match.group(1))
    if legacy_java and major == 1 and match.group(2) is not None:
        return int(match.group(2))
    return major


def descriptor_hint(text: str, pattern: re.Pattern[str], group: int = 1) -> str | None:
    match = pattern.search(text)
    if match is None:
        return None
    return match.group(group)


def version_file(app: App, name: str) -> str | None:
    if not app.includes_file(name):
        return None
    # Undecodable bytes must not abort detection; they just fail to parse.
    return app.read_file(name, errors="replace")


def resolve_version(
    override: str | None,
    version_file_content: str | None = None,
    descriptor: str | None = None,
    *,
    legacy_java: bool = False,
) -> int | None:
    """First declared source wins; an unparseable winner yields ``None``."""
    for raw in (override, version_file_content, descriptor):
        if raw is not None:
            return parse_major_version(raw, legacy_java=legacy_java)
    return None


def resolve_jdk_version(
    app: App,
    env: Environment,
    descriptor: str | None = None,
) -> int | None:
    return resolve_version(
        env.get_config_variable("JDK_VERSION"),
        version_file(app, ".jdk-version"),
        descriptor,
        legacy_java=True,
    )


def package_for_version(
    version: int | None, table: Mapping[int, str], default: str
) -> str:
    if version is None:
        return default
    return table.get(version, default)


__all__ = [
    "descriptor_hint",
    "package_for_version",
    "parse_major_version",
    "resolve_jdk_version",
    "resolve_version",
    "version_file",
]

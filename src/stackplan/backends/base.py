"""Protocol for image build backends."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Protocol


@dataclass(frozen=True, slots=True)
class MountSpec:
    source: Path
    target: str
    read_only: bool = False


@dataclass(frozen=True, slots=True)
class BuildRequest:
    name: str
    context_dir: Path
    dockerfile: Path
    variables: Mapping[str, str] = field(default_factory=dict)
    tags: tuple[str, ...] = ()
    labels: tuple[str, ...] = ()
    platform: tuple[str, ...] = ()
    quiet: bool = False
    no_cache: bool = False


@dataclass(frozen=True, slots=True)
class BuildResponse:
    backend: str
    command: tuple[str, ...]
    stdout: str = ""


class BuildBackend(Protocol):
    name: str

    def mount_plan(self, request: BuildRequest) -> tuple[MountSpec, ...]:
        """Return deterministic host/runner mount mapping for this request."""

    def command(self, request: BuildRequest) -> tuple[str, ...]:
        """Return the argv the backend would run."""

    def execute(self, request: BuildRequest) -> BuildResponse:
        """Build the image described by *request*."""


def translate_path(path: Path, mounts: tuple[MountSpec, ...]) -> str:
    """Map a host path to its location inside the runner, if mounted."""
    for mount in mounts:
        try:
            relative = path.relative_to(mount.source)
        except ValueError:
            continue
        if relative == Path("."):
            return mount.target
        return str(PurePosixPath(mount.target, *relative.parts))
    return str(path)


def output_options(request: BuildRequest) -> dict[str, bool]:
    """``subprocess.run`` keywords: capture output when quiet, else inherit stdio."""
    if request.quiet:
        return {"capture_output": True, "text": True}
    return {}

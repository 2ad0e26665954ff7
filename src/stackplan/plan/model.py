"""Build plan dataclasses shared by providers and the recipe compiler."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Literal

import cbor2

PhaseKind = Literal["setup", "install", "build", "start"]

PHASE_ORDER: tuple[PhaseKind, ...] = ("setup", "install", "build", "start")

DEFAULT_BASE_IMAGE = "ghcr.io/railwayapp/nixpacks:debian"

PLAN_SCHEMA_VERSION = 1


@dataclass(frozen=True, slots=True)
class Package:
    name: str
    version: str | None = None

    def __str__(self) -> str:
        if self.version is None:
            return self.name
        return f"{self.name}_{self.version.replace('.', '_')}"


def frozen_mapping(items: Mapping[str, str]) -> Mapping[str, str]:
    """Read-only, key-sorted copy of *items*."""
    return MappingProxyType(dict(sorted(items.items())))


def _unique(items: Iterable[Any]) -> tuple[Any, ...]:
    return tuple(dict.fromkeys(items))


def _optional_tuple(items: Iterable[str] | None) -> tuple[str, ...] | None:
    return None if items is None else tuple(items)


@dataclass(frozen=True, slots=True)
class Phase:
    """One stage of the build.

    ``only_include_files`` and ``cache_directories`` distinguish ``None`` (not
    declared) from an empty tuple (declared as nothing). ``start_command`` of
    ``None`` means no runnable entry point was found.
    """

    kind: PhaseKind
    commands: tuple[str, ...] = ()
    packages: tuple[Package, ...] = ()
    apt_packages: tuple[str, ...] = ()
    only_include_files: tuple[str, ...] | None = None
    cache_directories: tuple[str, ...] | None = None
    base_image: str = DEFAULT_BASE_IMAGE
    run_image: str | None = None
    start_command: str | None = None
    env_path_entries: tuple[str, ...] | None = None

    @classmethod
    def setup(
        cls,
        packages: Iterable[Package] = (),
        *,
        apt_packages: Iterable[str] = (),
        commands: Iterable[str] = (),
        only_include_files: Iterable[str] | None = None,
        base_image: str = DEFAULT_BASE_IMAGE,
    ) -> Phase:
        return cls(
            kind="setup",
            commands=tuple(commands),
            packages=_unique(packages),
            apt_packages=_unique(apt_packages),
            only_include_files=_optional_tuple(only_include_files),
            base_image=base_image,
        )

    @classmethod
    def install(
        cls,
        *commands: str,
        only_include_files: Iterable[str] | None = None,
        cache_directories: Iterable[str] | None = None,
        env_path_entries: Iterable[str] | None = None,
    ) -> Phase:
        return cls(
            kind="install",
            commands=commands,
            only_include_files=_optional_tuple(only_include_files),
            cache_directories=_optional_tuple(cache_directories),
            env_path_entries=_optional_tuple(env_path_entries),
        )

    @classmethod
    def build(
        cls,
        *commands: str,
        only_include_files: Iterable[str] | None = None,
        cache_directories: Iterable[str] | None = None,
    ) -> Phase:
        return cls(
            kind="build",
            commands=commands,
            only_include_files=_optional_tuple(only_include_files),
            cache_directories=_optional_tuple(cache_directories),
        )

    @classmethod
    def start(
        cls,
        command: str | None,
        *,
        run_image: str | None = None,
        only_include_files: Iterable[str] | None = None,
    ) -> Phase:
        return cls(
            kind="start",
            start_command=command,
            run_image=run_image,
            only_include_files=_optional_tuple(only_include_files),
        )

    @property
    def is_empty(self) -> bool:
        return (
            not self.commands
            and not self.packages
            and not self.apt_packages
            and self.only_include_files is None
            and self.cache_directories is None
            and self.base_image == DEFAULT_BASE_IMAGE
            and self.run_image is None
            and self.start_command is None
            and self.env_path_entries is None
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "commands": list(self.commands),
            "packages": [
                {"name": pkg.name, "version": pkg.version} for pkg in self.packages
            ],
            "apt_packages": list(self.apt_packages),
            "only_include_files": _optional_list(self.only_include_files),
            "cache_directories": _optional_list(self.cache_directories),
            "base_image": self.base_image,
            "run_image": self.run_image,
            "start_command": self.start_command,
            "env_path_entries": _optional_list(self.env_path_entries),
        }


def _optional_list(items: tuple[str, ...] | None) -> list[str] | None:
    return None if items is None else list(items)


@dataclass(frozen=True, slots=True)
class BuildPlan:
    setup: Phase | None = None
    install: Phase | None = None
    build: Phase | None = None
    start: Phase | None = None
    variables: Mapping[str, str] = field(default_factory=dict)
    static_assets: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "variables", frozen_mapping(self.variables))
        object.__setattr__(self, "static_assets", frozen_mapping(self.static_assets))

    def phase(self, kind: PhaseKind) -> Phase | None:
        return {
            "setup": self.setup,
            "install": self.install,
            "build": self.build,
            "start": self.start,
        }[kind]

    def phases(self) -> Iterator[Phase]:
        for kind in PHASE_ORDER:
            phase = self.phase(kind)
            if phase is not None:
                yield phase

    def summary(self) -> str:
        """Human-readable overview of what the plan will do."""
        lines: list[str] = []
        for phase in self.phases():
            lines.append(f"[{phase.kind}]")
            if phase.packages:
                lines.append(f"  packages: {', '.join(str(p) for p in phase.packages)}")
            if phase.apt_packages:
                lines.append(f"  apt packages: {', '.join(phase.apt_packages)}")
            for command in phase.commands:
                lines.append(f"  $ {command}")
            if phase.start_command is not None:
                lines.append(f"  start: {phase.start_command}")
            if phase.run_image is not None:
                lines.append(f"  run image: {phase.run_image}")
        if self.variables:
            lines.append("[variables]")
            for key, value in sorted(self.variables.items()):
                lines.append(f"  {key}={value}")
        return "\n".join(lines) + "\n"

    def to_payload(self) -> dict[str, Any]:
        return {
            "schema_version": PLAN_SCHEMA_VERSION,
            "phases": {phase.kind: phase.to_payload() for phase in self.phases()},
            "variables": dict(sorted(self.variables.items())),
            "static_assets": dict(sorted(self.static_assets.items())),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_payload(), indent=2, sort_keys=True) + "\n"

    def to_cbor(self) -> bytes:
        return cbor2.dumps(self.to_payload(), canonical=True)

    def digest(self) -> str:
        return hashlib.sha256(self.to_cbor()).hexdigest()


__all__ = [
    "BuildPlan",
    "DEFAULT_BASE_IMAGE",
    "PHASE_ORDER",
    "PLAN_SCHEMA_VERSION",
    "Package",
    "Phase",
    "PhaseKind",
    "frozen_mapping",
]

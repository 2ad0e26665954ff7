"""Typed recipe instructions and their single-line renderings."""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

APP_DIR = "/app/"


def copy_command(files: Sequence[str], app_dir: str = APP_DIR) -> str:
    if not files:
        return ""
    return f"COPY {' '.join(files)} {app_dir}"


def copy_from_command(stage: str, files: Sequence[str], app_dir: str = APP_DIR) -> str:
    if not files:
        return f"COPY --from={stage} {app_dir} {app_dir}"
    sources = " ".join(f.replace("./", app_dir) for f in files)
    return f"COPY --from={stage} {sources} {app_dir}"


def exec_command(command: str) -> str:
    """Exec-form ``CMD``; the payload is JSON-escaped so it parses back unchanged."""
    return f"CMD {json.dumps([command], ensure_ascii=False)}"


@dataclass(frozen=True, slots=True)
class From:
    image: str

    def render(self) -> str:
        return f"FROM {self.image}"


@dataclass(frozen=True, slots=True)
class Workdir:
    path: str

    def render(self) -> str:
        return f"WORKDIR {self.path}"


@dataclass(frozen=True, slots=True)
class Copy:
    files: tuple[str, ...]
    dest: str = APP_DIR

    def render(self) -> str:
        return copy_command(self.files, self.dest)


@dataclass(frozen=True, slots=True)
class CopyFrom:
    stage: str
    files: tuple[str, ...] = ()
    dest: str = APP_DIR

    def render(self) -> str:
        return copy_from_command(self.stage, self.files, self.dest)


@dataclass(frozen=True, slots=True)
class CopyPath:
    """Verbatim ``COPY [--from=<stage>] <source> <dest>``."""

    source: str
    dest: str
    stage: str | None = None

    def render(self) -> str:
        if self.stage is None:
            return f"COPY {self.source} {self.dest}"
        return f"COPY --from={self.stage} {self.source} {self.dest}"


@dataclass(frozen=True, slots=True)
class Run:
    command: str
    mounts: tuple[str, ...] = ()

    def render(self) -> str:
        return " ".join(("RUN", *self.mounts, self.command))


@dataclass(frozen=True, slots=True)
class Arg:
    names: tuple[str, ...]

    def render(self) -> str:
        if not self.names:
            return ""
        return f"ARG {' '.join(self.names)}"


@dataclass(frozen=True, slots=True)
class Env:
    pairs: tuple[tuple[str, str], ...]

    def render(self) -> str:
        if not self.pairs:
            return ""
        return "ENV " + " ".join(f"{key}={value}" for key, value in self.pairs)


@dataclass(frozen=True, slots=True)
class Cmd:
    command: str

    def render(self) -> str:
        return exec_command(self.command)


@dataclass(frozen=True, slots=True)
class Comment:
    text: str

    def render(self) -> str:
        return f"# {self.text}"


@dataclass(frozen=True, slots=True)
class Blank:
    def render(self) -> str:
        return ""


Instruction = From | Workdir | Copy | CopyFrom | CopyPath | Run | Arg | Env | Cmd | Comment | Blank


def render_recipe(instructions: Iterable[Instruction]) -> str:
    """Serialize instructions, dropping empty ones and collapsing blank runs."""
    lines: list[str] = []
    for instruction in instructions:
        if isinstance(instruction, Blank):
            if lines and lines[-1] != "":
                lines.append("")
            continue
        rendered = instruction.render()
        if rendered:
            lines.append(rendered)
    while lines and lines[-1] == "":
        lines.pop()
    return "\n".join(lines) + "\n"


__all__ = [
    "APP_DIR",
    "Arg",
    "Blank",
    "Cmd",
    "Comment",
    "Copy",
    "CopyFrom",
    "CopyPath",
    "Env",
    "From",
    "Instruction",
    "Run",
    "Workdir",
    "copy_command",
    "copy_from_command",
    "exec_command",
    "render_recipe",
]

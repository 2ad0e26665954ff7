"""Build backend driven by a configurable argv template.

Runners such as kaniko or buildctl are expressed as configuration: an argv
template with ``{context}``, ``{dockerfile}`` and ``{name}`` placeholders and
a mount mapping that translates host paths into the runner's view. A
standalone ``{mounts}`` argument expands to one ``mount_template`` rendering
per mount, with ``{mode}`` set to ``:ro`` for read-only mounts.
"""

from __future__ import annotations

import subprocess
from collections.abc import Mapping
from dataclasses import dataclass, field

from stackplan.backends.base import (
    BuildRequest,
    BuildResponse,
    MountSpec,
    output_options,
    translate_path,
)
from stackplan.errors import BackendExecutionError, ValidationError

PLACEHOLDERS = ("{context}", "{dockerfile}", "{name}")
MOUNTS_PLACEHOLDER = "{mounts}"


@dataclass(slots=True)
class CommandTemplateBackend:
    argv: tuple[str, ...]
    name: str = "template"
    mounts: tuple[MountSpec, ...] = ()
    mount_template: str = "--volume={source}:{target}{mode}"
    env: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.argv:
            raise ValidationError(
                "Command template backend needs a non-empty argv template.",
                context={"backend": self.name, "operation": "configure"},
            )

    def mount_plan(self, request: BuildRequest) -> tuple[MountSpec, ...]:
        return tuple(sorted(self.mounts, key=lambda mount: str(mount.source)))

    def command(self, request: BuildRequest) -> tuple[str, ...]:
        mounts = self.mount_plan(request)
        values = {
            "{context}": translate_path(request.context_dir, mounts),
            "{dockerfile}": translate_path(request.dockerfile, mounts),
            "{name}": request.name,
        }
        rendered: list[str] = []
        for arg in self.argv:
            if arg == MOUNTS_PLACEHOLDER:
                rendered.extend(self._mount_args(mounts))
                continue
            for placeholder in PLACEHOLDERS:
                arg = arg.replace(placeholder, values[placeholder])
            rendered.append(arg)
        return tuple(rendered)

    def _mount_args(self, mounts: tuple[MountSpec, ...]) -> list[str]:
        return [
            self.mount_template.replace("{source}", str(mount.source))
            .replace("{target}", mount.target)
            .replace("{mode}", ":ro" if mount.read_only else "")
            for mount in mounts
        ]

    def execute(self, request: BuildRequest) -> BuildResponse:
        cmd = self.command(request)
        try:
            result = subprocess.run(
                cmd,
                env=dict(self.env) or None,
                check=False,
                **output_options(request),
            )
        except OSError as exc:
            raise BackendExecutionError(
                f"Unable to start `{cmd[0]}`.",
                context={"backend": self.name, "operation": "execute", "command": " ".join(cmd)},
            ) from exc
        if result.returncode != 0:
            raise BackendExecutionError(
                "Templated build command failed.",
                context={
                    "backend": self.name,
                    "operation": "execute",
                    "returncode": str(result.returncode),
                    "stderr": result.stderr[:2000] if result.stderr else "",
                    "command": " ".join(cmd),
                },
            )
        return BuildResponse(backend=self.name, command=cmd, stdout=result.stdout or "")

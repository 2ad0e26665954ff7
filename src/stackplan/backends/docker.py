"""Docker CLI build backend."""

from __future__ import annotations

import os
import shutil
import subprocess
from dataclasses import dataclass

from stackplan.backends.base import BuildRequest, BuildResponse, MountSpec, output_options
from stackplan.errors import BackendExecutionError


@dataclass(slots=True)
class DockerBackend:
    name: str = "docker"
    executable: str = "docker"

    def mount_plan(self, request: BuildRequest) -> tuple[MountSpec, ...]:
        # The docker CLI reads the context from the host directly.
        return ()

    def command(self, request: BuildRequest) -> tuple[str, ...]:
        cmd: list[str] = [
            self.executable,
            "build",
            str(request.context_dir),
            "-f",
            str(request.dockerfile),
            "-t",
            request.name,
        ]
        if request.quiet:
            cmd.append("--quiet")
        if request.no_cache:
            cmd.append("--no-cache")
        for key, value in sorted(request.variables.items()):
            cmd.extend(["--build-arg", f"{key}={value}"])
        for tag in request.tags:
            cmd.extend(["-t", tag])
        for label in request.labels:
            cmd.extend(["--label", label])
        for platform in request.platform:
            cmd.extend(["--platform", platform])
        return tuple(cmd)

    def execute(self, request: BuildRequest) -> BuildResponse:
        if shutil.which(self.executable) is None:
            raise BackendExecutionError(
                f"Docker backend requires `{self.executable}` in PATH.",
                hint="Install Docker to build the app: https://docs.docker.com/engine/install/",
                context={"backend": self.name, "operation": "execute"},
            )
        cmd = self.command(request)
        result = subprocess.run(
            cmd,
            env={**os.environ, "DOCKER_BUILDKIT": "1"},
            check=False,
            **output_options(request),
        )
        if result.returncode != 0:
            raise BackendExecutionError(
                "docker build failed.",
                hint="Check the docker output for the failing recipe step.",
                context={
                    "backend": self.name,
                    "operation": "execute",
                    "name": request.name,
                    "returncode": str(result.returncode),
                    "stderr": result.stderr[:2000] if result.stderr else "",
                    "command": " ".join(cmd),
                },
            )
        return BuildResponse(backend=self.name, command=cmd, stdout=result.stdout or "")

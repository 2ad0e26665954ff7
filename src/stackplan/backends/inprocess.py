"""In-process backend used by tests and dry runs."""

from __future__ import annotations

from dataclasses import dataclass, field

from stackplan.backends.base import BuildRequest, BuildResponse, MountSpec
from stackplan.errors import BackendExecutionError


@dataclass(slots=True)
class InProcessBackend:
    name: str = "in_process"
    fail_with: int | None = None
    requests: list[BuildRequest] = field(default_factory=list)
    seen_files: list[list[str]] = field(default_factory=list)

    def mount_plan(self, request: BuildRequest) -> tuple[MountSpec, ...]:
        return (MountSpec(source=request.context_dir, target=str(request.context_dir)),)

    def command(self, request: BuildRequest) -> tuple[str, ...]:
        return ("in-process-build", str(request.context_dir), request.name)

    def execute(self, request: BuildRequest) -> BuildResponse:
        self.requests.append(request)
        # Snapshot the context now; a temporary one is removed after we return.
        self.seen_files.append(
            sorted(
                path.relative_to(request.context_dir).as_posix()
                for path in request.context_dir.rglob("*")
                if path.is_file()
            )
        )
        if self.fail_with is not None:
            raise BackendExecutionError(
                "In-process build failed.",
                context={
                    "backend": self.name,
                    "operation": "execute",
                    "returncode": str(self.fail_with),
                },
            )
        return BuildResponse(backend=self.name, command=self.command(request))

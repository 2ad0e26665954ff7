"""Image builder: validates, synthesizes, stages the context and invokes a backend."""

from __future__ import annotations

import shutil
import sys
import tempfile
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from stackplan.app import App
from stackplan.backends.base import BuildBackend, BuildRequest, BuildResponse
from stackplan.backends.docker import DockerBackend
from stackplan.compiler.emit import emit_recipe, write_emission
from stackplan.environment import Environment
from stackplan.errors import SourceTreeError
from stackplan.observability import StructuredLogger
from stackplan.plan.model import BuildPlan
from stackplan.plan.validate import ensure_start_command


@dataclass(frozen=True, slots=True)
class BuildOptions:
    name: str | None = None
    print_recipe: bool = False
    out_dir: str | Path | None = None
    tags: tuple[str, ...] = ()
    labels: tuple[str, ...] = ()
    quiet: bool = False
    cache_key: str | None = None
    no_cache: bool = False
    platform: tuple[str, ...] = ()
    current_dir: bool = False
    allow_missing_start: bool = False


@dataclass(frozen=True, slots=True)
class ImageBuildResult:
    name: str
    recipe: str
    context_dir: Path | None
    built: bool
    response: BuildResponse | None = None


@dataclass(slots=True)
class ImageBuilder:
    options: BuildOptions = field(default_factory=BuildOptions)
    backend: BuildBackend = field(default_factory=DockerBackend)
    logger: StructuredLogger = field(default_factory=StructuredLogger)
    stdout: TextIO = field(default_factory=lambda: sys.stdout)

    def create_image(self, app: App, plan: BuildPlan, env: Environment) -> ImageBuildResult:
        ensure_start_command(plan, allow_missing=self.options.allow_missing_start)
        name = self.options.name or str(uuid.uuid4())
        emission = emit_recipe(plan, self.options, env)
        self.logger.log(
            operation="synthesize",
            message="recipe synthesized",
            extra={"name": name, "files": sorted(emission.files)},
        )

        if self.options.print_recipe:
            self.stdout.write(emission.recipe)
            return ImageBuildResult(name=name, recipe=emission.recipe, context_dir=None, built=False)

        self.stdout.write(plan.summary())
        context_dir, owned = self._context_dir(app)
        try:
            if not self.options.current_dir:
                _copy_app(app, context_dir)
            write_emission(emission, context_dir)

            if self.options.out_dir is not None:
                self.logger.log(
                    operation="create_image",
                    message="build context saved",
                    extra={"context_dir": str(context_dir)},
                )
                self.stdout.write(f"\nSaved output to:\n  {context_dir}\n")
                return ImageBuildResult(
                    name=name, recipe=emission.recipe, context_dir=context_dir, built=False
                )

            request = BuildRequest(
                name=name,
                context_dir=context_dir,
                dockerfile=context_dir / emission.dockerfile_path,
                variables=dict(plan.variables),
                tags=self.options.tags,
                labels=self.options.labels,
                platform=self.options.platform,
                quiet=self.options.quiet,
                no_cache=self.options.no_cache,
            )
            self.logger.log(
                operation="create_image",
                message="backend build started",
                extra={"backend": self.backend.name, "name": name},
            )
            response = self.backend.execute(request)
            self.logger.log(
                operation="create_image",
                message="backend build finished",
                extra={"backend": self.backend.name, "name": name},
            )
            self.stdout.write(f"\nRun:\n  docker run -it {name}\n")
            return ImageBuildResult(
                name=name,
                recipe=emission.recipe,
                context_dir=None if owned else context_dir,
                built=True,
                response=response,
            )
        finally:
            if owned:
                shutil.rmtree(context_dir, ignore_errors=True)

    def _context_dir(self, app: App) -> tuple[Path, bool]:
        """Return the build context and whether this builder created it."""
        if self.options.current_dir:
            return app.source, False
        if self.options.out_dir is not None:
            out_dir = Path(self.options.out_dir)
            out_dir.mkdir(parents=True, exist_ok=True)
            return out_dir, False
        return Path(tempfile.mkdtemp(prefix="stackplan-")), True


def _copy_app(app: App, dest: Path) -> None:
    dest = dest.resolve()
    if dest == app.source:
        return
    # An output directory nested in the source must not be copied into itself.
    ignore = _excluding(dest) if dest.is_relative_to(app.source) else None
    try:
        shutil.copytree(app.source, dest, ignore=ignore, dirs_exist_ok=True)
    except OSError as exc:
        raise SourceTreeError(
            "Unable to copy the application into the build context.",
            context={"operation": "write_app", "path": str(app.source), "dest": str(dest)},
        ) from exc


def _excluding(target: Path) -> Callable[[str, list[str]], list[str]]:
    def ignore(directory: str, names: list[str]) -> list[str]:
        return [name for name in names if (Path(directory) / name).resolve() == target]

    return ignore


__all__ = ["BuildOptions", "ImageBuildResult", "ImageBuilder"]

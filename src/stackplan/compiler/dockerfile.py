"""Lower a :class:`BuildPlan` into an ordered recipe instruction list."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Protocol

from stackplan.compiler.cache import cache_mount_clauses
from stackplan.compiler.instructions import (
    APP_DIR,
    Arg,
    Blank,
    Cmd,
    Comment,
    Copy,
    CopyFrom,
    CopyPath,
    Env,
    From,
    Instruction,
    Run,
    Workdir,
    render_recipe,
)
from stackplan.environment import Environment
from stackplan.errors import SynthesisError
from stackplan.plan.model import BuildPlan, Phase

STACKPLAN_DIR = ".stackplan"
ENVIRONMENT_NIX_PATH = f"{STACKPLAN_DIR}/environment.nix"
ASSETS_STAGING_DIR = "assets"
ASSETS_DIR = "/assets/"
FIRST_STAGE = "0"
CA_CERTS_DIR = "/etc/ssl/certs"
PROFILE_PATH = "/root/.profile"


class RecipeOptions(Protocol):
    cache_key: str | None
    no_cache: bool


@dataclass(frozen=True, slots=True)
class _Defaults:
    cache_key: str | None = None
    no_cache: bool = False


def validate_asset_name(name: str) -> str:
    path = PurePosixPath(name)
    if not name or path.is_absolute() or ".." in path.parts or name.endswith("/"):
        raise SynthesisError(
            "Static asset names must be non-empty relative paths.",
            hint="Use names like `nginx.conf` or `conf/site.conf`.",
            context={"asset": name, "operation": "synthesize_recipe"},
        )
    return name


class DockerfileSynthesizer:
    """Turns a plan into Dockerfile instructions.

    The synthesizer is total over plan shapes: a missing start command yields
    no ``CMD`` rather than an error. Start-command validation happens before
    synthesis is invoked.
    """

    def __init__(self, app_dir: str = APP_DIR) -> None:
        self.app_dir = app_dir

    def instructions(
        self,
        plan: BuildPlan,
        options: RecipeOptions | None = None,
        env: Environment | None = None,
    ) -> list[Instruction]:
        options = options or _Defaults()
        env = env or Environment()
        cache_key = self._effective_cache_key(options, env)

        setup = plan.setup or Phase(kind="setup")
        install = plan.install or Phase(kind="install")
        build = plan.build or Phase(kind="build")
        start = plan.start or Phase(kind="start")

        out: list[Instruction] = [From(setup.base_image), Blank(), Workdir(self.app_dir), Blank()]
        out.extend(self._setup(setup))
        out.append(Blank())
        out.extend(self._assets(plan))
        out.append(Blank())
        out.extend(self._variables(plan))
        out.append(Blank())
        out.extend(self._install(install, cache_key))
        out.append(Blank())
        out.extend(self._build(install, build, cache_key))
        out.append(Blank())
        out.extend(self._start(plan, start))
        return out

    @staticmethod
    def _effective_cache_key(options: RecipeOptions, env: Environment) -> str | None:
        if options.no_cache or env.is_config_variable_truthy("NO_CACHE"):
            return None
        return options.cache_key

    def _setup(self, setup: Phase) -> list[Instruction]:
        files = (ENVIRONMENT_NIX_PATH, *(setup.only_include_files or ()))
        out: list[Instruction] = [
            Comment("Setup"),
            Copy(files, self.app_dir),
            Run("nix-env -if environment.nix"),
        ]
        if setup.apt_packages:
            out.append(
                Run(f"apt-get update && apt-get install -y {' '.join(setup.apt_packages)}")
            )
        out.extend(Run(command) for command in setup.commands)
        return out

    def _assets(self, plan: BuildPlan) -> list[Instruction]:
        return [
            CopyPath(
                f"{ASSETS_STAGING_DIR}/{validate_asset_name(name)}",
                f"{ASSETS_DIR}{name}",
            )
            for name in sorted(plan.static_assets)
        ]

    def _variables(self, plan: BuildPlan) -> list[Instruction]:
        if not plan.variables:
            return []
        names = tuple(sorted(plan.variables))
        return [
            Comment("Load environment variables"),
            Arg(names),
            Env(tuple((name, f"${name}") for name in names)),
        ]

    def _install(self, install: Phase, cache_key: str | None) -> list[Instruction]:
        mounts = cache_mount_clauses(cache_key, install.cache_directories)
        files = install.only_include_files if install.only_include_files is not None else (".",)
        out: list[Instruction] = [Comment("Install"), Copy(files, self.app_dir)]
        out.extend(Run(command, mounts) for command in install.commands)
        if install.env_path_entries:
            joined = ":".join(install.env_path_entries)
            out.append(Blank())
            out.append(Env((("PATH", f"{joined}:$PATH"),)))
            out.append(Run(f"printf '\\nPATH={joined}:$PATH' >> {PROFILE_PATH}"))
        return out

    def _build(self, install: Phase, build: Phase, cache_key: str | None) -> list[Instruction]:
        mounts = cache_mount_clauses(cache_key, build.cache_directories)
        if build.only_include_files is not None:
            files = build.only_include_files
        elif install.only_include_files is None:
            # Install already copied the whole tree.
            files = ()
        else:
            files = (".",)
        out: list[Instruction] = [Comment("Build"), Copy(files, self.app_dir)]
        out.extend(Run(command, mounts) for command in build.commands)
        return out

    def _start(self, plan: BuildPlan, start: Phase) -> list[Instruction]:
        out: list[Instruction] = [Comment("Start")]
        if start.run_image is not None:
            out.extend(
                [
                    From(start.run_image),
                    Workdir(self.app_dir),
                    CopyPath(CA_CERTS_DIR, CA_CERTS_DIR, stage=FIRST_STAGE),
                    # Consecutive COPY --from layers can fail without an interleaved RUN.
                    Run("true"),
                    CopyFrom(FIRST_STAGE, start.only_include_files or (), self.app_dir),
                ]
            )
            # Runtime variables do not survive the stage switch on their own.
            out.extend(self._variables(plan)[1:])
        else:
            files = start.only_include_files if start.only_include_files is not None else (".",)
            out.append(Copy(files, self.app_dir))
        if start.start_command is not None:
            out.append(Cmd(start.start_command))
        return out


def synthesize_recipe(
    plan: BuildPlan,
    options: RecipeOptions | None = None,
    env: Environment | None = None,
) -> str:
    return render_recipe(DockerfileSynthesizer().instructions(plan, options, env))


__all__ = [
    "ASSETS_DIR",
    "ASSETS_STAGING_DIR",
    "DockerfileSynthesizer",
    "ENVIRONMENT_NIX_PATH",
    "RecipeOptions",
    "STACKPLAN_DIR",
    "synthesize_recipe",
    "validate_asset_name",
]

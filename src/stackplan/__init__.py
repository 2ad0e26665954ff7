"""Detect an application's stack, plan its build and synthesize a container recipe."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path

from stackplan.app import App
from stackplan.backends.base import BuildBackend
from stackplan.builder import BuildOptions, ImageBuilder, ImageBuildResult
from stackplan.chain import GeneratePlanOptions, ProviderChain
from stackplan.environment import Environment
from stackplan.errors import ErrorCode, StackplanError
from stackplan.plan.model import BuildPlan, Package, Phase
from stackplan.providers import Provider, default_providers

__version__ = "0.1.0"


def generate_build_plan(
    path: str | Path,
    envs: Iterable[str] = (),
    options: GeneratePlanOptions | None = None,
    providers: Sequence[Provider] | None = None,
) -> BuildPlan:
    app = App(path)
    env = Environment.from_envs(envs)
    chain = ProviderChain(providers if providers is not None else default_providers())
    return chain.generate_plan(app, env, options)


def create_image(
    path: str | Path,
    envs: Iterable[str] = (),
    plan_options: GeneratePlanOptions | None = None,
    build_options: BuildOptions | None = None,
    backend: BuildBackend | None = None,
) -> ImageBuildResult:
    app = App(path)
    env = Environment.from_envs(envs)
    plan = ProviderChain(default_providers()).generate_plan(app, env, plan_options)
    builder = ImageBuilder(options=build_options or BuildOptions())
    if backend is not None:
        builder.backend = backend
    return builder.create_image(app, plan, env)


__all__ = [
    "BuildOptions",
    "BuildPlan",
    "ErrorCode",
    "GeneratePlanOptions",
    "ImageBuildResult",
    "ImageBuilder",
    "Package",
    "Phase",
    "ProviderChain",
    "StackplanError",
    "create_image",
    "generate_build_plan",
]

"""Provider selection and plan generation."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace

from stackplan.app import App
from stackplan.environment import Environment
from stackplan.errors import NoProviderDetectedError
from stackplan.observability import StructuredLogger
from stackplan.plan.assemble import assemble_plan
from stackplan.plan.model import BuildPlan, Package, Phase
from stackplan.providers.base import CAPABILITY_ORDER, DetectResult, Provider


@dataclass(frozen=True, slots=True)
class GeneratePlanOptions:
    custom_packages: tuple[str, ...] = ()
    custom_apt_packages: tuple[str, ...] = ()
    custom_install_command: str | None = None
    custom_build_command: str | None = None
    custom_start_command: str | None = None


def _split_words(value: str | None) -> tuple[str, ...]:
    return tuple(value.split()) if value else ()


@dataclass(slots=True)
class ProviderChain:
    providers: Sequence[Provider]
    logger: StructuredLogger = field(default_factory=StructuredLogger)

    def detect(self, app: App, env: Environment) -> tuple[Provider, DetectResult]:
        for provider in self.providers:
            result = provider.detect(app, env)
            if result.detected:
                self.logger.log(
                    operation="detect",
                    provider=provider.name,
                    message="provider detected",
                    extra={"metadata": dict(result.metadata)},
                )
                return provider, result
        self.logger.log(operation="detect", level="error", message="no provider detected")
        raise NoProviderDetectedError(
            "No provider matched the application source.",
            hint="Check that the project root contains a supported build descriptor.",
            context={
                "operation": "detect",
                "path": str(app.source),
                "providers": [provider.name for provider in self.providers],
            },
        )

    def generate_plan(
        self,
        app: App,
        env: Environment,
        options: GeneratePlanOptions | None = None,
    ) -> BuildPlan:
        options = options or GeneratePlanOptions()
        provider, detection = self.detect(app, env)
        metadata = detection.metadata

        phases: list[Phase | None] = []
        variables: dict[str, str] = {}
        for capability in CAPABILITY_ORDER:
            method = getattr(provider, capability, None)
            if method is None:
                continue
            contribution = method(app, env, metadata)
            if capability == "environment_variables":
                variables.update(contribution or {})
            else:
                phases.append(contribution)
            self.logger.log(
                operation="generate_plan",
                provider=provider.name,
                phase=capability,
                message="capability applied" if contribution is not None else "capability empty",
            )

        static_assets: Mapping[str, str] = {}
        assets_method = getattr(provider, "static_assets", None)
        if assets_method is not None:
            static_assets = assets_method(app, env, metadata) or {}

        variables.update(env.user_variables())
        plan = assemble_plan(phases, variables=variables, static_assets=static_assets)
        overridden = apply_overrides(plan, options, env)
        if overridden != plan:
            self.logger.log(
                operation="apply_overrides",
                provider=provider.name,
                message="user overrides applied",
            )
        plan = overridden
        self.logger.log(
            operation="generate_plan",
            provider=provider.name,
            message="plan generated",
            extra={"digest": plan.digest()},
        )
        return plan


def apply_overrides(plan: BuildPlan, options: GeneratePlanOptions, env: Environment) -> BuildPlan:
    """Apply user-supplied packages and commands; explicit options beat config variables."""
    packages = options.custom_packages or _split_words(env.get_config_variable("PKGS"))
    apt_packages = options.custom_apt_packages or _split_words(
        env.get_config_variable("APT_PKGS")
    )
    install_command = options.custom_install_command or env.get_config_variable("INSTALL_CMD")
    build_command = options.custom_build_command or env.get_config_variable("BUILD_CMD")
    start_command = options.custom_start_command or env.get_config_variable("START_CMD")

    setup, install, build, start = plan.setup, plan.install, plan.build, plan.start
    if packages or apt_packages:
        setup = setup or Phase.setup()
        setup = replace(
            setup,
            packages=tuple(dict.fromkeys((*setup.packages, *(Package(p) for p in packages)))),
            apt_packages=tuple(dict.fromkeys((*setup.apt_packages, *apt_packages))),
        )
    if install_command:
        install = replace(install or Phase.install(), commands=(install_command,))
    if build_command:
        build = replace(build or Phase.build(), commands=(build_command,))
    if start_command:
        start = replace(start or Phase.start(None), start_command=start_command)
    return replace(plan, setup=setup, install=install, build=build, start=start)


__all__ = ["GeneratePlanOptions", "ProviderChain", "apply_overrides"]

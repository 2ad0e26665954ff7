"""Clojure (Leiningen) provider."""

from __future__ import annotations

import re
from dataclasses import dataclass

from stackplan.app import App
from stackplan.environment import Environment
from stackplan.plan.model import Package, Phase
from stackplan.providers.base import DetectResult, ProviderMetadata
from stackplan.providers.versions import (
    descriptor_hint,
    package_for_version,
    resolve_jdk_version,
)

DEFAULT_JDK_PACKAGE = "jdk8"

_JDK_PACKAGES = {8: "jdk8", 11: "jdk11"}
_JAVAC_TARGET = re.compile(r""":javac-options\s*\[[^\]]*?(?:-target|--release)"?\s+"([0-9.]+)""")


def clojure_jdk_package(app: App, env: Environment) -> str:
    hint = None
    if app.includes_file("project.clj"):
        hint = descriptor_hint(app.read_file("project.clj"), _JAVAC_TARGET)
    version = resolve_jdk_version(app, env, hint)
    return package_for_version(version, _JDK_PACKAGES, DEFAULT_JDK_PACKAGE)


@dataclass(frozen=True, slots=True)
class ClojureProvider:
    name: str = "clojure"

    def detect(self, app: App, env: Environment) -> DetectResult:
        if app.includes_file("project.clj"):
            return DetectResult.yes(build_tool="leiningen")
        return DetectResult.no()

    def setup(self, app: App, env: Environment, metadata: ProviderMetadata) -> Phase:
        return Phase.setup([Package("leiningen"), Package(clojure_jdk_package(app, env))])

    def build(self, app: App, env: Environment, metadata: ProviderMetadata) -> Phase:
        return Phase.build("lein uberjar", cache_directories=["~/.m2/repository"])

    def start(self, app: App, env: Environment, metadata: ProviderMetadata) -> Phase:
        return Phase.start("java $JAVA_OPTS -jar target/uberjar/*standalone.jar")


__all__ = ["ClojureProvider", "clojure_jdk_package"]

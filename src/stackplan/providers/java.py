"""Java provider covering Maven and Gradle projects."""

from __future__ import annotations

import re
from dataclasses import dataclass

from stackplan.app import App
from stackplan.environment import Environment
from stackplan.errors import InvalidProjectStructureError
from stackplan.plan.model import Package, Phase
from stackplan.providers.base import DetectResult, ProviderMetadata
from stackplan.providers.versions import (
    descriptor_hint,
    package_for_version,
    resolve_jdk_version,
    resolve_version,
    version_file,
)

DEFAULT_JDK_PACKAGE = "jdk"

MAVEN_DESCRIPTORS = (
    "pom.xml",
    "pom.atom",
    "pom.clj",
    "pom.groovy",
    "pom.rb",
    "pom.scala",
    "pom.yaml",
    "pom.yml",
)
MAVEN_CACHE_DIR = "~/.m2/repository"
MAVEN_WRAPPER_PROPERTIES = ".mvn/wrapper/maven-wrapper.properties"

GRADLE_WRAPPER_PROPERTIES = "gradle/wrapper/gradle-wrapper.properties"
GRADLE_CACHE_DIR = "~/.gradle"
GRADLE_OPTS = (
    "-Dorg.gradle.daemon=false "
    "-Dorg.gradle.internal.launcher.welcomeMessageEnabled=false"
)
SPRING_CONFIG_FILES = (
    "src/main/resources/config/application.yml",
    "src/main/resources/config/application.properties",
)

_MAVEN_JDK_HINTS = (
    re.compile(r"<java\.version>\s*([^<]+?)\s*</java\.version>"),
    re.compile(r"<maven\.compiler\.release>\s*([^<]+?)\s*</maven\.compiler\.release>"),
    re.compile(r"<maven\.compiler\.source>\s*([^<]+?)\s*</maven\.compiler\.source>"),
)
_MAVEN_JDK_PACKAGES = {8: "jdk8", 11: "jdk11", 17: "jdk17"}
_GRADLE_DISTRIBUTION = re.compile(r"(distributionUrl[\S].*[gradle])(-)([0-9|\.]*)")
_SPRING_PLACEHOLDER = re.compile(r"\$\{(\w+)")


@dataclass(frozen=True, slots=True)
class JavaProvider:
    name: str = "java"

    def detect(self, app: App, env: Environment) -> DetectResult:
        if app.includes_file("gradlew"):
            _validate_gradle_structure(app)
            return DetectResult.yes(build_tool="gradle")
        if any(app.includes_file(name) for name in MAVEN_DESCRIPTORS):
            return DetectResult.yes(build_tool="maven")
        return DetectResult.no()

    def setup(self, app: App, env: Environment, metadata: ProviderMetadata) -> Phase:
        if _is_gradle(metadata):
            return Phase.setup([Package(gradle_jdk_package(app, env))])
        return Phase.setup([Package("maven"), Package(maven_jdk_package(app, env))])

    def build(self, app: App, env: Environment, metadata: ProviderMetadata) -> Phase:
        if _is_gradle(metadata):
            return Phase.build(
                "./gradlew build -x check", cache_directories=[GRADLE_CACHE_DIR]
            )
        mvn = maven_executable(app)
        return Phase.build(
            f"{mvn} -DoutputFile=target/mvn-dependency-list.log -B -DskipTests "
            "clean dependency:list install",
            cache_directories=[MAVEN_CACHE_DIR],
        )

    def start(self, app: App, env: Environment, metadata: ProviderMetadata) -> Phase:
        if _is_gradle(metadata):
            return Phase.start(
                'bash -c "java -Dserver.port=$PORT $JAVA_OPTS -jar ./build/libs/*.jar"'
            )
        return Phase.start(maven_start_command(app))

    def environment_variables(
        self, app: App, env: Environment, metadata: ProviderMetadata
    ) -> dict[str, str] | None:
        if not _is_gradle(metadata):
            return None
        variables = {"GRADLE_OPTS": GRADLE_OPTS}
        if is_spring_boot_gradle(app):
            for key in spring_placeholders(app):
                variables.setdefault(key, "")
        return variables


def _is_gradle(metadata: ProviderMetadata) -> bool:
    return metadata.get("build_tool") == "gradle"


def _validate_gradle_structure(app: App) -> None:
    required = (
        ("build.gradle", "build.gradle.kts"),
        ("settings.gradle", "settings.gradle.kts"),
        (GRADLE_WRAPPER_PROPERTIES,),
    )
    missing = [
        " or ".join(options)
        for options in required
        if not any(app.includes_file(option) for option in options)
    ]
    if missing:
        raise InvalidProjectStructureError(
            f"Gradle project detected with missing files: {', '.join(missing)}.",
            hint="Add the missing files to the root of your project directory.",
            context={"missing": missing, "operation": "detect", "provider": "java"},
        )


def maven_executable(app: App) -> str:
    if app.includes_file("mvnw") and app.includes_file(MAVEN_WRAPPER_PROPERTIES):
        return "./mvnw"
    return "mvn"


def maven_port_flag(app: App) -> str | None:
    if not app.includes_file("pom.xml"):
        return None
    pom = app.read_file("pom.xml")
    if "<groupId>org.wildfly.swarm" in pom:
        return "-Dswarm.http.port=$PORT"
    if "<groupId>org.springframework.boot" in pom and "<artifactId>spring-boot" in pom:
        return "-Dserver.port=$PORT"
    return None


def maven_start_command(app: App) -> str:
    parts = ["java", maven_port_flag(app), "$JAVA_OPTS", "-jar", "target/*jar"]
    return " ".join(part for part in parts if part)


def maven_jdk_package(app: App, env: Environment) -> str:
    hint = None
    if app.includes_file("pom.xml"):
        pom = app.read_file("pom.xml")
        for pattern in _MAVEN_JDK_HINTS:
            hint = descriptor_hint(pom, pattern)
            if hint is not None:
                break
    version = resolve_jdk_version(app, env, hint)
    return package_for_version(version, _MAVEN_JDK_PACKAGES, DEFAULT_JDK_PACKAGE)


def gradle_version(app: App, env: Environment) -> int | None:
    distribution = None
    if app.includes_file(GRADLE_WRAPPER_PROPERTIES):
        distribution = descriptor_hint(
            app.read_file(GRADLE_WRAPPER_PROPERTIES), _GRADLE_DISTRIBUTION, group=3
        )
    return resolve_version(
        env.get_config_variable("GRADLE_VERSION"),
        version_file(app, ".gradle-version"),
        distribution,
    )


def gradle_jdk_package(app: App, env: Environment) -> str:
    version = gradle_version(app, env)
    if version is None:
        return DEFAULT_JDK_PACKAGE
    if version == 6:
        return "jdk11"
    if version < 6:
        return "jdk8"
    return DEFAULT_JDK_PACKAGE


def _gradle_build_file(app: App) -> str:
    for name in ("build.gradle", "build.gradle.kts"):
        if app.includes_file(name):
            return app.read_file(name)
    return ""


def is_spring_boot_gradle(app: App) -> bool:
    content = _gradle_build_file(app)
    return any(
        marker in content
        for marker in (
            "org.springframework.boot",
            "spring-boot-gradle-plugin",
            "org.grails:grails-",
        )
    )


def spring_placeholders(app: App) -> list[str]:
    """Names referenced as ``${NAME}`` in the Spring application config."""
    for name in SPRING_CONFIG_FILES:
        if app.includes_file(name):
            return sorted(set(_SPRING_PLACEHOLDER.findall(app.read_file(name))))
    return []


__all__ = ["JavaProvider"]

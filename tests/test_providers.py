from collections.abc import Callable, Mapping
from pathlib import Path

import pytest

from stackplan.app import App
from stackplan.environment import Environment
from stackplan.errors import InvalidProjectStructureError
from stackplan.plan.model import Package
from stackplan.providers import (
    ClojureProvider,
    FSharpProvider,
    JavaProvider,
    StaticfileProvider,
)
from stackplan.providers.base import DetectResult
from stackplan.providers.clojure import clojure_jdk_package
from stackplan.providers.java import gradle_jdk_package, maven_jdk_package
from stackplan.providers.versions import parse_major_version, resolve_version

MakeTree = Callable[[Mapping[str, str]], Path]

GRADLE_FILES = {
    "gradlew": "#!/bin/sh\n",
    "build.gradle": "plugins { id 'java' }\n",
    "settings.gradle": "rootProject.name = 'demo'\n",
}


def _wrapper(version: str) -> str:
    return (
        "distributionBase=GRADLE_USER_HOME\n"
        f"distributionUrl=https\\://services.gradle.org/distributions/gradle-{version}-bin.zip\n"
    )


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("11", 11),
        (" 17\n", 17),
        ('"8"', 8),
        ("11.0.2", 11),
        ("v21", 21),
        ("abc", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_major_version(raw: str | None, expected: int | None) -> None:
    assert parse_major_version(raw) == expected


def test_parse_major_version_legacy_java_scheme() -> None:
    assert parse_major_version("1.8", legacy_java=True) == 8
    assert parse_major_version("1.8") == 1


def test_resolve_version_priority_and_fallback() -> None:
    assert resolve_version("11", "17", "8") == 11
    assert resolve_version(None, "17", "8") == 17
    assert resolve_version(None, None, "8") == 8
    assert resolve_version(None, None, None) is None
    # An unparseable winner falls back to the default instead of the next source.
    assert resolve_version("latest", "17") is None


def test_clojure_jdk_default(make_tree: MakeTree) -> None:
    app = App(make_tree({"project.clj": "(defproject demo \"0.1.0\")\n"}))
    assert clojure_jdk_package(app, Environment()) == "jdk8"


def test_clojure_jdk_from_version_file(make_tree: MakeTree) -> None:
    app = App(make_tree({"project.clj": "(defproject demo)\n", ".jdk-version": "11\n"}))
    assert clojure_jdk_package(app, Environment()) == "jdk11"


def test_clojure_jdk_environment_override_wins(make_tree: MakeTree) -> None:
    app = App(make_tree({"project.clj": "(defproject demo)\n", ".jdk-version": "11\n"}))
    env = Environment(variables={"NIXPACKS_JDK_VERSION": "8"})
    assert clojure_jdk_package(app, env) == "jdk8"

    bare = App(make_tree({"project.clj": "(defproject demo)\n"}))
    env = Environment(variables={"NIXPACKS_JDK_VERSION": "11"})
    assert clojure_jdk_package(bare, env) == "jdk11"


def test_clojure_jdk_from_javac_options(make_tree: MakeTree) -> None:
    project = '(defproject demo "0.1.0"\n  :javac-options ["-target" "11" "-source" "11"])\n'
    app = App(make_tree({"project.clj": project}))
    assert clojure_jdk_package(app, Environment()) == "jdk11"


def test_clojure_jdk_unparseable_version_file_uses_default(make_tree: MakeTree) -> None:
    app = App(make_tree({"project.clj": "(defproject demo)\n", ".jdk-version": "latest\n"}))
    assert clojure_jdk_package(app, Environment()) == "jdk8"


def test_undecodable_version_file_uses_default(make_tree: MakeTree) -> None:
    root = make_tree({"project.clj": "(defproject demo)\n", "pom.xml": "<project/>"})
    (root / ".jdk-version").write_bytes(b"\xff\xfe11")
    app = App(root)
    assert clojure_jdk_package(app, Environment()) == "jdk8"
    assert maven_jdk_package(app, Environment()) == "jdk"


def test_clojure_provider_phases(make_tree: MakeTree) -> None:
    app = App(make_tree({"project.clj": "(defproject demo)\n"}))
    provider = ClojureProvider()
    detection = provider.detect(app, Environment())

    assert detection.detected
    assert detection.metadata == {"build_tool": "leiningen"}
    setup = provider.setup(app, Environment(), detection.metadata)
    assert setup.packages == (Package("leiningen"), Package("jdk8"))
    assert provider.build(app, Environment(), detection.metadata).commands == ("lein uberjar",)
    start = provider.start(app, Environment(), detection.metadata)
    assert start.start_command == "java $JAVA_OPTS -jar target/uberjar/*standalone.jar"


def test_maven_detection_and_commands(make_tree: MakeTree) -> None:
    app = App(make_tree({"pom.xml": "<project></project>\n"}))
    provider = JavaProvider()
    detection = provider.detect(app, Environment())

    assert detection.metadata == {"build_tool": "maven"}
    build = provider.build(app, Environment(), detection.metadata)
    assert build.commands == (
        "mvn -DoutputFile=target/mvn-dependency-list.log -B -DskipTests clean dependency:list install",
    )
    assert build.cache_directories == ("~/.m2/repository",)
    start = provider.start(app, Environment(), detection.metadata)
    assert start.start_command == "java $JAVA_OPTS -jar target/*jar"
    assert provider.environment_variables(app, Environment(), detection.metadata) is None


def test_maven_wrapper_is_preferred(make_tree: MakeTree) -> None:
    app = App(
        make_tree(
            {
                "pom.xml": "<project></project>\n",
                "mvnw": "#!/bin/sh\n",
                ".mvn/wrapper/maven-wrapper.properties": "distributionUrl=x\n",
            }
        )
    )
    build = JavaProvider().build(app, Environment(), {"build_tool": "maven"})
    assert build.commands[0].startswith("./mvnw ")


@pytest.mark.parametrize(
    ("pom", "flag"),
    [
        (
            "<groupId>org.springframework.boot</groupId><artifactId>spring-boot-starter</artifactId>",
            "-Dserver.port=$PORT",
        ),
        ("<groupId>org.wildfly.swarm</groupId>", "-Dswarm.http.port=$PORT"),
    ],
)
def test_maven_port_flags(make_tree: MakeTree, pom: str, flag: str) -> None:
    app = App(make_tree({"pom.xml": f"<project>{pom}</project>\n"}))
    start = JavaProvider().start(app, Environment(), {"build_tool": "maven"})
    assert start.start_command == f"java {flag} $JAVA_OPTS -jar target/*jar"


@pytest.mark.parametrize(
    ("properties", "expected"),
    [
        ("<java.version>17</java.version>", "jdk17"),
        ("<maven.compiler.release>11</maven.compiler.release>", "jdk11"),
        ("<maven.compiler.source>1.8</maven.compiler.source>", "jdk8"),
        ("<java.version>21</java.version>", "jdk"),
        ("", "jdk"),
    ],
)
def test_maven_jdk_inference(make_tree: MakeTree, properties: str, expected: str) -> None:
    app = App(make_tree({"pom.xml": f"<project><properties>{properties}</properties></project>"}))
    assert maven_jdk_package(app, Environment()) == expected


def test_maven_jdk_version_file_beats_pom(make_tree: MakeTree) -> None:
    app = App(
        make_tree(
            {
                "pom.xml": "<project><java.version>17</java.version></project>",
                ".jdk-version": "11",
            }
        )
    )
    assert maven_jdk_package(app, Environment()) == "jdk11"


def test_gradle_wrapper_without_descriptors_is_invalid(make_tree: MakeTree) -> None:
    app = App(make_tree({"gradlew": "#!/bin/sh\n"}))

    with pytest.raises(InvalidProjectStructureError) as excinfo:
        JavaProvider().detect(app, Environment())

    message = str(excinfo.value)
    assert "build.gradle or build.gradle.kts" in message
    assert "settings.gradle or settings.gradle.kts" in message
    assert "gradle/wrapper/gradle-wrapper.properties" in message
    assert excinfo.value.code == "E_INVALID_PROJECT"


def test_gradle_missing_wrapper_properties_only(make_tree: MakeTree) -> None:
    app = App(make_tree(GRADLE_FILES))
    with pytest.raises(InvalidProjectStructureError) as excinfo:
        JavaProvider().detect(app, Environment())
    assert excinfo.value.context["missing"] == ["gradle/wrapper/gradle-wrapper.properties"]


def test_gradle_kotlin_descriptors_are_accepted(make_tree: MakeTree) -> None:
    files = {
        "gradlew": "#!/bin/sh\n",
        "build.gradle.kts": "plugins { java }\n",
        "settings.gradle.kts": "rootProject.name = \"demo\"\n",
        "gradle/wrapper/gradle-wrapper.properties": _wrapper("7.4.2"),
    }
    detection = JavaProvider().detect(App(make_tree(files)), Environment())
    assert detection.metadata == {"build_tool": "gradle"}


@pytest.mark.parametrize(
    ("version", "expected"),
    [("6.9", "jdk11"), ("5.6.4", "jdk8"), ("4.10", "jdk8"), ("7.4.2", "jdk")],
)
def test_gradle_jdk_from_wrapper(make_tree: MakeTree, version: str, expected: str) -> None:
    files = {**GRADLE_FILES, "gradle/wrapper/gradle-wrapper.properties": _wrapper(version)}
    assert gradle_jdk_package(App(make_tree(files)), Environment()) == expected


def test_gradle_version_overrides(make_tree: MakeTree) -> None:
    files = {
        **GRADLE_FILES,
        "gradle/wrapper/gradle-wrapper.properties": _wrapper("7.4.2"),
        ".gradle-version": "6",
    }
    app = App(make_tree(files))
    assert gradle_jdk_package(app, Environment()) == "jdk11"
    env = Environment(variables={"NIXPACKS_GRADLE_VERSION": "5"})
    assert gradle_jdk_package(app, env) == "jdk8"


def test_gradle_provider_phases_and_variables(make_tree: MakeTree) -> None:
    files = {
        **GRADLE_FILES,
        "build.gradle": "plugins { id 'org.springframework.boot' version '3.0.0' }\n",
        "gradle/wrapper/gradle-wrapper.properties": _wrapper("6.9"),
        "src/main/resources/config/application.yml": (
            "spring:\n  datasource:\n    url: ${DATABASE_URL}\n    user: ${DB_USER:app}\n"
        ),
    }
    app = App(make_tree(files))
    provider = JavaProvider()
    metadata = provider.detect(app, Environment()).metadata

    assert provider.setup(app, Environment(), metadata).packages == (Package("jdk11"),)
    build = provider.build(app, Environment(), metadata)
    assert build.commands == ("./gradlew build -x check",)
    assert build.cache_directories == ("~/.gradle",)
    assert provider.start(app, Environment(), metadata).start_command == (
        'bash -c "java -Dserver.port=$PORT $JAVA_OPTS -jar ./build/libs/*.jar"'
    )
    variables = provider.environment_variables(app, Environment(), metadata)
    assert variables == {
        "DATABASE_URL": "",
        "DB_USER": "",
        "GRADLE_OPTS": (
            "-Dorg.gradle.daemon=false "
            "-Dorg.gradle.internal.launcher.welcomeMessageEnabled=false"
        ),
    }


def test_fsharp_provider(make_tree: MakeTree) -> None:
    app = App(make_tree({"src/ignored.txt": "", "Web.fsproj": "<Project />\n"}))
    provider = FSharpProvider()
    detection = provider.detect(app, Environment())

    assert detection.detected
    metadata = detection.metadata
    assert provider.setup(app, Environment(), metadata).packages == (Package("dotnet-sdk"),)
    assert provider.install(app, Environment(), metadata).commands == ("dotnet restore",)
    assert provider.build(app, Environment(), metadata).commands == (
        "dotnet publish --no-restore -c Release -o out",
    )
    assert provider.start(app, Environment(), metadata).start_command == "./out/Web"
    assert provider.environment_variables(app, Environment(), metadata) == {
        "ASPNETCORE_ENVIRONMENT": "Production",
        "ASPNETCORE_URLS": "http://0.0.0.0:3000",
        "DOTNET_ROOT": "/nix/var/nix/profiles/default/",
    }


def test_fsharp_not_detected_without_project(make_tree: MakeTree) -> None:
    app = App(make_tree({"Program.fs": "printfn \"hi\"\n"}))
    assert not FSharpProvider().detect(app, Environment()).detected


@pytest.mark.parametrize(
    ("files", "env_vars", "root_line"),
    [
        ({"index.html": "<html></html>"}, {}, "root /app;"),
        ({"public/index.html": "<html></html>"}, {}, "root /app/public;"),
        ({"Staticfile": "root: dist\n", "dist/index.html": ""}, {}, "root /app/dist;"),
        ({"index.html": ""}, {"NIXPACKS_STATICFILE_ROOT": "site/"}, "root /app/site;"),
    ],
)
def test_staticfile_root_and_nginx_asset(
    make_tree: MakeTree,
    files: dict[str, str],
    env_vars: dict[str, str],
    root_line: str,
) -> None:
    app = App(make_tree(files))
    env = Environment(variables=env_vars)
    provider = StaticfileProvider()
    detection = provider.detect(app, env)

    assert detection.detected
    assets = provider.static_assets(app, env, detection.metadata)
    assert list(assets) == ["nginx.conf"]
    assert root_line in assets["nginx.conf"]
    assert "listen 0000 default_server;" in assets["nginx.conf"]
    assert provider.setup(app, env, detection.metadata).packages == (Package("nginx"),)
    start = provider.start(app, env, detection.metadata).start_command
    assert start is not None and "nginx -c /assets/nginx.conf" in start


def test_staticfile_not_detected_for_empty_tree(make_tree: MakeTree) -> None:
    app = App(make_tree({"README.md": "hi"}))
    assert not StaticfileProvider().detect(app, Environment()).detected


def test_detection_metadata_is_read_only() -> None:
    result = DetectResult.yes(build_tool="maven")
    assert result.metadata == {"build_tool": "maven"}
    with pytest.raises(TypeError):
        result.metadata["build_tool"] = "gradle"  # type: ignore[index]

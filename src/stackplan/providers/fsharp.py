"""F# (.NET SDK) provider."""

from __future__ import annotations

from dataclasses import dataclass

from stackplan.app import App
from stackplan.environment import Environment
from stackplan.plan.model import Package, Phase
from stackplan.providers.base import DetectResult, ProviderMetadata

ARTIFACT_DIR = "out"


@dataclass(frozen=True, slots=True)
class FSharpProvider:
    name: str = "fsharp"

    def detect(self, app: App, env: Environment) -> DetectResult:
        projects = app.find_files("*.fsproj")
        if not projects:
            return DetectResult.no()
        return DetectResult.yes(project=projects[0].stem)

    def setup(self, app: App, env: Environment, metadata: ProviderMetadata) -> Phase:
        return Phase.setup([Package("dotnet-sdk")])

    def install(self, app: App, env: Environment, metadata: ProviderMetadata) -> Phase:
        return Phase.install("dotnet restore", cache_directories=["~/.nuget/packages"])

    def build(self, app: App, env: Environment, metadata: ProviderMetadata) -> Phase:
        return Phase.build(f"dotnet publish --no-restore -c Release -o {ARTIFACT_DIR}")

    def start(self, app: App, env: Environment, metadata: ProviderMetadata) -> Phase:
        return Phase.start(f"./{ARTIFACT_DIR}/{metadata['project']}")

    def environment_variables(
        self, app: App, env: Environment, metadata: ProviderMetadata
    ) -> dict[str, str]:
        return {
            "ASPNETCORE_ENVIRONMENT": "Production",
            "ASPNETCORE_URLS": "http://0.0.0.0:3000",
            "DOTNET_ROOT": "/nix/var/nix/profiles/default/",
        }


__all__ = ["ARTIFACT_DIR", "FSharpProvider"]

"""Build-context files produced for a recipe."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from stackplan.compiler.dockerfile import (
    ASSETS_STAGING_DIR,
    ENVIRONMENT_NIX_PATH,
    STACKPLAN_DIR,
    RecipeOptions,
    synthesize_recipe,
    validate_asset_name,
)
from stackplan.environment import Environment
from stackplan.errors import SynthesisError
from stackplan.nix import create_nix_expression
from stackplan.plan.model import BuildPlan

DOCKERFILE_PATH = f"{STACKPLAN_DIR}/Dockerfile"


@dataclass(frozen=True, slots=True)
class RecipeEmission:
    """Recipe text plus every file the build context needs, keyed by relative path."""

    recipe: str
    files: dict[str, str] = field(default_factory=dict)

    @property
    def dockerfile_path(self) -> str:
        return DOCKERFILE_PATH


def emit_recipe(
    plan: BuildPlan,
    options: RecipeOptions | None = None,
    env: Environment | None = None,
) -> RecipeEmission:
    recipe = synthesize_recipe(plan, options, env)
    files = {
        DOCKERFILE_PATH: recipe,
        ENVIRONMENT_NIX_PATH: create_nix_expression(plan),
    }
    for name, content in sorted(plan.static_assets.items()):
        files[f"{ASSETS_STAGING_DIR}/{validate_asset_name(name)}"] = content
    return RecipeEmission(recipe=recipe, files=dict(sorted(files.items())))


def write_emission(emission: RecipeEmission, root: str | Path) -> list[Path]:
    base = Path(root)
    written: list[Path] = []
    for rel_path, content in emission.files.items():
        path = base / rel_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise SynthesisError(
                f"Unable to write `{rel_path}` into the build context.",
                context={"operation": "write_emission", "path": str(path)},
            ) from exc
        written.append(path)
    return written


__all__ = ["DOCKERFILE_PATH", "RecipeEmission", "emit_recipe", "write_emission"]

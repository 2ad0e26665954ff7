"""Recipe compiler: plan in, Dockerfile and build-context files out."""

from .cache import cache_mount_clauses, cache_mounts, sanitize_cache_key
from .dockerfile import DockerfileSynthesizer, RecipeOptions, synthesize_recipe
from .emit import DOCKERFILE_PATH, RecipeEmission, emit_recipe, write_emission
from .instructions import (
    copy_command,
    copy_from_command,
    exec_command,
    render_recipe,
)

__all__ = [
    "DOCKERFILE_PATH",
    "DockerfileSynthesizer",
    "RecipeEmission",
    "RecipeOptions",
    "cache_mount_clauses",
    "cache_mounts",
    "copy_command",
    "copy_from_command",
    "emit_recipe",
    "exec_command",
    "render_recipe",
    "sanitize_cache_key",
    "synthesize_recipe",
    "write_emission",
]

"""Plan assembly and phase merge rules."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import replace

from stackplan.errors import ValidationError
from stackplan.plan.model import DEFAULT_BASE_IMAGE, BuildPlan, Phase, PhaseKind


def assemble_plan(
    phases: Iterable[Phase | None],
    *,
    variables: Mapping[str, str] | None = None,
    static_assets: Mapping[str, str] | None = None,
) -> BuildPlan:
    """Fold capability outputs into a plan; empty phases collapse to ``None``."""
    slots: dict[PhaseKind, Phase] = {}
    for phase in phases:
        if phase is None or phase.is_empty:
            continue
        existing = slots.get(phase.kind)
        slots[phase.kind] = phase if existing is None else merge_phases(existing, phase)
    return BuildPlan(
        setup=slots.get("setup"),
        install=slots.get("install"),
        build=slots.get("build"),
        start=slots.get("start"),
        variables=dict(sorted((variables or {}).items())),
        static_assets=dict(sorted((static_assets or {}).items())),
    )


def merge_phases(left: Phase, right: Phase) -> Phase:
    """Additively merge two phases of the same kind.

    Optional path lists stay ``None`` only when both sides are ``None``;
    otherwise both sides are concatenated in order, duplicates included.
    Scalars from ``right`` win when set.
    """
    if left.kind != right.kind:
        raise ValidationError(
            "Cannot merge phases of different kinds.",
            hint="Merge phases slot by slot (setup with setup, start with start).",
            context={"left": left.kind, "right": right.kind, "operation": "merge_phases"},
        )
    return replace(
        left,
        commands=left.commands + right.commands,
        packages=tuple(dict.fromkeys(left.packages + right.packages)),
        apt_packages=tuple(dict.fromkeys(left.apt_packages + right.apt_packages)),
        only_include_files=merge_optional(left.only_include_files, right.only_include_files),
        cache_directories=merge_optional(left.cache_directories, right.cache_directories),
        env_path_entries=merge_optional(left.env_path_entries, right.env_path_entries),
        base_image=right.base_image if right.base_image != DEFAULT_BASE_IMAGE else left.base_image,
        run_image=right.run_image if right.run_image is not None else left.run_image,
        start_command=(
            right.start_command if right.start_command is not None else left.start_command
        ),
    )


def merge_optional(
    left: tuple[str, ...] | None, right: tuple[str, ...] | None
) -> tuple[str, ...] | None:
    if left is None and right is None:
        return None
    return (left or ()) + (right or ())


def merge_plans(base: BuildPlan, overlay: BuildPlan) -> BuildPlan:
    """Overlay one plan onto another, phase by phase."""
    variables = {**base.variables, **overlay.variables}
    static_assets = {**base.static_assets, **overlay.static_assets}
    return assemble_plan(
        [*base.phases(), *overlay.phases()],
        variables=variables,
        static_assets=static_assets,
    )


__all__ = ["assemble_plan", "merge_optional", "merge_phases", "merge_plans"]

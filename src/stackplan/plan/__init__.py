"""Build plan model: the compiler's intermediate representation."""

from .assemble import assemble_plan, merge_phases, merge_plans
from .io import parse_plan, parse_plan_cbor, read_plan, write_plan
from .model import DEFAULT_BASE_IMAGE, PHASE_ORDER, BuildPlan, Package, Phase, PhaseKind
from .validate import ensure_start_command

__all__ = [
    "BuildPlan",
    "DEFAULT_BASE_IMAGE",
    "PHASE_ORDER",
    "Package",
    "Phase",
    "PhaseKind",
    "assemble_plan",
    "ensure_start_command",
    "merge_phases",
    "merge_plans",
    "parse_plan",
    "parse_plan_cbor",
    "read_plan",
    "write_plan",
]

"""Validation helpers run before a plan is synthesized."""

from __future__ import annotations

from stackplan.errors import NoStartCommandError
from stackplan.plan.model import BuildPlan


def ensure_start_command(plan: BuildPlan, *, allow_missing: bool = False) -> None:
    """Reject plans without a runnable entry point unless explicitly allowed."""
    if allow_missing:
        return
    if plan.start is None or plan.start.start_command is None:
        raise NoStartCommandError(
            "No start command could be found.",
            hint="Set NIXPACKS_START_CMD, pass a custom start command, or allow a missing start.",
            context={"operation": "ensure_start_command"},
        )

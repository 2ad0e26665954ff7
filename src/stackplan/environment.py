"""Environment overrides and config-variable resolution."""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from stackplan.errors import ValidationError

CONFIG_PREFIX = "NIXPACKS_"
TRUTHY_VALUES = frozenset({"1", "true"})


@dataclass(frozen=True, slots=True)
class Environment:
    """Explicit ``KEY=VALUE`` overrides plus an OS environment snapshot."""

    variables: Mapping[str, str] = field(default_factory=dict)
    os_environ: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_envs(
        cls,
        envs: Iterable[str],
        *,
        os_environ: Mapping[str, str] | None = None,
    ) -> Environment:
        snapshot = dict(os.environ if os_environ is None else os_environ)
        variables: dict[str, str] = {}
        for entry in envs:
            name, sep, value = entry.partition("=")
            name = name.strip()
            if not name:
                raise ValidationError(
                    "Environment entries must look like KEY=VALUE.",
                    context={"entry": entry, "operation": "parse_env"},
                )
            if not sep:
                # A bare KEY pulls its value from the invoking environment.
                if name not in snapshot:
                    raise ValidationError(
                        "Environment variable has no value and is not set in the OS environment.",
                        hint="Pass KEY=VALUE or export the variable before invoking the build.",
                        context={"entry": entry, "operation": "parse_env"},
                    )
                value = snapshot[name]
            variables[name] = value
        return cls(variables=variables, os_environ=snapshot)

    def get_variable(self, name: str) -> str | None:
        if name in self.variables:
            return self.variables[name]
        return self.os_environ.get(name)

    def get_config_variable(self, name: str) -> str | None:
        return self.get_variable(f"{CONFIG_PREFIX}{name}")

    def is_config_variable_truthy(self, name: str) -> bool:
        value = self.get_config_variable(name)
        return value is not None and value.strip().lower() in TRUTHY_VALUES

    def user_variables(self) -> dict[str, str]:
        """Explicit overrides that are not config variables."""
        return {
            key: value
            for key, value in sorted(self.variables.items())
            if not key.startswith(CONFIG_PREFIX)
        }


__all__ = ["CONFIG_PREFIX", "Environment"]

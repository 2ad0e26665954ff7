"""Provider interface shared by every language strategy."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Literal, Protocol

from stackplan.app import App
from stackplan.environment import Environment
from stackplan.plan.model import frozen_mapping

ProviderMetadata = Mapping[str, str]

Capability = Literal["setup", "install", "build", "start", "environment_variables"]

# Order in which a selected provider is consulted.
CAPABILITY_ORDER: tuple[Capability, ...] = (
    "setup",
    "install",
    "build",
    "start",
    "environment_variables",
)


@dataclass(frozen=True, slots=True)
class DetectResult:
    detected: bool
    metadata: ProviderMetadata = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", frozen_mapping(self.metadata))

    @classmethod
    def no(cls) -> DetectResult:
        return cls(detected=False)

    @classmethod
    def yes(cls, **metadata: str) -> DetectResult:
        return cls(detected=True, metadata=metadata)


class Provider(Protocol):
    """Detects a project kind and contributes phases for it.

    Phase capabilities (``setup``, ``install``, ``build``, ``start``) and
    ``environment_variables`` are optional; a provider that lacks one simply
    omits that part of the plan. Capabilities must not depend on each other
    having run, only on ``metadata`` carried forward from ``detect``.
    """

    name: str

    def detect(self, app: App, env: Environment) -> DetectResult:
        """Pure predicate over the source tree and environment."""


__all__ = [
    "CAPABILITY_ORDER",
    "Capability",
    "DetectResult",
    "Provider",
    "ProviderMetadata",
]

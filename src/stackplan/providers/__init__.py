"""Language providers and the default registry."""

from .base import CAPABILITY_ORDER, DetectResult, Provider, ProviderMetadata
from .clojure import ClojureProvider
from .fsharp import FSharpProvider
from .java import JavaProvider
from .staticfile import StaticfileProvider


def default_providers() -> tuple[Provider, ...]:
    """Registry in detection priority order; the static fallback comes last."""
    return (
        FSharpProvider(),
        ClojureProvider(),
        JavaProvider(),
        StaticfileProvider(),
    )


__all__ = [
    "CAPABILITY_ORDER",
    "ClojureProvider",
    "DetectResult",
    "FSharpProvider",
    "JavaProvider",
    "Provider",
    "ProviderMetadata",
    "StaticfileProvider",
    "default_providers",
]

from .base import BuildBackend, BuildRequest, BuildResponse, MountSpec
from .docker import DockerBackend
from .inprocess import InProcessBackend
from .template import CommandTemplateBackend

__all__ = [
    "BuildBackend",
    "BuildRequest",
    "BuildResponse",
    "CommandTemplateBackend",
    "DockerBackend",
    "InProcessBackend",
    "MountSpec",
]

"""Container runtime abstraction"""

from .base import BaseRuntime, ProxySettings, PullOptions, PushOptions, RetryPolicy
from .detector import EngineDescriptor, RuntimeDetector, RUNTIME_PRIORITY
from .docker import DockerRuntime
from .nerdctl import NerdctlRuntime
from .podman import PodmanRuntime

__all__ = [
    "BaseRuntime",
    "DockerRuntime",
    "EngineDescriptor",
    "NerdctlRuntime",
    "PodmanRuntime",
    "ProxySettings",
    "PullOptions",
    "PushOptions",
    "RetryPolicy",
    "RuntimeDetector",
    "RUNTIME_PRIORITY",
]

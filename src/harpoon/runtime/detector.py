"""Detection and lookup of installed container runtimes"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from harpoon.errors import EngineCommandError, RuntimeNotFound, RuntimeUnavailable
from .base import BaseRuntime
from .docker import DockerRuntime
from .nerdctl import NerdctlRuntime
from .podman import PodmanRuntime

logger = logging.getLogger(__name__)

# Lower rank wins
RUNTIME_PRIORITY: Dict[str, int] = {
    "docker": 1,
    "podman": 2,
    "nerdctl": 3,
}


@dataclass(frozen=True)
class EngineDescriptor:
    """Result of probing one runtime"""

    name: str
    priority: int
    available: bool
    version: str
    runtime: BaseRuntime


class RuntimeDetector:
    """Probes the known runtimes and resolves them by name or priority

    Availability is probed on every call because engines can be started or
    stopped between invocations.
    """

    def __init__(self, runtimes: Optional[Sequence[BaseRuntime]] = None):
        """Initialize detector

        Args:
            runtimes: Runtime instances to manage (default: docker, podman, nerdctl)
        """
        if runtimes is None:
            runtimes = [DockerRuntime(), PodmanRuntime(), NerdctlRuntime()]

        self._runtimes: Dict[str, BaseRuntime] = {}
        for runtime in runtimes:
            if runtime.name not in RUNTIME_PRIORITY:
                raise ValueError(f"Unsupported runtime: {runtime.name}")
            self._runtimes[runtime.name] = runtime

    def known_runtimes(self) -> List[str]:
        """Registered runtime names in priority order"""
        return sorted(self._runtimes, key=RUNTIME_PRIORITY.__getitem__)

    def probe(self, name: str) -> EngineDescriptor:
        """Probe a single runtime

        Raises:
            RuntimeNotFound: If the name is not registered
        """
        runtime = self._runtimes.get(name)
        if runtime is None:
            raise RuntimeNotFound(name)

        available = runtime.is_available()
        version = ""
        if available:
            try:
                version = runtime.version()
            except EngineCommandError as e:
                logger.debug(f"Could not read {name} version: {e}")
                version = "unknown"

        logger.debug(f"Probed {name}: available={available} version={version or '-'}")
        return EngineDescriptor(
            name=name,
            priority=RUNTIME_PRIORITY[name],
            available=available,
            version=version,
            runtime=runtime,
        )

    def detect_available(self) -> List[EngineDescriptor]:
        """Return all available runtimes, highest priority first"""
        available = []
        for name in self.known_runtimes():
            descriptor = self.probe(name)
            if descriptor.available:
                available.append(descriptor)

        available.sort(key=lambda d: d.priority)
        logger.info(f"Available runtimes: {', '.join(d.name for d in available) or 'none'}")
        return available

    def get_preferred(self) -> Optional[EngineDescriptor]:
        """Return the highest priority available runtime, or None"""
        available = self.detect_available()
        if not available:
            return None
        return available[0]

    def get_by_name(self, name: str) -> EngineDescriptor:
        """Return a runtime by name if it is currently available

        Raises:
            RuntimeNotFound: If the runtime is not registered
            RuntimeUnavailable: If the runtime is registered but its probe fails
        """
        descriptor = self.probe(name)
        if not descriptor.available:
            raise RuntimeUnavailable(f"runtime '{name}' is not available", {"runtime": name})
        return descriptor

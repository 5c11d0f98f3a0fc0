"""Podman container runtime implementation"""

import logging
from typing import List

from harpoon.errors import EngineCommandError
from .base import BaseRuntime

logger = logging.getLogger(__name__)


class PodmanRuntime(BaseRuntime):
    """Podman container runtime (daemonless)"""

    name = "podman"

    def probe_args(self) -> List[str]:
        return ["version", "--format", "{{.Version}}"]

    def version(self) -> str:
        output = self._run(["version", "--format", "{{.Version}}"], timeout=10,
                           action="get Podman version").strip()
        if not output:
            raise EngineCommandError("podman: empty version output", command=[self.command, "version"])
        return output

"""Docker container runtime implementation"""

import logging
from typing import List

from harpoon.errors import EngineCommandError
from .base import BaseRuntime

logger = logging.getLogger(__name__)


class DockerRuntime(BaseRuntime):
    """Docker container runtime"""

    name = "docker"

    def probe_args(self) -> List[str]:
        # Server.Version only resolves when the daemon is reachable
        return ["version", "--format", "{{.Server.Version}}"]

    def version(self) -> str:
        """Return the Docker client version

        Raises:
            EngineCommandError: If docker fails or prints nothing
        """
        output = self._run(["version", "--format", "{{.Client.Version}}"], timeout=10,
                           action="get Docker version").strip()
        if not output:
            raise EngineCommandError("docker: empty version output", command=[self.command, "version"])
        return output

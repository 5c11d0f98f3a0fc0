"""Nerdctl (containerd) runtime implementation"""

import logging
from typing import List

from harpoon.errors import EngineCommandError
from .base import BaseRuntime, PullOptions

logger = logging.getLogger(__name__)

INSECURE_REGISTRY_FLAG = "--insecure-registry"


class NerdctlRuntime(BaseRuntime):
    """Nerdctl container runtime

    Pull and push always pass --insecure-registry so plain-HTTP private
    registries work without extra containerd configuration.
    """

    name = "nerdctl"

    def probe_args(self) -> List[str]:
        return ["version"]

    def pull_args(self, image: str, options: PullOptions) -> List[str]:
        args = ["pull", INSECURE_REGISTRY_FLAG]
        if options.platform:
            args += ["--platform", options.platform]
        return args + [image]

    def push_args(self, image: str) -> List[str]:
        return ["push", INSECURE_REGISTRY_FLAG, image]

    def version(self) -> str:
        """Return the nerdctl client version

        Older nerdctl releases reject --format, in which case the plain
        `nerdctl version` output is scanned for a 'Version:' line.

        Returns:
            Version string, or 'unknown' if no version line is printed
        """
        try:
            output = self._run(["version", "--format", "{{.Client.Version}}"], timeout=10,
                               action="get Nerdctl version").strip()
            if output:
                return output
        except EngineCommandError as e:
            logger.debug(f"Formatted version query failed, falling back to plain output: {e}")

        output = self._run(["version"], timeout=10, action="get Nerdctl version")
        for line in output.splitlines():
            if "Version:" in line:
                return line.split(":", 1)[1].strip()
        return "unknown"

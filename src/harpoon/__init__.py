"""Harpoon - container image pull/save/load/push across docker, podman and nerdctl"""

from harpoon.version import __version__

__all__ = ["__version__"]

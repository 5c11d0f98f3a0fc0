"""Version and build information"""

import os
import platform
import sys

__version__ = "1.1.0"

COMMIT = os.environ.get("HPN_BUILD_COMMIT", "dev")
BUILD_DATE = os.environ.get("HPN_BUILD_DATE", "unknown")


def get_short_commit() -> str:
    """Return the first 7 characters of the build commit"""
    return COMMIT[:7]


def get_version_string() -> str:
    """One-line version string, e.g. '1.1.0 (commit: dev, built: unknown)'"""
    return f"{__version__} (commit: {get_short_commit()}, built: {BUILD_DATE})"


def get_detailed_version() -> str:
    """Multi-line version block shown by `hpn version`"""
    return "\n".join([
        f"Harpoon (hpn) {__version__}",
        f"Commit: {COMMIT}",
        f"Built: {BUILD_DATE}",
        f"Python version: {platform.python_version()}",
        f"Platform: {sys.platform}/{platform.machine()}",
    ])


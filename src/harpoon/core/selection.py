"""Choosing the container runtime for an invocation"""

import logging
from typing import Callable, Optional

from harpoon.errors import RuntimeUnavailable
from harpoon.runtime.detector import EngineDescriptor, RuntimeDetector

logger = logging.getLogger(__name__)

NO_RUNTIME_MESSAGE = "no container runtime found. Please install docker, podman, or nerdctl"


def select_runtime(detector: RuntimeDetector, requested: Optional[str] = None,
                   preferred: Optional[str] = None, auto_fallback: bool = False,
                   confirm: Optional[Callable[[str], bool]] = None) -> EngineDescriptor:
    """Pick the runtime to use

    1. An explicitly requested runtime must be available, there is no fallback.
    2. A configured preferred runtime is used when available. Otherwise the
       best available alternative is substituted, silently with auto_fallback
       or after `confirm` returns True.
    3. Without either, the highest priority available runtime is used.

    Args:
        detector: Runtime detector
        requested: Runtime named on the command line
        preferred: Runtime named in the configuration
        auto_fallback: Substitute without asking
        confirm: Yes/no prompt, called with the question text

    Returns:
        Descriptor of the selected runtime

    Raises:
        RuntimeNotFound: If a requested runtime name is unknown
        RuntimeUnavailable: If nothing usable is found or fallback is declined
    """
    if requested:
        descriptor = detector.get_by_name(requested)
        logger.info(f"Using requested runtime: {descriptor.name}")
        return descriptor

    if preferred:
        try:
            descriptor = detector.get_by_name(preferred)
            logger.info(f"Using configured runtime: {descriptor.name}")
            return descriptor
        except RuntimeUnavailable as e:
            logger.warning(f"Configured runtime unavailable: {e}")

        available = detector.detect_available()
        if not available:
            raise RuntimeUnavailable(NO_RUNTIME_MESSAGE)

        alternative = available[0]
        if auto_fallback:
            logger.warning(f"Runtime '{preferred}' unavailable, using '{alternative.name}'")
            return alternative

        question = f"Runtime '{preferred}' is not available. Use '{alternative.name}' instead?"
        if confirm is not None and confirm(question):
            logger.info(f"Using '{alternative.name}' runtime")
            return alternative

        raise RuntimeUnavailable(
            f"user declined runtime fallback. Please install '{preferred}' or update config",
            {"runtime": preferred, "alternative": alternative.name},
        )

    descriptor = detector.get_preferred()
    if descriptor is None:
        raise RuntimeUnavailable(NO_RUNTIME_MESSAGE)
    logger.info(f"Using runtime: {descriptor.name}")
    return descriptor

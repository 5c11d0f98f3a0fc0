"""Image reference parsing and naming"""

import logging
import re
from dataclasses import dataclass

from harpoon.errors import ParseError

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY = "docker.io"
DEFAULT_PROJECT = "library"
DEFAULT_TAG = "latest"

DIGEST_PATTERN = re.compile(r"@[A-Za-z0-9_+.-]+:")


@dataclass(frozen=True)
class ImageReference:
    """Structured image reference: registry/project/name:tag

    Attributes:
        registry: Registry host (optionally with port)
        project: Namespace between registry and name, may contain '/'
        name: Image name
        tag: Image tag, never empty
        full_name: The string the reference was parsed from
    """

    registry: str
    project: str
    name: str
    tag: str
    full_name: str

    def canonical(self) -> str:
        """Render the reference back to a pullable string

        Default registry and default project are omitted, so the result is
        not guaranteed to match the original input byte for byte.
        """
        if self.project and self.project != DEFAULT_PROJECT:
            return f"{self.registry}/{self.project}/{self.name}:{self.tag}"
        if self.registry and self.registry != DEFAULT_REGISTRY:
            return f"{self.registry}/{self.name}:{self.tag}"
        return f"{self.name}:{self.tag}"

    def archive_filename(self) -> str:
        """Build the tar filename used by save and discovered by load

        Returns:
            Filename of the form registry_project_name_tag.tar
        """
        registry = self.registry.replace(".", "_").replace(":", "_")
        project = (self.project or DEFAULT_PROJECT).replace("/", "_")
        name = self.name.replace("/", "_")
        tag = self.tag.replace(":", "_")
        return f"{registry}_{project}_{name}_{tag}.tar"

    def __str__(self) -> str:
        return self.canonical()


def _looks_like_registry(segment: str) -> bool:
    return "." in segment or ":" in segment


def parse_image(image: str) -> ImageReference:
    """Parse an image string into its components

    Args:
        image: Image reference, e.g. 'nginx', 'calico/node:v3.28.2' or
            'registry.k8s.io/coredns/coredns:v1.11.1'

    Returns:
        ImageReference instance

    Raises:
        ParseError: If the string is blank, has no image name or is a
            digest reference
    """
    text = (image or "").strip()
    if not text:
        raise ParseError("image string cannot be empty", {"image": image})

    if DIGEST_PATTERN.search(text):
        raise ParseError(f"digest references are not supported: {text}", {"image": text})

    remainder, tag = text, DEFAULT_TAG
    if ":" in text:
        head, _, tail = text.rpartition(":")
        # A '/' after the last colon means the colon belongs to a registry port
        if "/" not in tail:
            remainder, tag = head, tail or DEFAULT_TAG

    parts = remainder.split("/")

    if len(parts) == 1:
        registry, project, name = DEFAULT_REGISTRY, DEFAULT_PROJECT, parts[0]
    elif len(parts) == 2:
        if _looks_like_registry(parts[0]):
            registry, project, name = parts[0], "", parts[1]
        else:
            registry, project, name = DEFAULT_REGISTRY, parts[0], parts[1]
    elif len(parts) == 3:
        registry, project, name = parts
    else:
        registry, project, name = parts[0], "/".join(parts[1:-1]), parts[-1]

    if not name:
        raise ParseError(f"image name cannot be empty: {image}", {"image": image})

    ref = ImageReference(registry=registry, project=project, name=name, tag=tag, full_name=image)
    logger.debug(f"Parsed {image} -> registry={registry} project={project} name={name} tag={tag}")
    return ref


def canonicalize(ref: ImageReference) -> str:
    """Module-level alias for ImageReference.canonical"""
    return ref.canonical()


def archive_filename(ref: ImageReference) -> str:
    """Module-level alias for ImageReference.archive_filename"""
    return ref.archive_filename()


def project_from_image(image: str) -> str:
    """Derive the project directory/namespace of a raw image string

    Examples:
        registry.k8s.io/coredns/coredns:v1.11.1 -> coredns
        calico/node:v3.28.2 -> calico
        nginx:latest -> library

    Args:
        image: Image reference as written in the item list

    Returns:
        Project name
    """
    parts = image.strip().split("/")
    if len(parts) >= 3:
        return parts[-2]
    if len(parts) == 2:
        return parts[0]
    return DEFAULT_PROJECT

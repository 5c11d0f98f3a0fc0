"""Batch orchestration of pull, save, load and push"""

import glob
import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from harpoon.core.context import LoadMode, PushMode, RunContext, SaveMode
from harpoon.core.image import DEFAULT_PROJECT, parse_image, project_from_image
from harpoon.core.selection import select_runtime
from harpoon.errors import FileError, HarpoonError
from harpoon.runtime.base import BaseRuntime, PullOptions, PushOptions

logger = logging.getLogger(__name__)

# Per-item deadlines in seconds; archive I/O gets longer
PULL_TIMEOUT = 300
TAG_TIMEOUT = 300
PUSH_TIMEOUT = 300
SAVE_TIMEOUT = 600
LOAD_TIMEOUT = 600


@dataclass
class OperationOutcome:
    """Successes and failures of one batch, in input order

    Every attempted item ends up in exactly one of the two lists. After
    finalize() the lists become tuples and no more results can be recorded.
    """

    action: str
    succeeded: Sequence[str] = field(default_factory=list)
    failed: Sequence[Tuple[str, str]] = field(default_factory=list)
    finalized: bool = False

    def record_success(self, item: str) -> None:
        if self.finalized:
            raise RuntimeError("outcome is already finalized")
        self.succeeded.append(item)

    def record_failure(self, item: str, error: str) -> None:
        if self.finalized:
            raise RuntimeError("outcome is already finalized")
        self.failed.append((item, error))

    def finalize(self) -> "OperationOutcome":
        self.succeeded = tuple(self.succeeded)
        self.failed = tuple(self.failed)
        self.finalized = True
        return self

    @property
    def attempted(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def failed_items(self) -> List[str]:
        return [item for item, _ in self.failed]

    def summary(self) -> str:
        return f"Summary: {len(self.succeeded)} successful, {len(self.failed)} failed"


def read_item_list(filename: str) -> List[str]:
    """Read image references from a list file

    Blank lines and lines starting with '#' are ignored.

    Raises:
        FileError: If the file cannot be read or contains no items
    """
    try:
        with open(filename, "r", encoding="utf-8") as f:
            lines = f.read().splitlines()
    except (OSError, UnicodeDecodeError) as e:
        raise FileError(f"failed to open file {filename}: {e}", {"file": filename})

    items = []
    for line in lines:
        line = line.strip()
        if line and not line.startswith("#"):
            items.append(line)

    if not items:
        raise FileError(f"no images found in file {filename}", {"file": filename})

    logger.info(f"Loaded {len(items)} item(s) from {filename}")
    return items


def find_archives(directory: str, recursive: bool = False) -> List[str]:
    """Find .tar archives in a directory

    Args:
        directory: Directory to search
        recursive: Walk subdirectories as well

    Returns:
        Sorted list of archive paths

    Raises:
        FileError: If the directory does not exist
    """
    if not os.path.isdir(directory):
        raise FileError(f"directory not found: {directory}", {"directory": directory})

    if not recursive:
        return sorted(glob.glob(os.path.join(directory, "*.tar")))

    archives = []
    for root, dirs, files in os.walk(directory):
        dirs.sort()
        for filename in files:
            if filename.lower().endswith(".tar"):
                archives.append(os.path.join(root, filename))
    return sorted(archives)


class Orchestrator:
    """Runs one action over a list of items with the selected runtime

    Items are processed one after another by default. Failures are recorded
    per item and never stop the remaining items.
    """

    def __init__(self, context: RunContext, runtime: Optional[BaseRuntime] = None):
        """Initialize orchestrator

        Args:
            context: Invocation context
            runtime: Runtime to use; selected from the context when None
        """
        self.context = context
        self.config = context.config
        self.runtime = runtime

    def _init_runtime(self) -> BaseRuntime:
        if self.runtime is None:
            descriptor = select_runtime(
                self.context.detector,
                requested=self.context.runtime_name,
                preferred=self.config.preferred_runtime,
                auto_fallback=self.context.auto_fallback,
                confirm=self.context.confirm,
            )
            self.runtime = descriptor.runtime
        logger.info(f"Using container runtime: {self.runtime.name}")
        return self.runtime

    # Addressing

    def save_path(self, image: str) -> str:
        """Archive path for an image under the current save mode"""
        filename = parse_image(image).archive_filename()
        mode = self.context.save_mode

        if mode == SaveMode.CURRENT_DIR:
            directory = self.context.base_dir
        elif mode == SaveMode.IMAGES_DIR:
            directory = self.context.images_dir
        else:
            directory = os.path.join(self.context.images_dir, project_from_image(image))

        return os.path.join(directory, filename)

    def load_sources(self) -> List[str]:
        """Archives to load under the current load mode

        Raises:
            FileError: If the directory is missing or holds no archives
        """
        mode = self.context.load_mode
        if mode == LoadMode.CURRENT_DIR:
            directory, recursive = self.context.base_dir, False
        elif mode == LoadMode.IMAGES_DIR:
            directory, recursive = self.context.images_dir, False
        else:
            directory, recursive = self.context.images_dir, True

        archives = find_archives(directory, recursive=recursive)
        if not archives:
            raise FileError(f"no .tar archives found in {directory}", {"directory": directory})
        logger.info(f"Found {len(archives)} tar file(s) in {directory}")
        return archives

    def effective_project(self, image: str) -> str:
        """Project used by push mode 2

        Command line project, then configured project unless it is the
        default, then the image's own project.
        """
        if self.context.project_explicit:
            return self.context.project
        configured = self.config.project
        if configured and configured != DEFAULT_PROJECT:
            return configured
        return project_from_image(image)

    def push_target(self, image: str) -> str:
        """Target reference for an image under the current push mode"""
        ref = parse_image(image)
        registry = self.context.registry
        mode = self.context.push_mode

        if mode == PushMode.SIMPLE:
            return f"{registry}/{ref.name}:{ref.tag}"
        if mode == PushMode.PROJECT:
            return f"{registry}/{self.effective_project(image)}/{ref.name}:{ref.tag}"
        return f"{registry}/{ref.project or DEFAULT_PROJECT}/{ref.name}:{ref.tag}"

    # Per-item work

    def _pull_one(self, image: str) -> None:
        options = PullOptions(
            timeout=PULL_TIMEOUT,
            proxy=self.config.proxy,
            platform=self.context.platform,
            retry=self.config.retry,
        )
        self.runtime.pull(image, options)

    def _save_one(self, image: str) -> None:
        tar_path = self.save_path(image)
        directory = os.path.dirname(tar_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        self.runtime.save(image, tar_path, timeout=SAVE_TIMEOUT)

        if not os.path.exists(tar_path):
            raise FileError(f"tar file was not created: {tar_path}", {"file": tar_path})
        logger.info(f"  Saved: {tar_path}")

    def _load_one(self, tar_path: str) -> None:
        self.runtime.load(tar_path, timeout=LOAD_TIMEOUT)

    def _push_one(self, image: str) -> None:
        target = self.push_target(image)
        logger.info(f"  Tag: {image} -> {target}")
        # A failed tag raises here, so push is never attempted for the item
        self.runtime.tag(image, target, timeout=TAG_TIMEOUT)
        self.runtime.push(target, PushOptions(timeout=PUSH_TIMEOUT, retry=self.config.retry))
        logger.info(f"  Pushed: {target}")

    def _run_batch(self, action: str, items: Sequence[str], worker: Callable[[str], None]) -> OperationOutcome:
        """Attempt every item and collect the results in input order"""
        total = len(items)
        results: List[Optional[str]] = [None] * total

        def attempt(index: int, item: str) -> Optional[str]:
            logger.info(f"[{index + 1}/{total}] {action.capitalize()} {item}...")
            try:
                worker(item)
            except HarpoonError as e:
                logger.error(f"Failed to {action} {item}: {e}")
                return str(e)
            except Exception as e:
                logger.error(f"Unexpected error during {action} of {item}: {e}")
                return f"{type(e).__name__}: {e}"
            logger.info(f"Successfully completed {action} of {item}")
            return None

        workers = min(self.context.workers, total) if total else 1
        if workers <= 1:
            for index, item in enumerate(items):
                results[index] = attempt(index, item)
        else:
            logger.info(f"Processing {total} item(s) with {workers} workers")
            with ThreadPoolExecutor(max_workers=workers) as executor:
                future_to_index = {
                    executor.submit(attempt, index, item): index
                    for index, item in enumerate(items)
                }
                for future in as_completed(future_to_index):
                    results[future_to_index[future]] = future.result()

        outcome = OperationOutcome(action=action)
        for item, error in zip(items, results):
            if error is None:
                outcome.record_success(item)
            else:
                outcome.record_failure(item, error)
        outcome.finalize()

        logger.info(outcome.summary())
        return outcome

    def pull(self, images: Sequence[str]) -> OperationOutcome:
        """Pull every image"""
        logger.info(f"Pulling {len(images)} image(s)")
        return self._run_batch("pull", images, self._pull_one)

    def save(self, images: Sequence[str]) -> OperationOutcome:
        """Save every image to an archive addressed by the save mode"""
        mode = self.context.save_mode
        if mode != SaveMode.CURRENT_DIR:
            os.makedirs(self.context.images_dir, exist_ok=True)
        logger.info(f"Save mode {int(mode)}: saving {len(images)} image(s)")
        return self._run_batch("save", images, self._save_one)

    def load(self, archives: Sequence[str]) -> OperationOutcome:
        """Load every archive"""
        logger.info(f"Load mode {int(self.context.load_mode)}: loading {len(archives)} archive(s)")
        return self._run_batch("load", archives, self._load_one)

    def push(self, images: Sequence[str]) -> OperationOutcome:
        """Tag every image for the target registry and push it"""
        logger.info(
            f"Push mode {int(self.context.push_mode)}: registry={self.context.registry} "
            f"project={self.context.project}"
        )
        return self._run_batch("push", images, self._push_one)

    def run(self) -> OperationOutcome:
        """Select the runtime, gather the items and run the action

        Setup failures (runtime selection, unreadable item list, no archives)
        raise before any item is attempted.

        Returns:
            Finalized outcome of the batch
        """
        action = self.context.action
        logger.info(f"Executing {action} action")

        self._init_runtime()

        if action == "load":
            return self.load(self.load_sources())

        items = read_item_list(self.context.image_file)
        if action == "pull":
            return self.pull(items)
        if action == "save":
            return self.save(items)
        return self.push(items)

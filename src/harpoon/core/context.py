"""Per-invocation context shared by runtime selection and the orchestrator"""

import logging
import os
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Optional

from harpoon.core.config import Config
from harpoon.core.image import DEFAULT_PROJECT
from harpoon.errors import ConfigurationError
from harpoon.runtime.detector import RuntimeDetector

logger = logging.getLogger(__name__)

ACTIONS = ("pull", "save", "load", "push")

# Fixed directory used by save modes 2/3 and load modes 2/3
IMAGES_DIR = "images"


class SaveMode(IntEnum):
    CURRENT_DIR = 1  # ./<archive>
    IMAGES_DIR = 2  # ./images/<archive>
    PROJECT_DIR = 3  # ./images/<project>/<archive>


class LoadMode(IntEnum):
    CURRENT_DIR = 1  # ./*.tar
    IMAGES_DIR = 2  # ./images/*.tar
    RECURSIVE = 3  # ./images/**/*.tar


class PushMode(IntEnum):
    SIMPLE = 1  # registry/name:tag
    PROJECT = 2  # registry/project/name:tag
    PRESERVE = 3  # registry/<image's own project>/name:tag


def _decline(prompt: str) -> bool:
    return False


@dataclass
class RunContext:
    """Everything one hpn invocation needs, built once before any item runs

    Attributes:
        config: Loaded configuration
        action: pull, save, load or push
        image_file: Item list file (None for load)
        registry: Target registry for push
        project: Project from the command line or configuration
        project_explicit: True when the project came from the command line
        save_mode / load_mode / push_mode: Resolved addressing modes
        push_mode_upgraded: Push mode was raised from 1 to 2 because a project was given
        runtime_name: Explicit --runtime request
        auto_fallback: Substitute an unavailable preferred runtime without asking
        platform: Optional --platform for pull
        workers: Number of items processed concurrently (1 = sequential)
        base_dir: Directory save/load addressing is relative to
        confirm: Yes/no prompt used when falling back to another runtime
        detector: Runtime detector
    """

    config: Config
    action: str
    image_file: Optional[str] = None
    registry: str = ""
    project: str = DEFAULT_PROJECT
    project_explicit: bool = False
    save_mode: SaveMode = SaveMode.CURRENT_DIR
    load_mode: LoadMode = LoadMode.CURRENT_DIR
    push_mode: PushMode = PushMode.SIMPLE
    push_mode_upgraded: bool = False
    runtime_name: Optional[str] = None
    auto_fallback: bool = False
    platform: str = ""
    workers: int = 1
    base_dir: str = "."
    confirm: Callable[[str], bool] = _decline
    detector: RuntimeDetector = field(default_factory=RuntimeDetector)

    @property
    def images_dir(self) -> str:
        return os.path.join(self.base_dir, IMAGES_DIR)

    @classmethod
    def build(cls, config: Config, action: Optional[str], image_file: Optional[str] = None,
              registry: Optional[str] = None, project: Optional[str] = None,
              save_mode: Optional[int] = None, load_mode: Optional[int] = None,
              push_mode: Optional[int] = None, runtime_name: Optional[str] = None,
              auto_fallback: bool = False, platform: str = "", workers: Optional[int] = None,
              base_dir: str = ".", confirm: Optional[Callable[[str], bool]] = None,
              detector: Optional[RuntimeDetector] = None) -> "RunContext":
        """Merge command line values over configuration and validate them

        Mode arguments are None when the flag was not given on the command
        line; a mode flag given for another action is an error.

        Raises:
            ConfigurationError: On invalid action, missing file or mode misuse
        """
        if not action:
            raise ConfigurationError("missing required -a <action> parameter")
        if action not in ACTIONS:
            raise ConfigurationError(f"invalid action '{action}'. Valid actions: {', '.join(ACTIONS)}")

        if action != "load" and not image_file:
            raise ConfigurationError(f"missing required -f <image_list> parameter for action '{action}'")

        given = {"save": save_mode, "load": load_mode, "push": push_mode}
        for mode_action, value in given.items():
            if value is not None and mode_action != action:
                raise ConfigurationError(f"--{mode_action}-mode cannot be used with {action} action")

        def resolve(mode_action: str) -> int:
            value = given[mode_action]
            if value is None:
                value = config.mode(mode_action)
            if not 1 <= value <= 3:
                if mode_action == action:
                    raise ConfigurationError(f"invalid {mode_action}-mode '{value}'. Valid values: 1, 2, 3")
                raise ConfigurationError(f"{mode_action} mode must be 1, 2, or 3")
            return value

        resolved_save = resolve("save")
        resolved_load = resolve("load")
        resolved_push = resolve("push")

        project_explicit = bool(project)
        effective_project = project or config.project or DEFAULT_PROJECT

        upgraded = False
        # A project given with -p is never dropped, even with an explicit --push-mode 1
        if (action == "push" and resolved_push == PushMode.SIMPLE
                and project_explicit and effective_project != DEFAULT_PROJECT):
            resolved_push = PushMode.PROJECT
            upgraded = True
            logger.info(f"Auto-adjusted to push mode 2 for project '{effective_project}'")

        max_workers = config.max_workers
        if workers is None:
            workers = 1
        workers = max(1, min(max_workers, workers))

        return cls(
            config=config,
            action=action,
            image_file=image_file,
            registry=registry or config.registry,
            project=effective_project,
            project_explicit=project_explicit,
            save_mode=SaveMode(resolved_save),
            load_mode=LoadMode(resolved_load),
            push_mode=PushMode(resolved_push),
            push_mode_upgraded=upgraded,
            runtime_name=runtime_name or None,
            auto_fallback=auto_fallback or config.auto_fallback,
            platform=platform or "",
            workers=workers,
            base_dir=base_dir,
            confirm=confirm or _decline,
            detector=detector or RuntimeDetector(),
        )

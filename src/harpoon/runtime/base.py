"""Abstract base class for container runtimes"""

import logging
import os
import shutil
import subprocess
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from harpoon.errors import EngineCommandError, EngineTimeoutError

logger = logging.getLogger(__name__)

# Availability probes must answer quickly, a hung daemon counts as unavailable
PROBE_TIMEOUT = 5


@dataclass(frozen=True)
class ProxySettings:
    """HTTP(S) proxy injected into pull subprocesses when enabled"""

    enabled: bool = False
    http: str = ""
    https: str = ""

    def environment(self) -> Dict[str, str]:
        """Proxy variables to add to the subprocess environment"""
        if not self.enabled:
            return {}
        env = {}
        if self.http:
            env["http_proxy"] = self.http
        if self.https:
            env["https_proxy"] = self.https
        return env


@dataclass(frozen=True)
class RetryPolicy:
    """Retry settings for pull and push

    Attributes:
        max_attempts: Total attempts including the first one (1-10)
        delay: Initial wait between attempts in seconds
        max_delay: Upper bound of the exponential backoff in seconds
    """

    max_attempts: int = 3
    delay: float = 1.0
    max_delay: float = 30.0

    def backoff(self, attempt: int) -> float:
        """Wait before retry number `attempt` (1-based)"""
        return min(self.delay * (2 ** (attempt - 1)), self.max_delay)


NO_RETRY = RetryPolicy(max_attempts=1, delay=1.0, max_delay=2.0)


@dataclass(frozen=True)
class PullOptions:
    timeout: float = 300
    proxy: ProxySettings = field(default_factory=ProxySettings)
    platform: str = ""
    retry: RetryPolicy = NO_RETRY


@dataclass(frozen=True)
class PushOptions:
    timeout: float = 300
    retry: RetryPolicy = NO_RETRY


class BaseRuntime(ABC):
    """Abstract base for container runtime implementations

    Subclasses provide the engine name and the probe/version commands; the
    subprocess handling for pull, save, load, push and tag is shared because
    all supported engines accept the same docker-compatible verbs.
    """

    name: str = ""

    def __init__(self, command: Optional[str] = None):
        """Initialize runtime

        Args:
            command: Executable to invoke (default: the engine name)
        """
        self.command = command or self.name

    def is_command_available(self) -> bool:
        """Check whether the executable is on PATH"""
        return shutil.which(self.command) is not None

    @abstractmethod
    def probe_args(self) -> List[str]:
        """Arguments of the lightweight status probe"""

    @abstractmethod
    def version(self) -> str:
        """Return the engine version

        Raises:
            EngineCommandError: If the version cannot be determined
        """

    def is_available(self) -> bool:
        """Check the executable exists and its status probe succeeds

        Returns:
            True if the runtime can be used, False otherwise
        """
        if not self.is_command_available():
            logger.debug(f"{self.name}: '{self.command}' not found in PATH")
            return False

        try:
            subprocess.run(
                [self.command] + self.probe_args(),
                capture_output=True,
                check=True,
                timeout=PROBE_TIMEOUT,
            )
            return True
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as e:
            logger.debug(f"{self.name}: status probe failed: {e}")
            return False

    def _run(self, args: List[str], timeout: Optional[float] = None,
             env: Optional[Dict[str, str]] = None, action: str = "") -> str:
        """Run an engine command and return its stdout

        Args:
            args: Arguments after the executable
            timeout: Deadline in seconds, the process is killed on expiry
            env: Extra environment variables merged over os.environ
            action: Description used in error messages

        Returns:
            Captured stdout

        Raises:
            EngineTimeoutError: If the deadline expired
            EngineCommandError: If the command exited non-zero or could not start
        """
        cmd = [self.command] + args
        action = action or " ".join(args[:1])
        logger.debug(f"Running: {' '.join(cmd)}")

        run_env = None
        if env:
            run_env = dict(os.environ)
            run_env.update(env)

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=False,
                timeout=timeout,
                env=run_env,
            )
        except subprocess.TimeoutExpired:
            raise EngineTimeoutError(f"{self.name}: {action} timed out after {timeout}s", command=cmd)
        except OSError as e:
            raise EngineCommandError(f"{self.name}: failed to run {self.command}: {e}", command=cmd)

        if result.returncode != 0:
            output = "\n".join(part for part in (result.stdout, result.stderr) if part)
            raise EngineCommandError(
                f"{self.name}: failed to {action}",
                command=cmd,
                exit_code=result.returncode,
                output=output,
            )
        return result.stdout or ""

    def _with_retry(self, operation: Callable[[], str], retry: RetryPolicy, what: str) -> None:
        attempt = 1
        while True:
            try:
                operation()
                return
            except EngineCommandError as e:
                if attempt >= retry.max_attempts:
                    raise
                wait = retry.backoff(attempt)
                logger.warning(f"{what} failed (attempt {attempt}/{retry.max_attempts}): {e}; retrying in {wait:.1f}s")
                time.sleep(wait)
                attempt += 1

    def pull_args(self, image: str, options: PullOptions) -> List[str]:
        args = ["pull"]
        if options.platform:
            args += ["--platform", options.platform]
        return args + [image]

    def push_args(self, image: str) -> List[str]:
        return ["push", image]

    def pull(self, image: str, options: Optional[PullOptions] = None) -> None:
        """Pull an image from a registry

        Args:
            image: Image reference (e.g., nginx:latest)
            options: Timeout, proxy, platform and retry settings
        """
        options = options or PullOptions()
        args = self.pull_args(image, options)
        env = options.proxy.environment()
        self._with_retry(
            lambda: self._run(args, timeout=options.timeout, env=env, action=f"pull image {image}"),
            options.retry,
            f"Pull of {image}",
        )

    def save(self, image: str, tar_path: str, timeout: Optional[float] = None) -> None:
        """Save an image to a tar archive"""
        self._run(["save", "-o", tar_path, image], timeout=timeout,
                  action=f"save image {image} to {tar_path}")

    def load(self, tar_path: str, timeout: Optional[float] = None) -> None:
        """Load images from a tar archive"""
        self._run(["load", "-i", tar_path], timeout=timeout,
                  action=f"load image from {tar_path}")

    def push(self, image: str, options: Optional[PushOptions] = None) -> None:
        """Push an image to its registry"""
        options = options or PushOptions()
        args = self.push_args(image)
        self._with_retry(
            lambda: self._run(args, timeout=options.timeout, action=f"push image {image}"),
            options.retry,
            f"Push of {image}",
        )

    def tag(self, source: str, target: str, timeout: Optional[float] = None) -> None:
        """Tag an image with a new reference"""
        self._run(["tag", source, target], timeout=timeout,
                  action=f"tag image {source} as {target}")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(command={self.command!r})"

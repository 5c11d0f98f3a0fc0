"""Configuration management"""

import copy
import logging
import os
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import yaml

from harpoon.core.env import EnvManager, parse_bool
from harpoon.core.image import DEFAULT_PROJECT
from harpoon.errors import ConfigurationError
from harpoon.runtime.base import ProxySettings, RetryPolicy
from harpoon.runtime.detector import RUNTIME_PRIORITY

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "registry": "registry.k8s.local",
    "project": DEFAULT_PROJECT,
    "proxy": {
        "enabled": False,
        "http": "",
        "https": "",
    },
    "runtime": {
        "preferred": "",
        "auto_fallback": False,
        "retry": {
            "max_attempts": 3,
            "delay": 1,
            "max_delay": 30,
        },
    },
    "logging": {
        "level": "info",
        "format": "text",
        "file": "",
        "console": True,
    },
    "parallel": {
        "max_workers": 4,
    },
    "modes": {
        "save_mode": 1,
        "load_mode": 1,
        "push_mode": 1,
    },
}

LOG_LEVELS = ("debug", "info", "warn", "error")
LOG_FORMATS = ("text", "json")


def default_search_paths() -> List[str]:
    """Locations tried when no config file is given"""
    return [
        os.path.join(".", "config.yaml"),
        os.path.expanduser("~/.hpn/config.yaml"),
        "/etc/hpn/config.yaml",
    ]


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class Config:
    """Configuration for harpoon

    Values are layered: built-in defaults, then the YAML file, then HPN_*
    environment variables. Command line values are applied later by the
    CLI and always win.
    """

    def __init__(self, config_file: Optional[str] = None, env: Optional[Dict[str, str]] = None,
                 search_paths: Optional[List[str]] = None):
        """Load configuration

        Args:
            config_file: Explicit YAML file; must exist when given
            env: Environment mapping (default: os.environ)
            search_paths: Files tried in order when config_file is None
        """
        self.config_file = config_file
        self.env_manager = EnvManager(env)
        self.search_paths = default_search_paths() if search_paths is None else search_paths
        self.data: Dict[str, Any] = {}
        self.loaded_from: Optional[str] = None
        self.load()

    def _resolve_file(self) -> Optional[str]:
        if self.config_file:
            path = os.path.expanduser(self.config_file)
            if not os.path.isfile(path):
                raise ConfigurationError(f"config file not found: {self.config_file}",
                                         {"file": self.config_file})
            return path

        for candidate in self.search_paths:
            if os.path.isfile(candidate):
                return candidate
        return None

    def load(self) -> None:
        """Load defaults, file contents and environment overrides"""
        path = self._resolve_file()
        file_data: Dict[str, Any] = {}

        if path:
            try:
                with open(path, "r", encoding="utf-8") as f:
                    file_data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"failed to parse config file {path}: {e}", {"file": path})
            except OSError as e:
                raise ConfigurationError(f"failed to read config file {path}: {e}", {"file": path})

            if not isinstance(file_data, dict):
                raise ConfigurationError(f"config file {path} must contain a mapping", {"file": path})
            logger.info(f"Loaded configuration from {path}")
        else:
            logger.debug("No configuration file found, using defaults")

        self.loaded_from = path

        try:
            file_data = self.env_manager.expand(file_data)
        except ValueError as e:
            raise ConfigurationError(f"environment variable expansion failed: {e}")

        data = _merge(DEFAULT_CONFIG, file_data)
        self.data = self.env_manager.apply_overrides(data)

    def _section(self, name: str) -> Dict[str, Any]:
        section = self.data.get(name) or {}
        if not isinstance(section, dict):
            raise ConfigurationError(f"'{name}' must be a mapping")
        return section

    @property
    def registry(self) -> str:
        return str(self.data.get("registry") or "")

    @property
    def project(self) -> str:
        return str(self.data.get("project") or "")

    @property
    def proxy(self) -> ProxySettings:
        section = self._section("proxy")
        return ProxySettings(
            enabled=parse_bool(section.get("enabled", False)),
            http=section.get("http") or "",
            https=section.get("https") or "",
        )

    @property
    def preferred_runtime(self) -> str:
        return self._section("runtime").get("preferred") or ""

    @property
    def auto_fallback(self) -> bool:
        return parse_bool(self._section("runtime").get("auto_fallback", False))

    @property
    def retry(self) -> RetryPolicy:
        """Retry policy for pull and push"""
        section = self._section("runtime").get("retry") or {}
        try:
            return RetryPolicy(
                max_attempts=int(section.get("max_attempts", 3)),
                delay=float(section.get("delay", 1)),
                max_delay=float(section.get("max_delay", 30)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"invalid retry settings: {e}")

    @property
    def logging(self) -> Dict[str, Any]:
        section = self._section("logging")
        return {
            "level": str(section.get("level", "info")).lower(),
            "format": str(section.get("format", "text")).lower(),
            "file": section.get("file") or "",
            "console": parse_bool(section.get("console", True)),
        }

    @property
    def max_workers(self) -> int:
        try:
            return int(self._section("parallel").get("max_workers", 4))
        except (TypeError, ValueError):
            raise ConfigurationError("parallel.max_workers must be an integer")

    def mode(self, action: str) -> int:
        """Default mode for 'save', 'load' or 'push'"""
        try:
            return int(self._section("modes").get(f"{action}_mode", 1))
        except (TypeError, ValueError):
            raise ConfigurationError(f"modes.{action}_mode must be an integer")

    def validate(self) -> None:
        """Validate configuration

        Raises:
            ConfigurationError: On the first invalid value
        """
        registry = self.registry
        if not registry:
            raise ConfigurationError("registry cannot be empty")
        if "://" in registry:
            raise ConfigurationError("registry should not include protocol (http/https)")

        project = self.project
        if not project:
            raise ConfigurationError("project cannot be empty")
        for char in (":", "@", " ", "\t", "\n"):
            if char in project:
                raise ConfigurationError(f"project name contains invalid character: {char!r}")

        proxy = self.proxy
        if proxy.enabled:
            for label, url in (("HTTP", proxy.http), ("HTTPS", proxy.https)):
                if not url:
                    continue
                parsed = urlparse(url)
                if parsed.scheme not in ("http", "https"):
                    raise ConfigurationError(f"invalid {label} proxy URL {url}: must use http or https scheme")
                if not parsed.netloc:
                    raise ConfigurationError(f"invalid {label} proxy URL {url}: missing host")

        preferred = self.preferred_runtime
        if preferred and preferred not in RUNTIME_PRIORITY:
            raise ConfigurationError(
                f"invalid preferred runtime: {preferred} (must be one of: {', '.join(RUNTIME_PRIORITY)})"
            )

        retry = self.retry
        if retry.max_attempts < 1:
            raise ConfigurationError("retry max attempts must be at least 1")
        if retry.max_attempts > 10:
            raise ConfigurationError("retry max attempts cannot exceed 10")
        if retry.delay <= 0:
            raise ConfigurationError("retry delay must be positive")
        if retry.max_delay <= retry.delay:
            raise ConfigurationError("retry max delay must be greater than delay")

        log = self.logging
        if log["level"] not in LOG_LEVELS:
            raise ConfigurationError(f"invalid log level: {log['level']} (must be one of: {', '.join(LOG_LEVELS)})")
        if log["format"] not in LOG_FORMATS:
            raise ConfigurationError(f"invalid log format: {log['format']} (must be one of: {', '.join(LOG_FORMATS)})")

        if not 1 <= self.max_workers <= 100:
            raise ConfigurationError("parallel.max_workers must be between 1 and 100")

        for action in ("save", "load", "push"):
            if not 1 <= self.mode(action) <= 3:
                raise ConfigurationError(f"{action} mode must be 1, 2, or 3")

"""Environment variable overrides and expansion for configuration"""

import logging
import os
import re
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

# HPN_* variable -> dotted config key
ENV_MAPPINGS: Dict[str, str] = {
    "HPN_REGISTRY": "registry",
    "HPN_PROJECT": "project",
    "HPN_PROXY_HTTP": "proxy.http",
    "HPN_PROXY_HTTPS": "proxy.https",
    "HPN_PROXY_ENABLED": "proxy.enabled",
    "HPN_RUNTIME_PREFERRED": "runtime.preferred",
    "HPN_RUNTIME_AUTO_FALLBACK": "runtime.auto_fallback",
    "HPN_LOG_LEVEL": "logging.level",
    "HPN_LOG_FORMAT": "logging.format",
    "HPN_LOG_FILE": "logging.file",
    "HPN_LOG_CONSOLE": "logging.console",
    "HPN_PARALLEL_MAX": "parallel.max_workers",
}

BOOL_KEYS = {"proxy.enabled", "runtime.auto_fallback", "logging.console"}
INT_KEYS = {"parallel.max_workers"}

_BRACED = re.compile(r"\$\{([^}]+)\}")
_BARE = re.compile(r"\$([A-Za-z_][A-Za-z0-9_]*)")


def parse_bool(value: Any) -> bool:
    """Interpret common truthy strings ('1', 'true', 'yes', 'on')"""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


class EnvManager:
    """Applies environment variables to a configuration dict"""

    def __init__(self, env: Optional[Mapping[str, str]] = None):
        """Initialize environment manager

        Args:
            env: Environment to read (default: os.environ)
        """
        self.env: Dict[str, str] = dict(os.environ if env is None else env)

    @staticmethod
    def _set_dotted(data: Dict[str, Any], key: str, value: Any) -> None:
        section = data
        *parents, leaf = key.split(".")
        for parent in parents:
            if not isinstance(section.get(parent), dict):
                section[parent] = {}
            section = section[parent]
        section[leaf] = value

    def overrides(self) -> Dict[str, Any]:
        """Collect config overrides from HPN_* and standard proxy variables

        Returns:
            Mapping of dotted config key to typed value
        """
        result: Dict[str, Any] = {}

        for env_var, config_key in ENV_MAPPINGS.items():
            value = self.env.get(env_var)
            if not value:
                continue
            if config_key in BOOL_KEYS:
                result[config_key] = parse_bool(value)
            elif config_key in INT_KEYS:
                try:
                    result[config_key] = int(value)
                except ValueError:
                    logger.warning(f"Ignoring non-integer {env_var}={value}")
                    continue
            else:
                result[config_key] = value
            logger.debug(f"Config override from {env_var}")

        # Standard proxy variables switch the proxy on
        http_proxy = self.env.get("http_proxy")
        if http_proxy:
            result["proxy.http"] = http_proxy
            result["proxy.enabled"] = True
        https_proxy = self.env.get("https_proxy")
        if https_proxy:
            result["proxy.https"] = https_proxy
            result["proxy.enabled"] = True

        return result

    def apply_overrides(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Write environment overrides into a nested config dict in place"""
        for key, value in self.overrides().items():
            self._set_dotted(data, key, value)
        return data

    def expand_value(self, value: Any) -> Any:
        """Expand $VAR, ${VAR}, ${VAR:-default} and ${VAR:?message} in a string

        Raises:
            ValueError: If a ${VAR:?message} variable is not set
        """
        if not isinstance(value, str):
            return value

        def replace(match):
            expr = match.group(1)
            if ":-" in expr:
                name, default = expr.split(":-", 1)
                return self.env.get(name.strip(), default)
            if ":?" in expr:
                name, message = expr.split(":?", 1)
                name = name.strip()
                if name not in self.env:
                    raise ValueError(f"Required variable not set: {name} ({message})")
                return self.env[name]
            return self.env.get(expr.strip(), match.group(0))

        result = _BRACED.sub(replace, value)
        return _BARE.sub(lambda m: self.env.get(m.group(1), m.group(0)), result)

    def expand(self, data: Any) -> Any:
        """Recursively expand variables in dicts, lists and strings"""
        if isinstance(data, dict):
            return {key: self.expand(value) for key, value in data.items()}
        if isinstance(data, list):
            return [self.expand(item) for item in data]
        return self.expand_value(data)

"""Pytest configuration and shared fixtures"""

import os
import tempfile
from unittest.mock import MagicMock

import pytest
import yaml

from harpoon.core.config import Config
from harpoon.core.context import RunContext
from harpoon.runtime.base import BaseRuntime
from harpoon.runtime.detector import RuntimeDetector


class FakeRuntime(BaseRuntime):
    """Runtime whose availability and version are fixed up front"""

    def __init__(self, name, available=True, version="1.0.0"):
        self.name = name
        super().__init__()
        self.available = available
        self._version = version
        self.probe_count = 0

    def probe_args(self):
        return ["version"]

    def is_available(self):
        self.probe_count += 1
        return self.available

    def version(self):
        return self._version


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def write_config(temp_dir):
    """Write a YAML config file and return its path"""
    def _write(data, name="config.yaml"):
        path = os.path.join(temp_dir, name)
        with open(path, "w") as f:
            yaml.dump(data, f)
        return path
    return _write


@pytest.fixture
def make_config():
    """Config isolated from the real environment and default search paths"""
    def _make(config_file=None, env=None):
        return Config(config_file, env=env or {}, search_paths=[])
    return _make


@pytest.fixture
def write_list(temp_dir):
    """Write an item list file and return its path"""
    def _write(lines, name="images.txt"):
        path = os.path.join(temp_dir, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")
        return path
    return _write


@pytest.fixture
def fake_detector():
    """Detector over fake runtimes; pass the names that should be available"""
    def _make(*available):
        runtimes = [
            FakeRuntime(name, available=name in available)
            for name in ("nerdctl", "docker", "podman")
        ]
        return RuntimeDetector(runtimes)
    return _make


@pytest.fixture
def mock_runtime():
    """Mock runtime whose save creates the archive file"""
    runtime = MagicMock()
    runtime.name = "docker"

    def fake_save(image, tar_path, timeout=None):
        with open(tar_path, "wb") as f:
            f.write(b"tar")

    runtime.save.side_effect = fake_save
    return runtime


@pytest.fixture
def make_context(make_config, temp_dir):
    """Build a RunContext rooted at temp_dir"""
    def _make(action="pull", config=None, **kwargs):
        kwargs.setdefault("base_dir", temp_dir)
        if action != "load":
            kwargs.setdefault("image_file", os.path.join(temp_dir, "images.txt"))
        kwargs.setdefault("detector", RuntimeDetector([FakeRuntime("docker")]))
        return RunContext.build(config or make_config(), action=action, **kwargs)
    return _make

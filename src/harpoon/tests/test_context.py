"""Tests for RunContext merging and validation"""

import pytest

from harpoon.core.context import LoadMode, PushMode, SaveMode
from harpoon.core.orchestrator import Orchestrator
from harpoon.errors import ConfigurationError


class TestRunContextValidation:
    """Test command line combinations rejected before any work starts"""

    def test_missing_action(self, make_context):
        with pytest.raises(ConfigurationError) as exc_info:
            make_context(action=None)
        assert "missing required -a" in str(exc_info.value)

    def test_invalid_action(self, make_context):
        with pytest.raises(ConfigurationError) as exc_info:
            make_context(action="export")
        assert "invalid action 'export'" in str(exc_info.value)

    @pytest.mark.parametrize("action", ["pull", "save", "push"])
    def test_file_required(self, make_context, action):
        with pytest.raises(ConfigurationError) as exc_info:
            make_context(action=action, image_file=None)
        assert "-f" in str(exc_info.value)

    def test_load_needs_no_file(self, make_context):
        context = make_context(action="load")
        assert context.image_file is None

    @pytest.mark.parametrize("action,kwargs,flag", [
        ("pull", {"push_mode": 2}, "--push-mode"),
        ("pull", {"save_mode": 2}, "--save-mode"),
        ("save", {"load_mode": 2}, "--load-mode"),
        ("load", {"save_mode": 1}, "--save-mode"),
        ("push", {"load_mode": 3}, "--load-mode"),
    ])
    def test_mode_flag_for_other_action(self, make_context, action, kwargs, flag):
        """Test a mode flag is only accepted with its own action"""
        with pytest.raises(ConfigurationError) as exc_info:
            make_context(action=action, **kwargs)
        assert f"{flag} cannot be used with {action} action" in str(exc_info.value)

    @pytest.mark.parametrize("action,kwargs", [
        ("save", {"save_mode": 0}),
        ("load", {"load_mode": 4}),
        ("push", {"push_mode": 9}),
    ])
    def test_mode_out_of_range(self, make_context, action, kwargs):
        with pytest.raises(ConfigurationError):
            make_context(action=action, **kwargs)

    def test_configured_mode_out_of_range_for_other_action(self, make_config, make_context, write_config):
        """Test an invalid configured mode is rejected rather than replaced"""
        config = make_config(write_config({"modes": {"load_mode": 7}}))
        with pytest.raises(ConfigurationError) as exc_info:
            make_context(action="pull", config=config)
        assert "load mode must be 1, 2, or 3" in str(exc_info.value)


class TestRunContextMerge:
    """Test command line values merged over configuration"""

    def test_modes_from_flags(self, make_context):
        assert make_context(action="save", save_mode=3).save_mode == SaveMode.PROJECT_DIR
        assert make_context(action="load", load_mode=2).load_mode == LoadMode.IMAGES_DIR

    def test_modes_from_config(self, make_config, make_context, write_config):
        config = make_config(write_config({"modes": {"save_mode": 2}}))
        assert make_context(action="save", config=config).save_mode == SaveMode.IMAGES_DIR

    def test_registry_from_config(self, make_context):
        assert make_context(action="push").registry == "registry.k8s.local"

    def test_registry_from_flag(self, make_context):
        assert make_context(action="push", registry="harbor.local").registry == "harbor.local"

    def test_auto_fallback_from_config(self, make_config, make_context):
        config = make_config(env={"HPN_RUNTIME_AUTO_FALLBACK": "1"})
        assert make_context(config=config).auto_fallback is True

    def test_workers_default_sequential(self, make_context):
        assert make_context().workers == 1

    def test_workers_capped(self, make_context):
        assert make_context(workers=50).workers == 4
        assert make_context(workers=0).workers == 1


class TestPushModeUpgrade:
    """Test push mode 1 becomes 2 when a project is given"""

    def test_project_flag_upgrades(self, make_context):
        context = make_context(action="push", project="prod")
        assert context.push_mode == PushMode.PROJECT
        assert context.push_mode_upgraded is True
        assert context.project == "prod"

    def test_library_project_does_not_upgrade(self, make_context):
        context = make_context(action="push", project="library")
        assert context.push_mode == PushMode.SIMPLE
        assert context.push_mode_upgraded is False

    def test_explicit_push_mode_one_upgrades(self, make_context):
        """Test -p is honoured even when --push-mode 1 is given"""
        context = make_context(action="push", registry="harbor.local", project="prod", push_mode=1)
        assert context.push_mode == PushMode.PROJECT
        assert context.push_mode_upgraded is True
        assert Orchestrator(context).push_target("nginx:1.25") == "harbor.local/prod/nginx:1.25"

    def test_explicit_push_mode_two_not_flagged(self, make_context):
        context = make_context(action="push", project="prod", push_mode=2)
        assert context.push_mode == PushMode.PROJECT
        assert context.push_mode_upgraded is False

    def test_config_project_does_not_upgrade(self, make_config, make_context, write_config):
        config = make_config(write_config({"project": "team"}))
        context = make_context(action="push", config=config)
        assert context.push_mode == PushMode.SIMPLE
        assert context.project == "team"
        assert context.project_explicit is False

    def test_push_mode_three_kept(self, make_context):
        assert make_context(action="push", project="prod", push_mode=3).push_mode == PushMode.PRESERVE

"""Shared fixtures: a sandbox rooted in pytest's tmp_path."""

from pathlib import Path

import pytest

from splunk_query_agent.config import SandboxConfig


@pytest.fixture
def make_config(tmp_path):
    """Factory for SandboxConfigs whose roots live under tmp_path."""
    work = tmp_path / "work"
    sandbox = tmp_path / "sandbox"
    work.mkdir(exist_ok=True)
    sandbox.mkdir(exist_ok=True)

    def _make(**overrides) -> SandboxConfig:
        settings = {
            "working_directory": str(work),
            "sandbox_directory": str(sandbox),
            "command_timeout": 10.0,
        }
        settings.update(overrides)
        return SandboxConfig(**settings)

    return _make


@pytest.fixture
def sandbox_config(make_config) -> SandboxConfig:
    return make_config()


@pytest.fixture
def work_dir(sandbox_config) -> Path:
    return Path(sandbox_config.cwd)

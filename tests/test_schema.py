"""Tests for configuration schema validation."""

import pytest
from pydantic import ValidationError

from shellgate.config.schema import Config, ShellToolConfig, ToolsConfig


class TestShellToolConfig:
    def test_defaults(self):
        config = ShellToolConfig()
        assert config.timeout_ms == 5000
        assert config.max_buffer_bytes == 1024 * 1024
        assert config.working_dir is None
        assert config.shell_path is None
        assert config.env == {}
        assert config.preview_head_lines == 5
        assert config.preview_tail_lines == 2
        assert config.preview_max_line_length == 160

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ValidationError):
            ShellToolConfig(timeout_ms=0)

    def test_to_sandbox_options(self):
        options = ShellToolConfig(
            timeout_ms=100,
            max_buffer_bytes=10,
            working_dir="/tmp",
            shell_path="/bin/sh",
            env={"A": "1"},
        ).to_sandbox_options()

        assert options.timeout_ms == 100
        assert options.max_buffer == 10
        assert options.cwd == "/tmp"
        assert options.shell_path == "/bin/sh"
        assert options.env == {"A": "1"}

    def test_empty_env_becomes_none(self):
        assert ShellToolConfig().to_sandbox_options().env is None


class TestConfig:
    def test_defaults(self):
        config = Config()
        assert isinstance(config.tools, ToolsConfig)
        assert config.tools.shell.timeout_ms == 5000

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("SHELLGATE_TOOLS__SHELL__TIMEOUT_MS", "9000")
        assert Config().tools.shell.timeout_ms == 9000

"""
Tests for the gaiadeploy command line interface.
"""

import tempfile
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from gaiadeploy.cli import app
from gaiadeploy.core.config import CPU_CONFIG_URL, HostClass
from gaiadeploy.core.environment import EnvironmentReport
from gaiadeploy.core.exceptions import NodeCommandError
from gaiadeploy.core.provisioner import InstanceResult


class TestCLI:
    """Test cases for CLI functionality."""

    def setup_method(self):
        """Set up test fixtures."""
        self.runner = CliRunner()
        self.temp_dir = tempfile.mkdtemp()
        self.home = Path(self.temp_dir) / "home"
        self.home.mkdir()

    def teardown_method(self):
        """Clean up test fixtures."""
        import shutil

        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def instance_dirs(self):
        return [p for p in self.home.iterdir() if p.name.startswith("gaianet")]

    def install(self, *args, input=None):
        return self.runner.invoke(
            app,
            ["node", "install", "--home", str(self.home), "--skip-deps", *args],
            input=input,
        )

    # ============================================================================
    # Basic CLI Tests
    # ============================================================================

    def test_cli_help(self):
        result = self.runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "GaiaNet multi-instance provisioning" in result.output

    def test_version(self):
        result = self.runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "gaiadeploy version" in result.output

    def test_node_install_help(self):
        result = self.runner.invoke(app, ["node", "install", "--help"])
        assert result.exit_code == 0
        assert "--instances" in result.output

    # ============================================================================
    # Instance count validation
    # ============================================================================

    @pytest.mark.parametrize("answer", ["0", "5", "abc", "", "12"])
    def test_invalid_prompt_answer(self, answer):
        with patch("gaiadeploy.cli.commands.node_commands.Provisioner") as provisioner:
            result = self.install(input=f"{answer}\n")

        assert result.exit_code == 1
        assert "How many GaiaNet instances do you want to install? (1-4)" in result.output
        assert "Please enter a valid number between 1 and 4." in result.output
        provisioner.assert_not_called()
        assert self.instance_dirs() == []

    @pytest.mark.parametrize("value", ["0", "5", "abc"])
    def test_invalid_instances_option(self, value):
        with patch("gaiadeploy.cli.commands.node_commands.Provisioner") as provisioner:
            result = self.install("--instances", value)

        assert result.exit_code == 1
        provisioner.assert_not_called()
        assert self.instance_dirs() == []

    # ============================================================================
    # Provisioning
    # ============================================================================

    def test_prompted_install_success(self):
        results = [
            InstanceResult(i, self.home / f"gaianet{i}", f"809{i}", CPU_CONFIG_URL)
            for i in (1, 2)
        ]
        with patch("gaiadeploy.cli.commands.node_commands.Provisioner") as provisioner:
            provisioner.return_value.run.return_value = results
            result = self.install(input="2\n")

        assert result.exit_code == 0, result.output
        assert provisioner.return_value.run.call_args.args[0] == 2
        loaded_config = provisioner.call_args.args[0]
        assert loaded_config.home_dir == self.home
        assert loaded_config.system.install_dependencies is False
        assert "8092" in result.output
        assert "Congratulations" in result.output

    def test_no_cuda_flag(self):
        with patch("gaiadeploy.cli.commands.node_commands.Provisioner") as provisioner:
            provisioner.return_value.run.return_value = []
            result = self.install("--instances", "1", "--no-cuda")

        assert result.exit_code == 0, result.output
        assert provisioner.call_args.args[0].cuda.enabled is False

    def test_instances_from_config_file(self):
        config_path = Path(self.temp_dir) / "provision.yaml"
        config_path.write_text("instances: 3\n")
        with patch("gaiadeploy.cli.commands.node_commands.Provisioner") as provisioner:
            provisioner.return_value.run.return_value = []
            result = self.install("--config", str(config_path))

        assert result.exit_code == 0, result.output
        assert provisioner.return_value.run.call_args.args[0] == 3

    def test_provisioning_failure_exits_1(self):
        with patch("gaiadeploy.cli.commands.node_commands.Provisioner") as provisioner:
            provisioner.return_value.run.side_effect = NodeCommandError(
                "Failed to start GaiaNet node in /tmp/gaianet1"
            )
            result = self.install("--instances", "1")

        assert result.exit_code == 1
        assert "Failed to start GaiaNet node" in result.output
        assert "Congratulations" not in result.output

    def test_missing_config_file_exits_1(self):
        result = self.install("--instances", "1", "--config", "/does/not/exist.yaml")
        assert result.exit_code == 1
        assert "Config file not found" in result.output

    def test_malformed_config_file_exits_1(self):
        config_path = Path(self.temp_dir) / "bad.yaml"
        config_path.write_text("node: [unclosed\n")
        with patch("gaiadeploy.cli.commands.node_commands.Provisioner") as provisioner:
            result = self.install("--instances", "1", "--config", str(config_path))

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Failed to parse config file" in result.output
        provisioner.assert_not_called()

    def test_unresolved_env_interpolation_exits_1(self, monkeypatch):
        monkeypatch.delenv("GAIADEPLOY_TEST_UNSET_DOMAIN", raising=False)
        config_path = Path(self.temp_dir) / "env.yaml"
        config_path.write_text("node:\n  domain: ${oc.env:GAIADEPLOY_TEST_UNSET_DOMAIN}\n")
        with patch("gaiadeploy.cli.commands.node_commands.Provisioner") as provisioner:
            result = self.install("--instances", "1", "--config", str(config_path))

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Invalid configuration" in result.output
        provisioner.assert_not_called()

    def test_malformed_config_file_system_detect(self):
        config_path = Path(self.temp_dir) / "bad.yaml"
        config_path.write_text("node: [unclosed\n")
        result = self.runner.invoke(app, ["system", "detect", "--config", str(config_path)])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)

    # ============================================================================
    # System and utility commands
    # ============================================================================

    def test_system_detect(self):
        report = EnvironmentReport(
            is_wsl=True, has_gpu=False, host_class=HostClass.LAPTOP, cuda_major=None
        )
        with patch("gaiadeploy.cli.commands.system_commands.Provisioner") as provisioner:
            provisioner.return_value.detect.return_value = report
            result = self.runner.invoke(app, ["system", "detect"])

        assert result.exit_code == 0, result.output
        assert "Laptop" in result.output
        assert "not found" in result.output

    def test_system_deps_failure(self):
        from gaiadeploy.core.exceptions import CommandError

        with patch("gaiadeploy.cli.commands.system_commands.Provisioner") as provisioner:
            provisioner.return_value.install_dependencies.side_effect = CommandError(
                "Updating package list failed (exit 100)", ["apt", "update", "-y"], 100
            )
            result = self.runner.invoke(app, ["system", "deps"])

        assert result.exit_code == 1
        assert "Updating package list failed" in result.output

    def test_system_cuda(self):
        report = EnvironmentReport(
            is_wsl=False, has_gpu=False, host_class=HostClass.DESKTOP
        )
        installer = MagicMock()
        installer.ensure.return_value = "no_gpu"
        with patch("gaiadeploy.cli.commands.system_commands.Provisioner") as provisioner:
            provisioner.return_value.detect.return_value = report
            provisioner.return_value.cuda_installer.return_value = installer
            result = self.runner.invoke(app, ["system", "cuda", "--no-install"])

        assert result.exit_code == 0, result.output
        installer.ensure.assert_called_once_with(False)
        assert provisioner.call_args.args[0].cuda.enabled is False

    def test_create_config(self):
        output = Path(self.temp_dir) / "conf" / "provision.yaml"
        result = self.runner.invoke(app, ["utils", "create-config", str(output)])
        assert result.exit_code == 0, result.output
        assert output.exists()
        assert "port_prefix" in output.read_text()

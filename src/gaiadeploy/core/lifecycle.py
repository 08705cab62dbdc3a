"""
Node lifecycle: config selection and the init/config/start/info subcommands.
"""

import logging
from pathlib import Path

from .config import HostClass
from .config_models import ConfigUrlsModel
from .exceptions import NodeCommandError, ProvisionError
from .runner import CommandRunner

logger = logging.getLogger(__name__)


def select_config_url(
    host_class: HostClass, has_gpu: bool, urls: ConfigUrlsModel
) -> str:
    """
    Pick the remote node config for this hardware.

    VPS hosts always get the CPU config; laptops and desktops get their GPU
    config only when a GPU is present.
    """
    if host_class == HostClass.VPS or not has_gpu:
        return urls.cpu
    if host_class == HostClass.LAPTOP:
        return urls.gpu_laptop
    return urls.gpu_desktop


def instance_port(prefix: str, index: int) -> str:
    return f"{prefix}{index}"


class NodeLifecycle:
    """Drive one installed node through its subcommands."""

    def __init__(self, runner: CommandRunner, binary: Path, base_dir: Path):
        self.runner = runner
        self.binary = Path(binary)
        self.base_dir = Path(base_dir)

    def _run(self, args, description: str, failure: str) -> None:
        try:
            self.runner.run(
                [self.binary, *args, "--base", self.base_dir],
                description,
                capture_output=False,
            )
        except ProvisionError as e:
            raise NodeCommandError(f"{failure} in {self.base_dir}: {e.message}") from e

    def init(self, config_url: str) -> None:
        self._run(
            ["init", "--config", config_url],
            f"Initializing GaiaNet in {self.base_dir}...",
            "GaiaNet initialization failed",
        )

    def configure(self, port: str, domain: str) -> int:
        """Set port and domain. The exit status is reported, never enforced."""
        result = self.runner.run(
            [
                self.binary,
                "config",
                "--base",
                self.base_dir,
                "--port",
                port,
                "--domain",
                domain,
            ],
            f"Configuring GaiaNet in {self.base_dir} (port {port}, domain {domain})",
            check=False,
            capture_output=False,
        )
        if result.returncode != 0:
            logger.warning(
                f"GaiaNet config exited with {result.returncode} in {self.base_dir}, continuing"
            )
        return result.returncode

    def start(self) -> None:
        self._run(
            ["start"],
            f"Starting GaiaNet node in {self.base_dir}...",
            "Failed to start GaiaNet node",
        )

    def info(self) -> None:
        self._run(
            ["info"],
            f"Fetching GaiaNet node information in {self.base_dir}...",
            "Failed to fetch GaiaNet node information",
        )

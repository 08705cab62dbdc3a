"""
End-to-end provisioning of one to four node instances on this host.

Instances are provisioned strictly one after another. The first failure
aborts the whole run; instances completed before it are left in place.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, MutableMapping, Optional, Sequence

from .config import INSTANCE_COUNT_PATTERN, MAX_INSTANCES, CudaStatus
from .config_models import ProvisionConfigModel
from .cuda import CudaInstaller
from .downloads import download_file
from .environment import (
    DEFAULT_GPU_PROBES,
    POWER_SUPPLY_DIR,
    PROC_VERSION,
    EnvironmentReport,
    GpuProbe,
    detect_environment,
)
from .exceptions import InstanceError, InvalidInputError
from .lifecycle import NodeLifecycle, instance_port, select_config_url
from .node_installer import NodeInstaller
from .runner import CommandRunner
from .shell_profile import add_to_path
from .system_packages import install_system_packages

logger = logging.getLogger(__name__)


def parse_instance_count(raw: str) -> int:
    """Validate a raw answer to the instance count prompt."""
    value = (raw or "").strip()
    if not re.match(INSTANCE_COUNT_PATTERN, value):
        raise InvalidInputError(
            f"Please enter a valid number between 1 and {MAX_INSTANCES}.",
            details={"input": raw},
        )
    return int(value)


@dataclass
class InstanceResult:
    index: int
    directory: Path
    port: str
    config_url: str
    cuda_major: Optional[str] = None


class Provisioner:
    """Prepare the host once, then install and start each instance."""

    def __init__(
        self,
        config: ProvisionConfigModel,
        runner: Optional[CommandRunner] = None,
        environ: Optional[MutableMapping[str, str]] = None,
        download: Callable[[str, Path], Path] = download_file,
        proc_version: Path = PROC_VERSION,
        power_supply_dir: Path = POWER_SUPPLY_DIR,
        gpu_probes: Sequence[GpuProbe] = DEFAULT_GPU_PROBES,
        cuda_toolkit_dir: Optional[Path] = None,
    ):
        if runner is not None and environ is not None and environ is not runner.environ:
            raise ValueError("environ must be the given runner's environment")
        self.config = config
        self.runner = runner or CommandRunner(
            use_sudo=config.system.use_sudo, environ=environ
        )
        # CUDA activation and PATH exports land in the runner's environment
        self.environ = self.runner.environ
        self.download = download
        self.proc_version = proc_version
        self.power_supply_dir = power_supply_dir
        self.gpu_probes = gpu_probes
        self.cuda_toolkit_dir = cuda_toolkit_dir
        self.node_installer = NodeInstaller(self.runner, config.node, download=download)
        self._report: Optional[EnvironmentReport] = None

    def detect(self) -> EnvironmentReport:
        if self._report is None:
            self._report = detect_environment(
                self.runner,
                proc_version=self.proc_version,
                power_supply_dir=self.power_supply_dir,
                probes=self.gpu_probes,
            )
        return self._report

    def cuda_installer(self, report: EnvironmentReport) -> CudaInstaller:
        return CudaInstaller(
            self.runner,
            self.config.cuda,
            wsl=report.is_wsl,
            environ=self.environ,
            toolkit_dir=self.cuda_toolkit_dir,
            download=self.download,
        )

    def install_dependencies(self) -> None:
        install_system_packages(
            self.runner, self.config.system.packages, upgrade=self.config.system.upgrade
        )

    def prepare_host(self, report: EnvironmentReport) -> CudaStatus:
        """System-wide work, done once regardless of the instance count."""
        if self.config.system.install_dependencies:
            self.install_dependencies()
        status = self.cuda_installer(report).ensure(report.has_gpu)
        logger.debug(f"CUDA status: {status}")
        return status

    def provision_instance(
        self, index: int, report: EnvironmentReport
    ) -> InstanceResult:
        node = self.config.node
        install_dir = self.config.instance_dir(index)
        port = instance_port(node.port_prefix, index)

        try:
            install_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise InstanceError(f"Failed to create directory {install_dir}: {e}") from e

        cuda_major = self.node_installer.install(install_dir)

        binary = install_dir / "bin" / node.binary_name
        if not binary.is_file():
            raise InstanceError(
                f"GaiaNet installation failed in {install_dir}: {binary} not found"
            )
        logger.info(f"GaiaNet installed successfully in {install_dir}.")
        add_to_path(binary.parent, self.config.shell_rc_path, self.environ)

        config_url = select_config_url(
            report.host_class, report.has_gpu, self.config.configs
        )
        logger.info(f"Using node config {config_url}")

        lifecycle = NodeLifecycle(self.runner, binary, install_dir)
        lifecycle.init(config_url)
        lifecycle.configure(port, node.domain)
        lifecycle.start()
        lifecycle.info()

        return InstanceResult(
            index=index,
            directory=install_dir,
            port=port,
            config_url=config_url,
            cuda_major=cuda_major,
        )

    def run(
        self,
        count: int,
        on_instance_start: Optional[Callable[[int], None]] = None,
    ) -> List[InstanceResult]:
        if not 1 <= count <= MAX_INSTANCES:
            raise InvalidInputError(
                f"Please enter a valid number between 1 and {MAX_INSTANCES}.",
                details={"input": count},
            )

        report = self.detect()
        self.prepare_host(report)

        results = []
        for index in range(1, count + 1):
            if on_instance_start is not None:
                on_instance_start(index)
            results.append(self.provision_instance(index, report))
        return results

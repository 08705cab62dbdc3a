"""
Per-instance node installation.

Downloads the external install.sh for a pinned release into an instance
directory and runs it with --base so everything it writes stays inside that
directory. A GPU build is requested when nvcc reports a supported CUDA major.
"""

import logging
import stat
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .config_models import NodeConfigModel
from .downloads import download_file
from .environment import detect_cuda_major
from .exceptions import InstanceError, NodeInstallError, ProvisionError
from .runner import CommandRunner

logger = logging.getLogger(__name__)

INSTALLER_NAME = "install.sh"


class NodeInstaller:
    def __init__(
        self,
        runner: CommandRunner,
        node_config: NodeConfigModel,
        download: Callable[[str, Path], Path] = download_file,
    ):
        self.runner = runner
        self.node_config = node_config
        self.download = download

    @property
    def supported_cuda_majors(self) -> Sequence[str]:
        return self.node_config.supported_cuda_majors

    def gpu_build(self) -> Optional[str]:
        """CUDA major to build against, or None for a CPU-only install."""
        if self.runner.which("nvcc") is None:
            return None
        major = detect_cuda_major(self.runner)
        if major in self.supported_cuda_majors:
            return major
        if major is not None:
            logger.warning(f"CUDA {major} is not supported by the node installer.")
        return None

    def installer_args(self, install_dir: Path, cuda_major: Optional[str]) -> List[str]:
        args = [f"./{INSTALLER_NAME}"]
        if cuda_major is not None:
            args += ["--ggmlcuda", cuda_major]
        args += ["--base", str(install_dir)]
        return args

    def fetch(self, install_dir: Path) -> Path:
        """Download install.sh into the directory and make it executable."""
        script = install_dir / INSTALLER_NAME
        try:
            self.download(self.node_config.installer_url_for(), script)
        except ProvisionError as e:
            raise NodeInstallError(f"Failed to download {INSTALLER_NAME}: {e.message}") from e
        try:
            script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        except OSError as e:
            raise NodeInstallError(f"Failed to make {script} executable: {e}") from e
        return script

    def install(self, install_dir: Path) -> Optional[str]:
        """
        Install the node into an existing directory.

        Returns the CUDA major the node was built for, None for CPU-only.
        """
        install_dir = Path(install_dir)
        if not install_dir.is_dir():
            raise InstanceError(f"Install directory {install_dir} does not exist")

        logger.info(f"Installing GaiaNet in {install_dir}...")
        cuda_major = self.gpu_build()
        self.fetch(install_dir)

        if cuda_major is not None:
            description = f"Installing GaiaNet with ggmlcuda {cuda_major}"
            failure = "GaiaNet installation with CUDA failed"
        else:
            logger.warning("Installing GaiaNet without GPU support...")
            description = "Installing GaiaNet without GPU support"
            failure = "GaiaNet installation without GPU failed"

        try:
            self.runner.run(
                self.installer_args(install_dir, cuda_major),
                description,
                cwd=install_dir,
                capture_output=False,
            )
        except ProvisionError as e:
            raise NodeInstallError(f"{failure}: {e.message}", details=e.details) from e
        return cuda_major

"""
CUDA toolkit installation and environment setup.

The toolkit is installed system wide from NVIDIA's local apt repository
package, then exposed through a profile fragment (/etc/profile.d/cuda.sh)
that is also applied to the current process so later steps (the node
installer in particular) can find nvcc.
"""

import glob
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, List, MutableMapping, Optional

from .config import (
    CudaStatus,
    cuda_home,
    cuda_repo_for,
    cuda_toolkit_package,
)
from .config_models import CudaConfigModel
from .downloads import download_file
from .environment import detect_cuda_major
from .exceptions import CudaInstallError, ProvisionError
from .runner import CommandRunner, path_contains, prepend_path

logger = logging.getLogger(__name__)


class CudaInstaller:
    """Install and activate one CUDA toolkit version."""

    def __init__(
        self,
        runner: CommandRunner,
        config: CudaConfigModel,
        wsl: bool,
        environ: Optional[MutableMapping[str, str]] = None,
        toolkit_dir: Optional[Path] = None,
        download: Callable[[str, Path], Path] = download_file,
    ):
        self.runner = runner
        self.config = config
        self.wsl = wsl
        self.environ = runner.environ if environ is None else environ
        self.toolkit_dir = Path(toolkit_dir) if toolkit_dir else cuda_home(config.version)
        self.download = download

    @property
    def major(self) -> str:
        return self.config.version.split(".")[0]

    @property
    def bin_dir(self) -> Path:
        return self.toolkit_dir / "bin"

    @property
    def lib_dir(self) -> Path:
        return self.toolkit_dir / "lib64"

    @contextmanager
    def _step(self, failure: str) -> Iterator[None]:
        try:
            yield
        except ProvisionError as e:
            raise CudaInstallError(f"{failure}: {e.message}", details=e.details) from e

    def install(self) -> None:
        """Download the repository package and install the toolkit via apt."""
        repo = cuda_repo_for(self.config.version, self.wsl)
        platform = "WSL 2" if self.wsl else "Ubuntu 24.04"
        logger.info(f"Installing CUDA {self.config.version} for {platform}...")

        work_dir = Path(self.config.download_dir)
        work_dir.mkdir(parents=True, exist_ok=True)

        pin_path = work_dir / repo.pin_file
        with self._step(f"Failed to download {repo.pin_file}"):
            self.download(repo.pin_url, pin_path)
        with self._step(f"Failed to move {repo.pin_file}"):
            self.runner.run(
                ["mv", pin_path, self.config.pin_destination],
                f"Installing apt pin {repo.pin_file}",
                privileged=True,
            )

        package_path = work_dir / repo.package_file
        if package_path.exists():
            logger.info(f"Deleting existing {repo.package_file}...")
            package_path.unlink()
        with self._step(f"Failed to download {repo.package_file}"):
            self.download(repo.package_url, package_path)

        with self._step(f"Failed to install {repo.package_file}"):
            self.runner.run(
                ["dpkg", "-i", package_path],
                f"Installing {repo.package_file}",
                privileged=True,
            )

        keyrings = sorted(glob.glob(self.config.keyring_glob))
        if not keyrings:
            raise CudaInstallError(
                f"Failed to copy CUDA keyring: nothing matches {self.config.keyring_glob}"
            )
        with self._step("Failed to copy CUDA keyring"):
            self.runner.run(
                ["cp", *keyrings, self.config.keyring_dir],
                "Copying CUDA keyring",
                privileged=True,
            )

        with self._step("Package list update failed"):
            self.runner.run(
                ["apt-get", "update"], "Updating package list", privileged=True
            )

        package = cuda_toolkit_package(self.config.version)
        with self._step(f"CUDA Toolkit {self.config.version} installation failed"):
            self.runner.run(
                ["apt-get", "install", "-y", package],
                f"Installing {package}",
                privileged=True,
                capture_output=False,
            )
        logger.info(f"CUDA Toolkit {self.config.version} installed successfully.")

    def profile_lines(self) -> List[str]:
        return [
            f"export PATH={self.bin_dir}${{PATH:+:${{PATH}}}}",
            f"export LD_LIBRARY_PATH={self.lib_dir}"
            "${LD_LIBRARY_PATH:+:${LD_LIBRARY_PATH}}",
        ]

    def write_profile(self) -> None:
        """Overwrite the profile fragment with the toolkit's PATH settings."""
        logger.info("Setting up CUDA environment variables...")
        content = "\n".join(self.profile_lines()) + "\n"
        profile = Path(self.config.profile_path)
        try:
            profile.write_text(content)
            return
        except PermissionError:
            logger.debug(f"{profile} is not writable, retrying through tee")
        except OSError as e:
            raise CudaInstallError(f"Failed to write {profile}: {e}") from e

        with self._step(f"Failed to write {profile}"):
            self.runner.run(
                ["tee", profile],
                f"Writing {profile}",
                privileged=True,
                input=content,
            )

    def activate(self) -> None:
        """Apply the profile fragment to the current process environment."""
        prepend_path(self.environ, "PATH", self.bin_dir)
        prepend_path(self.environ, "LD_LIBRARY_PATH", self.lib_dir)

    def is_active(self) -> bool:
        """The toolkit's bin dir is on PATH and nvcc reports the target version."""
        if not path_contains(self.environ, "PATH", self.bin_dir):
            return False
        return detect_cuda_major(self.runner) == self.major

    def is_installed(self) -> bool:
        return (self.bin_dir / "nvcc").is_file()

    def ensure(self, has_gpu: bool) -> CudaStatus:
        """
        Make the toolkit available to this process.

        Checks, in order: GPU presence, an already sourced environment, an
        installed but inactive toolkit, and finally installs from scratch.
        """
        if not has_gpu:
            return CudaStatus.NO_GPU

        if self.is_active():
            logger.info(f"CUDA {self.config.version} environment already set up.")
            return CudaStatus.ALREADY_ACTIVE

        if self.is_installed():
            logger.info(f"CUDA {self.config.version} found at {self.toolkit_dir}.")
            self.write_profile()
            self.activate()
            return CudaStatus.ACTIVATED

        if not self.config.enabled:
            logger.warning("CUDA toolkit not found and installation is disabled.")
            return CudaStatus.SKIPPED

        self.install()
        self.write_profile()
        self.activate()
        return CudaStatus.INSTALLED

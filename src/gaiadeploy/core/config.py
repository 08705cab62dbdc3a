"""
Configuration utilities for gaiadeploy.
"""

import logging
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Dict, Tuple

logger = logging.getLogger(__name__)

ROOT = Path(__file__).parents[3]

MAX_INSTANCES = 4
INSTANCE_COUNT_PATTERN = r"^[1-4]$"


class HostClass(StrEnum):
    """Kinds of host the node can be provisioned on."""

    VPS = "vps"
    LAPTOP = "laptop"
    DESKTOP = "desktop"


class CudaStatus(StrEnum):
    """Outcome of the CUDA decision chain."""

    NO_GPU = "no_gpu"
    ALREADY_ACTIVE = "already_active"
    ACTIVATED = "activated"
    INSTALLED = "installed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class CudaRepoSpec:
    """Pin file and local repository package for one CUDA release on one platform."""

    pin_file: str
    pin_url: str
    package_file: str
    package_url: str


DEFAULT_PACKAGES: Tuple[str, ...] = (
    "pciutils",
    "libgomp1",
    "curl",
    "wget",
    "build-essential",
    "libglvnd-dev",
    "pkg-config",
    "libopenblas-dev",
    "libomp-dev",
)

VIRTUALIZATION_PATTERN = r"kvm|qemu|vmware|xen|lxc"
BATTERY_PATTERN = r"^BAT[0-9]"

NODE_INSTALLER_URL = (
    "https://github.com/GaiaNet-AI/gaianet-node/releases/download/{version}/install.sh"
)
NODE_VERSION = "0.4.20"
NODE_DOMAIN = "gaia.domains"

CONFIG_BASE_URL = "https://raw.githubusercontent.com/abhiag/Gaia_Node/main"
GPU_LAPTOP_CONFIG_URL = f"{CONFIG_BASE_URL}/config1.json"
CPU_CONFIG_URL = f"{CONFIG_BASE_URL}/config2.json"
GPU_DESKTOP_CONFIG_URL = f"{CONFIG_BASE_URL}/config3.json"

CUDA_DOWNLOAD_BASE = "https://developer.download.nvidia.com/compute/cuda"

# keyed by CUDA version, then by platform ("wsl" or "ubuntu")
CUDA_REPOS: Dict[str, Dict[str, CudaRepoSpec]] = {
    "12.8": {
        "wsl": CudaRepoSpec(
            pin_file="cuda-wsl-ubuntu.pin",
            pin_url=f"{CUDA_DOWNLOAD_BASE}/repos/wsl-ubuntu/x86_64/cuda-wsl-ubuntu.pin",
            package_file="cuda-repo-wsl-ubuntu-12-8-local_12.8.0-1_amd64.deb",
            package_url=(
                f"{CUDA_DOWNLOAD_BASE}/12.8.0/local_installers/"
                "cuda-repo-wsl-ubuntu-12-8-local_12.8.0-1_amd64.deb"
            ),
        ),
        "ubuntu": CudaRepoSpec(
            pin_file="cuda-ubuntu2404.pin",
            pin_url=f"{CUDA_DOWNLOAD_BASE}/repos/ubuntu2404/x86_64/cuda-ubuntu2404.pin",
            package_file="cuda-repo-ubuntu2404-12-8-local_12.8.0-570.86.10-1_amd64.deb",
            package_url=(
                f"{CUDA_DOWNLOAD_BASE}/12.8.0/local_installers/"
                "cuda-repo-ubuntu2404-12-8-local_12.8.0-570.86.10-1_amd64.deb"
            ),
        ),
    },
}


def cuda_repo_for(version: str, wsl: bool) -> CudaRepoSpec:
    """Pick the repository quadruple for a CUDA version and platform."""
    try:
        platforms = CUDA_REPOS[version]
    except KeyError:
        raise ValueError(f"No CUDA repository known for version {version}") from None
    return platforms["wsl" if wsl else "ubuntu"]


def cuda_toolkit_package(version: str) -> str:
    """Apt package name for a CUDA toolkit version, e.g. cuda-toolkit-12-8."""
    return "cuda-toolkit-" + version.replace(".", "-")


def cuda_home(version: str) -> Path:
    return Path(f"/usr/local/cuda-{version}")

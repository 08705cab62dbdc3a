"""
Host environment detection.

Detects whether we run under WSL, whether an NVIDIA GPU is present, which
CUDA toolkit major version (if any) nvcc reports, and what kind of host this
is (VPS, laptop or desktop). Detection is best effort: a missing tool or file
counts as a negative result and never raises.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Union

from .config import BATTERY_PATTERN, VIRTUALIZATION_PATTERN, HostClass
from .runner import CommandRunner

logger = logging.getLogger(__name__)

PROC_VERSION = Path("/proc/version")
POWER_SUPPLY_DIR = Path("/sys/class/power_supply")


@dataclass
class EnvironmentReport:
    """Everything the provisioner needs to know about the host."""

    is_wsl: bool
    has_gpu: bool
    host_class: HostClass
    cuda_major: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["host_class"] = str(self.host_class)
        return data


def is_wsl(proc_version: Path = PROC_VERSION) -> bool:
    """True when the kernel version string mentions Microsoft."""
    try:
        text = Path(proc_version).read_text(errors="ignore")
    except OSError:
        return False
    wsl = "microsoft" in text.lower()
    if wsl:
        logger.info("Running inside WSL.")
    else:
        logger.info("Running on a native Ubuntu system.")
    return wsl


class GpuProbe(ABC):
    """One way of finding an NVIDIA GPU."""

    name = "base"

    @abstractmethod
    def detect(self, runner: CommandRunner) -> bool:
        """Return True when this probe finds an NVIDIA GPU."""
        pass


class NvidiaSmiProbe(GpuProbe):
    """The driver query tool is installed."""

    name = "nvidia-smi"

    def detect(self, runner: CommandRunner) -> bool:
        return runner.which("nvidia-smi") is not None


class PciBusProbe(GpuProbe):
    """An NVIDIA device shows up on the PCI bus."""

    name = "lspci"

    def detect(self, runner: CommandRunner) -> bool:
        output = runner.probe(["lspci"])
        return output is not None and "nvidia" in output.lower()


DEFAULT_GPU_PROBES = (NvidiaSmiProbe(), PciBusProbe())


def has_nvidia_gpu(
    runner: CommandRunner, probes: Sequence[GpuProbe] = DEFAULT_GPU_PROBES
) -> bool:
    for probe in probes:
        if probe.detect(runner):
            logger.info(f"NVIDIA GPU detected (via {probe.name}).")
            return True
    logger.warning("No NVIDIA GPU found.")
    return False


def classify_host(
    runner: CommandRunner, power_supply_dir: Union[str, Path] = POWER_SUPPLY_DIR
) -> HostClass:
    """
    Classify the host.

    Virtualization beats battery presence, which beats the desktop default.
    """
    virt = runner.probe(["systemd-detect-virt"]) or ""
    if re.search(VIRTUALIZATION_PATTERN, virt, re.IGNORECASE):
        logger.info("This is a VPS.")
        return HostClass.VPS

    if _has_battery(Path(power_supply_dir)):
        logger.info("This is a Laptop.")
        return HostClass.LAPTOP

    logger.info("This is a Desktop.")
    return HostClass.DESKTOP


def _has_battery(power_supply_dir: Path) -> bool:
    try:
        entries = [p.name for p in power_supply_dir.iterdir()]
    except OSError:
        return False
    return any(re.match(BATTERY_PATTERN, name) for name in entries)


def parse_nvcc_major(output: str) -> Optional[str]:
    """
    Pull the major CUDA version out of `nvcc --version` text.

    The release line looks like
    "Cuda compilation tools, release 12.8, V12.8.61".
    """
    for line in output.splitlines():
        if "release" not in line:
            continue
        match = re.search(r"\bV(\d+)(?:\.\d+)*", line)
        if match is None:
            match = re.search(r"release\s+(\d+)", line)
        if match:
            return match.group(1)
    return None


def detect_cuda_major(runner: CommandRunner, nvcc: str = "nvcc") -> Optional[str]:
    """Major CUDA version reported by nvcc, or None if unavailable."""
    output = runner.probe([nvcc, "--version"])
    if output is None:
        return None
    major = parse_nvcc_major(output)
    if major is not None:
        logger.info(f"CUDA version detected: {major}")
    return major


def detect_environment(
    runner: CommandRunner,
    proc_version: Path = PROC_VERSION,
    power_supply_dir: Path = POWER_SUPPLY_DIR,
    probes: Sequence[GpuProbe] = DEFAULT_GPU_PROBES,
) -> EnvironmentReport:
    return EnvironmentReport(
        is_wsl=is_wsl(proc_version),
        has_gpu=has_nvidia_gpu(runner, probes),
        host_class=classify_host(runner, power_supply_dir),
        cuda_major=detect_cuda_major(runner),
    )

"""
System dependency installation through apt.
"""

import logging
from typing import Sequence

from .runner import CommandRunner

logger = logging.getLogger(__name__)


def install_system_packages(
    runner: CommandRunner, packages: Sequence[str], upgrade: bool = True
) -> None:
    """Refresh the package index, install packages, optionally upgrade the host."""
    logger.info("Installing system dependencies...")
    runner.run(["apt", "update", "-y"], "Updating package list", privileged=True)
    if packages:
        runner.run(
            ["apt", "install", "-y", *packages],
            f"Installing {len(packages)} system package(s)",
            privileged=True,
            capture_output=False,
        )
    if upgrade:
        runner.run(
            ["apt", "upgrade", "-y"],
            "Upgrading installed packages",
            privileged=True,
            capture_output=False,
        )
        runner.run(["apt", "update"], "Updating package list", privileged=True)

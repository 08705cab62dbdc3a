"""
Provisioning exceptions.
"""

from typing import Any, Dict, Optional, Sequence


class ProvisionError(Exception):
    """Base exception for gaiadeploy. Every subclass is fatal to the run."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class InvalidInputError(ProvisionError):
    """User input rejected before any work is done."""


class CommandError(ProvisionError):
    """External command exited non-zero or could not be started."""

    def __init__(
        self,
        message: str,
        cmd: Sequence[str],
        returncode: Optional[int] = None,
        stderr: Optional[str] = None,
    ):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            message,
            details={"cmd": self.cmd, "returncode": returncode, "stderr": stderr},
        )


class DownloadError(ProvisionError):
    """A file could not be fetched."""

    def __init__(self, message: str, url: str):
        self.url = url
        super().__init__(message, details={"url": url})


class CudaInstallError(ProvisionError):
    """CUDA toolkit installation failed."""


class NodeInstallError(ProvisionError):
    """The external node installer could not be fetched or run."""


class InstanceError(ProvisionError):
    """An instance directory is not in the state the next step needs."""


class NodeCommandError(ProvisionError):
    """A node subcommand (init, start, info) failed."""

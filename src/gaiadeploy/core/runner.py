"""
Subprocess execution with logging.

Every external program the provisioner touches (apt, dpkg, the node installer,
the node binary) goes through a CommandRunner so that commands are logged
before they run and failures surface as CommandError.
"""

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import List, Mapping, MutableMapping, Optional, Sequence, Union

from .exceptions import CommandError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def running_as_root() -> bool:
    return hasattr(os, "geteuid") and os.geteuid() == 0


class CommandRunner:
    """Run commands synchronously, one at a time, with no timeout."""

    def __init__(
        self,
        use_sudo: bool = True,
        environ: Optional[MutableMapping[str, str]] = None,
    ):
        # sudo is pointless (and often missing) when already root
        self.use_sudo = use_sudo and not running_as_root()
        self.environ = os.environ if environ is None else environ

    def which(self, program: str) -> Optional[str]:
        """Locate a program on the runner's PATH."""
        return shutil.which(program, path=self.environ.get("PATH"))

    def _build(self, cmd: Sequence[PathLike], privileged: bool) -> List[str]:
        args = [str(c) for c in cmd]
        if privileged and self.use_sudo:
            args = ["sudo"] + args
        return args

    def run(
        self,
        cmd: Sequence[PathLike],
        description: str,
        check: bool = True,
        privileged: bool = False,
        cwd: Optional[PathLike] = None,
        capture_output: bool = True,
        input: Optional[str] = None,
    ) -> subprocess.CompletedProcess:
        """
        Run a command and wait for it.

        Args:
            cmd: Program and arguments.
            description: Human readable purpose, used in logs and errors.
            check: Raise CommandError on a non-zero exit status.
            privileged: Prefix with sudo when configured to.
            cwd: Working directory for the command.
            capture_output: Capture stdout/stderr instead of streaming them.
            input: Text fed to the command's stdin.

        Returns:
            The completed process.
        """
        args = self._build(cmd, privileged)
        logger.info(description)
        logger.debug(f"Running command: {' '.join(args)}")

        try:
            result = subprocess.run(
                args,
                cwd=None if cwd is None else str(cwd),
                env=dict(self.environ),
                capture_output=capture_output,
                text=True,
                input=input,
            )
        except (FileNotFoundError, PermissionError) as e:
            if check:
                raise CommandError(f"{description} failed: {e}", args) from e
            logger.debug(f"Could not start {args[0]}: {e}")
            return subprocess.CompletedProcess(args, 127, "", str(e))

        if capture_output:
            if result.stdout:
                logger.debug(f"stdout: {result.stdout.strip()}")
            if result.stderr:
                logger.debug(f"stderr: {result.stderr.strip()}")

        if result.returncode != 0 and check:
            logger.error(f"Command failed with return code {result.returncode}")
            raise CommandError(
                f"{description} failed (exit {result.returncode})",
                args,
                returncode=result.returncode,
                stderr=result.stderr if capture_output else None,
            )
        return result

    def probe(self, cmd: Sequence[PathLike]) -> Optional[str]:
        """
        Run a read-only query command and return its stdout.

        Returns None when the program is missing or exits non-zero; probing
        never raises.
        """
        args = [str(c) for c in cmd]
        if self.which(args[0]) is None and not Path(args[0]).is_file():
            return None
        result = self.run(args, f"Probing {args[0]}", check=False)
        if result.returncode != 0:
            return None
        return result.stdout


def prepend_path(environ: MutableMapping[str, str], key: str, entry: PathLike) -> bool:
    """Prepend entry to a colon separated variable unless already present."""
    entry = str(entry)
    current = environ.get(key, "")
    parts = [p for p in current.split(os.pathsep) if p]
    if entry in parts:
        return False
    environ[key] = os.pathsep.join([entry] + parts)
    return True


def path_contains(environ: Mapping[str, str], key: str, entry: PathLike) -> bool:
    return str(entry) in environ.get(key, "").split(os.pathsep)

"""
Shared fixtures: a recording command runner and a fake downloader that stand
in for apt, the node installer and the node binary.
"""

import subprocess
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

from gaiadeploy.core.config_models import ProvisionConfigModel
from gaiadeploy.core.exceptions import CommandError, DownloadError
from gaiadeploy.core.runner import CommandRunner

NVCC_12_OUTPUT = """nvcc: NVIDIA (R) Cuda compiler driver
Copyright (c) 2005-2025 NVIDIA Corporation
Built on Wed_Jan_15_19:20:09_PST_2025
Cuda compilation tools, release 12.8, V12.8.61
Build cuda_12.8.r12.8/compiler.35404655_0
"""


class FakeRunner(CommandRunner):
    """Records commands instead of running them."""

    def __init__(
        self,
        programs: Optional[Dict[str, str]] = None,
        outputs: Optional[Dict[str, str]] = None,
        failures: Optional[List[str]] = None,
        environ: Optional[Dict[str, str]] = None,
    ):
        super().__init__(use_sudo=False, environ=environ or {"PATH": "/usr/bin"})
        self.programs = dict(programs or {})
        self.outputs = dict(outputs or {})
        self.failures = set(failures or ())
        self.hooks: Dict[str, Callable[[List[str], Optional[str]], None]] = {}
        self.calls: List[List[str]] = []
        self.inputs: List[Optional[str]] = []

    def which(self, program):
        return self.programs.get(program)

    @staticmethod
    def keys(args: List[str]) -> List[str]:
        name = Path(args[0]).name
        keys = [name]
        if len(args) > 1:
            keys.insert(0, f"{name} {args[1]}")
        return keys

    def run(
        self,
        cmd,
        description,
        check=True,
        privileged=False,
        cwd=None,
        capture_output=True,
        input=None,
    ):
        args = self._build(cmd, privileged)
        self.calls.append(args)
        self.inputs.append(input)
        keys = self.keys(args)

        for key in keys:
            if key in self.hooks:
                self.hooks[key](args, None if cwd is None else str(cwd))
                break

        failed = any(key in self.failures for key in keys)
        stdout = next((self.outputs[k] for k in keys if k in self.outputs), "")
        if failed and check:
            raise CommandError(f"{description} failed (exit 1)", args, returncode=1)
        return subprocess.CompletedProcess(args, 1 if failed else 0, stdout, "")

    def commands(self, name: str) -> List[List[str]]:
        """Recorded calls whose program basename is name."""
        return [c for c in self.calls if Path(c[0]).name == name]


def fake_installer_hook(binary_name: str = "gaianet"):
    """Simulates install.sh: creates <cwd>/bin/<binary_name>."""

    def hook(args, cwd):
        bin_dir = Path(cwd) / "bin"
        bin_dir.mkdir(parents=True, exist_ok=True)
        (bin_dir / binary_name).write_text("#!/bin/sh\n")

    return hook


class FakeDownloader:
    """Writes placeholder content instead of fetching URLs."""

    def __init__(self, failing_urls=()):
        self.urls: List[str] = []
        self.failing_urls = set(failing_urls)

    def __call__(self, url, dest):
        self.urls.append(url)
        if url in self.failing_urls:
            raise DownloadError("Failed to download: 404 Not Found", url)
        Path(dest).write_text(f"# downloaded from {url}\n")
        return Path(dest)


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def downloader():
    return FakeDownloader()


@pytest.fixture
def home(tmp_path):
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def config(home, tmp_path):
    return ProvisionConfigModel(
        home_dir=home,
        system={"install_dependencies": False},
        cuda={
            "profile_path": str(tmp_path / "profile.d" / "cuda.sh"),
            "download_dir": str(tmp_path / "downloads"),
            "keyring_glob": str(tmp_path / "var" / "cuda-repo-*" / "cuda-*-keyring.gpg"),
        },
    )

"""
Tests for the per-instance node installer.
"""

import os

import pytest

from conftest import NVCC_12_OUTPUT, FakeDownloader, FakeRunner, fake_installer_hook
from gaiadeploy.core.config_models import NodeConfigModel
from gaiadeploy.core.exceptions import InstanceError, NodeInstallError
from gaiadeploy.core.node_installer import NodeInstaller

INSTALLER_URL = (
    "https://github.com/GaiaNet-AI/gaianet-node/releases/download/0.4.20/install.sh"
)


def nvcc_runner(output):
    runner = FakeRunner(
        programs={"nvcc": "/usr/local/cuda/bin/nvcc"},
        outputs={"nvcc --version": output},
    )
    runner.hooks["install.sh"] = fake_installer_hook()
    return runner


@pytest.fixture
def install_dir(tmp_path):
    path = tmp_path / "gaianet1"
    path.mkdir()
    return path


def test_cpu_install(install_dir, downloader):
    runner = FakeRunner()
    runner.hooks["install.sh"] = fake_installer_hook()
    installer = NodeInstaller(runner, NodeConfigModel(), download=downloader)

    assert installer.install(install_dir) is None

    assert downloader.urls == [INSTALLER_URL]
    assert runner.commands("install.sh") == [["./install.sh", "--base", str(install_dir)]]
    assert (install_dir / "bin" / "gaianet").is_file()


def test_installer_is_executable(install_dir, downloader):
    installer = NodeInstaller(FakeRunner(), NodeConfigModel(), download=downloader)
    installer.install(install_dir)
    assert os.access(install_dir / "install.sh", os.X_OK)


def test_cuda_install_passes_ggmlcuda(install_dir, downloader):
    runner = nvcc_runner(NVCC_12_OUTPUT)
    installer = NodeInstaller(runner, NodeConfigModel(), download=downloader)

    assert installer.install(install_dir) == "12"
    assert runner.commands("install.sh") == [
        ["./install.sh", "--ggmlcuda", "12", "--base", str(install_dir)]
    ]


def test_same_release_for_cpu_and_cuda(tmp_path):
    node = NodeConfigModel(version="0.4.21")
    urls = []
    for name, runner in (("cpu", FakeRunner()), ("gpu", nvcc_runner(NVCC_12_OUTPUT))):
        install_dir = tmp_path / name
        install_dir.mkdir()
        downloader = FakeDownloader()
        NodeInstaller(runner, node, download=downloader).install(install_dir)
        urls.extend(downloader.urls)
    assert len(set(urls)) == 1
    assert "/0.4.21/" in urls[0]


def test_unsupported_cuda_falls_back_to_cpu(install_dir, downloader):
    runner = nvcc_runner("Cuda compilation tools, release 10.2, V10.2.89\n")
    installer = NodeInstaller(runner, NodeConfigModel(), download=downloader)

    assert installer.install(install_dir) is None
    assert "--ggmlcuda" not in runner.commands("install.sh")[0]


def test_missing_directory(tmp_path, downloader):
    installer = NodeInstaller(FakeRunner(), NodeConfigModel(), download=downloader)
    with pytest.raises(InstanceError):
        installer.install(tmp_path / "missing")
    assert downloader.urls == []


def test_download_failure(install_dir):
    runner = FakeRunner()
    downloader = FakeDownloader(failing_urls=[INSTALLER_URL])
    installer = NodeInstaller(runner, NodeConfigModel(), download=downloader)

    with pytest.raises(NodeInstallError, match="Failed to download install.sh"):
        installer.install(install_dir)
    assert runner.commands("install.sh") == []


def test_installer_failure(install_dir, downloader):
    runner = FakeRunner(failures=["install.sh"])
    installer = NodeInstaller(runner, NodeConfigModel(), download=downloader)

    with pytest.raises(NodeInstallError, match="without GPU failed"):
        installer.install(install_dir)

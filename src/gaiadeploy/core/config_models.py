"""
Pydantic configuration models for gaiadeploy.

This module provides Pydantic BaseModel classes for configuration validation,
type checking, and automatic serialization/deserialization of the
provisioning settings.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from .config import (
    CPU_CONFIG_URL,
    CUDA_REPOS,
    DEFAULT_PACKAGES,
    GPU_DESKTOP_CONFIG_URL,
    GPU_LAPTOP_CONFIG_URL,
    MAX_INSTANCES,
    NODE_DOMAIN,
    NODE_INSTALLER_URL,
    NODE_VERSION,
)

logger = logging.getLogger(__name__)

HOME_ENV_VAR = "GAIADEPLOY_HOME"


def default_home() -> Path:
    """Home directory instances are created under."""
    override = os.getenv(HOME_ENV_VAR)
    return Path(override).expanduser() if override else Path.home()


class NodeConfigModel(BaseModel):
    """External node release and per-instance naming."""

    version: str = Field(default=NODE_VERSION, description="Node release tag")
    installer_url: str = Field(
        default=NODE_INSTALLER_URL,
        description="Installer URL template, {version} is substituted",
    )
    binary_name: str = Field(default="gaianet", description="Binary under <dir>/bin")
    dir_prefix: str = Field(
        default="gaianet", description="Instance directory name prefix"
    )
    port_prefix: str = Field(
        default="809", description="Port prefix, the instance index is appended"
    )
    domain: str = Field(default=NODE_DOMAIN, description="Node domain")
    supported_cuda_majors: List[str] = Field(
        default_factory=lambda: ["11", "12"],
        description="CUDA major versions the installer has GPU builds for",
    )

    @field_validator("port_prefix")
    @classmethod
    def validate_port_prefix(cls, v: str) -> str:
        if not v.isdigit():
            raise ValueError(f"Port prefix must be digits, got {v!r}")
        if int(f"{v}{MAX_INSTANCES}") > 65535:
            raise ValueError(f"Port prefix {v} yields ports above 65535")
        return v

    def installer_url_for(self) -> str:
        return self.installer_url.format(version=self.version)


class ConfigUrlsModel(BaseModel):
    """Remote node configs, one per hardware profile."""

    gpu_laptop: str = Field(default=GPU_LAPTOP_CONFIG_URL)
    cpu: str = Field(default=CPU_CONFIG_URL)
    gpu_desktop: str = Field(default=GPU_DESKTOP_CONFIG_URL)


class SystemConfigModel(BaseModel):
    """Host level package installation."""

    install_dependencies: bool = Field(default=True)
    upgrade: bool = Field(default=True, description="Run apt upgrade after install")
    packages: List[str] = Field(default_factory=lambda: list(DEFAULT_PACKAGES))
    use_sudo: bool = Field(default=True, description="Prefix privileged commands")
    shell_rc: Optional[str] = Field(
        default=None, description="Shell startup file, defaults to <home>/.bashrc"
    )


class CudaConfigModel(BaseModel):
    """CUDA toolkit installation settings."""

    enabled: bool = Field(default=True, description="Install the toolkit if missing")
    version: str = Field(default="12.8")
    profile_path: str = Field(default="/etc/profile.d/cuda.sh")
    download_dir: str = Field(default=".", description="Where pin/deb files land")
    pin_destination: str = Field(
        default="/etc/apt/preferences.d/cuda-repository-pin-600"
    )
    keyring_glob: str = Field(default="/var/cuda-repo-*/cuda-*-keyring.gpg")
    keyring_dir: str = Field(default="/usr/share/keyrings/")

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        if v not in CUDA_REPOS:
            raise ValueError(
                f"Unsupported CUDA version {v}, expected one of {sorted(CUDA_REPOS)}"
            )
        return v


class LoggingConfigModel(BaseModel):
    verbose: bool = Field(default=False)
    log_file: Optional[str] = Field(default=None)


class ProvisionConfigModel(BaseModel):
    """Complete provisioning configuration."""

    home_dir: Path = Field(default_factory=default_home)
    instances: Optional[int] = Field(
        default=None,
        ge=1,
        le=MAX_INSTANCES,
        description="Number of instances, prompted for when unset",
    )
    node: NodeConfigModel = Field(default_factory=NodeConfigModel)
    configs: ConfigUrlsModel = Field(default_factory=ConfigUrlsModel)
    system: SystemConfigModel = Field(default_factory=SystemConfigModel)
    cuda: CudaConfigModel = Field(default_factory=CudaConfigModel)
    logging: LoggingConfigModel = Field(default_factory=LoggingConfigModel)

    @field_validator("home_dir")
    @classmethod
    def expand_home(cls, v: Path) -> Path:
        return Path(v).expanduser()

    @property
    def shell_rc_path(self) -> Path:
        if self.system.shell_rc:
            return Path(self.system.shell_rc).expanduser()
        return self.home_dir / ".bashrc"

    def instance_dir(self, index: int) -> Path:
        return self.home_dir / f"{self.node.dir_prefix}{index}"

    @classmethod
    def from_yaml(cls, path: str) -> "ProvisionConfigModel":
        """Load configuration from YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        if data is None:
            raise ValueError("YAML file is empty or invalid")
        return cls(**data)

    def to_yaml(self, path: str) -> None:
        """Save configuration to YAML file."""
        with open(path, "w") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False)


def create_default_config() -> ProvisionConfigModel:
    return ProvisionConfigModel()


def validate_config_dict(config_dict: Dict[str, Any]) -> ProvisionConfigModel:
    """Validate a plain dictionary into a ProvisionConfigModel."""
    try:
        return ProvisionConfigModel(**config_dict)
    except Exception as e:
        logger.error(f"Configuration validation failed: {e}")
        raise

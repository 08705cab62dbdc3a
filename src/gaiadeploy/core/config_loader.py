"""
Configuration loader for gaiadeploy CLI commands using OmegaConf and Pydantic.

This module provides utilities for loading YAML configuration files,
merging with command-line overrides, and providing sensible defaults
with Pydantic validation.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from omegaconf import DictConfig, ListConfig, OmegaConf
from omegaconf.errors import OmegaConfBaseException

from .config import ROOT
from .config_models import (
    ProvisionConfigModel,
    create_default_config,
    validate_config_dict,
)
from .exceptions import InvalidInputError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = ROOT / "config" / "provision.yaml"


class ConfigLoader:
    """Load and merge provisioning configuration using OmegaConf."""

    def __init__(self, default_config_path: Path = DEFAULT_CONFIG_PATH):
        self.default_config_path = Path(default_config_path)

    def load_config(
        self,
        config_path: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> Union[DictConfig, ListConfig]:
        """
        Load the provisioning configuration.

        Args:
            config_path: Optional path to custom config file
            overrides: Optional CLI overrides to merge

        Returns:
            OmegaConf DictConfig with merged configuration
        """
        base_config = self._load_base_config(config_path)

        if overrides:
            base_config = self._merge_overrides(base_config, overrides)

        return base_config

    def _load_base_config(
        self, config_path: Optional[str] = None
    ) -> Union[DictConfig, ListConfig]:
        """Load base configuration with fallback chain."""

        # 1. User-specified config file
        if config_path:
            if not Path(config_path).exists():
                raise InvalidInputError(f"Config file not found: {config_path}")
            logger.info(f"Loading user-specified config: {config_path}")
            return _load_yaml(config_path)

        # 2. Repository default
        if self.default_config_path.exists():
            logger.debug(f"Loading default config: {self.default_config_path}")
            return _load_yaml(self.default_config_path)

        # 3. Built-in defaults
        logger.debug("Using built-in defaults")
        return OmegaConf.create({})

    def _merge_overrides(
        self, base_config: Union[DictConfig, ListConfig], overrides: Dict[str, Any]
    ) -> Union[DictConfig, ListConfig]:
        """Merge CLI overrides with base configuration, dropping unset values."""
        cleaned = _drop_none(overrides)
        if not cleaned:
            return base_config
        try:
            return OmegaConf.merge(base_config, OmegaConf.create(cleaned))
        except OmegaConfBaseException as e:
            raise InvalidInputError(f"Invalid configuration: {e}") from e

    def load_config_with_pydantic(
        self,
        config_path: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> ProvisionConfigModel:
        """Load configuration and validate it into a ProvisionConfigModel."""
        config = self.load_config(config_path, overrides)
        try:
            config_dict = OmegaConf.to_container(config, resolve=True) or {}
        except OmegaConfBaseException as e:
            raise InvalidInputError(f"Invalid configuration: {e}") from e
        if not isinstance(config_dict, dict):
            raise InvalidInputError(
                "Invalid configuration: expected a mapping at the top level"
            )
        try:
            return validate_config_dict(config_dict)
        except ValueError as e:
            raise InvalidInputError(f"Invalid configuration: {e}") from e

    def save_config_model(
        self, config_model: ProvisionConfigModel, output_path: str
    ) -> str:
        """Save a Pydantic config model to YAML file."""
        config = OmegaConf.create(config_model.model_dump(mode="json"))
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        OmegaConf.save(config, output_path)
        logger.info(f"Saved configuration to {output_path}")
        return output_path

    def create_pydantic_default_config(self, output_path: str) -> str:
        """Create a default configuration file using Pydantic models."""
        return self.save_config_model(create_default_config(), output_path)


def _load_yaml(path: Union[str, Path]) -> Union[DictConfig, ListConfig]:
    try:
        return OmegaConf.load(path)
    except (yaml.YAMLError, OmegaConfBaseException) as e:
        raise InvalidInputError(f"Failed to parse config file {path}: {e}") from e


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    cleaned = {}
    for key, value in data.items():
        if isinstance(value, dict):
            value = _drop_none(value)
            if not value:
                continue
        elif value is None:
            continue
        elif isinstance(value, Path):
            value = str(value)
        cleaned[key] = value
    return cleaned


# Global config loader instance
config_loader = ConfigLoader()


def load_config_with_pydantic(
    config_path: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> ProvisionConfigModel:
    """Load configuration with Pydantic validation."""
    return config_loader.load_config_with_pydantic(config_path, overrides)


def create_pydantic_default_config(output_path: str) -> str:
    """Create a default configuration file using Pydantic models."""
    return config_loader.create_pydantic_default_config(output_path)

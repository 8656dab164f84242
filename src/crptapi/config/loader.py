# SPDX-License-Identifier: Apache-2.0
"""Centralized configuration loader with version validation."""

from __future__ import annotations

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError

from crptapi.errors import ConfigurationError

from .settings import CURRENT_CONFIG_VERSION, MIN_SUPPORTED_VERSION, CrptSettings

PathLike = Union[str, Path]


class ConfigVersionError(ConfigurationError):
    """Error when configuration version is incompatible."""

    pass


def load_config(path: Optional[PathLike] = None) -> CrptSettings:
    """Load settings from a YAML file layered over the environment.

    Values in the file win over ``CRPT_*`` environment variables. Without a
    path, settings come from the environment (and ``.env``) only.

    Args:
        path: Path to YAML configuration file

    Returns:
        CrptSettings instance

    Raises:
        ConfigVersionError: If config version is missing or too old
        FileNotFoundError: If the YAML file doesn't exist
        ConfigurationError: If the YAML is invalid or contains invalid settings
    """
    if path is None:
        return _build_settings({})

    yaml_path = Path(path)
    if not yaml_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    try:
        with open(yaml_path, "r", encoding="utf-8") as f:
            yaml_content = f.read()

        # Expand environment variables
        cfg_dict = yaml.safe_load(os.path.expandvars(yaml_content))
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}") from e

    if not isinstance(cfg_dict, dict):
        raise ConfigurationError("YAML file must contain a dictionary at the root level")

    normalized_data = _normalize_yaml_keys(cfg_dict)

    ver = str(normalized_data.get("config_version", ""))
    if not ver:
        raise ConfigVersionError(
            'config_version missing. Add `config_version: "1"` to your YAML.'
        )

    if ver < MIN_SUPPORTED_VERSION:
        raise ConfigVersionError(
            f"Config version {ver} is too old. "
            f"Minimum supported is {MIN_SUPPORTED_VERSION}. "
            "Please upgrade your configuration."
        )

    if ver > CURRENT_CONFIG_VERSION:
        warnings.warn(
            f"This client understands config_version {CURRENT_CONFIG_VERSION}, "
            f"but file is {ver}. Attempting best-effort parse.",
            UserWarning,
            stacklevel=2,
        )
        normalized_data["config_version"] = CURRENT_CONFIG_VERSION

    return _build_settings(normalized_data)


def _build_settings(data: Dict[str, Any]) -> CrptSettings:
    try:
        return CrptSettings(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def _normalize_yaml_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    """Normalize YAML keys from kebab-case to snake_case."""
    return {str(key).replace("-", "_"): value for key, value in data.items()}

# SPDX-License-Identifier: Apache-2.0
"""Configuration management for crptapi."""

from .loader import ConfigVersionError, load_config
from .settings import CURRENT_CONFIG_VERSION, MIN_SUPPORTED_VERSION, CrptSettings

__all__ = [
    "CrptSettings",
    "CURRENT_CONFIG_VERSION",
    "MIN_SUPPORTED_VERSION",
    "load_config",
    "ConfigVersionError",
]

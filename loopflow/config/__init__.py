"""
Configuration management for loopflow

This module provides configuration loading, validation, and management
for the loop community analysis.
"""

from .config import (COUNT_MODES, Config, get_default_config, load_config,
                     save_config, validate_config)

__all__ = [
    "Config",
    "COUNT_MODES",
    "load_config",
    "save_config",
    "validate_config",
    "get_default_config",
]

# Fusion Pipeline Utilities
"""Common utilities for the fusion support pipeline."""

from .config_parser import load_config, get_nested, validate_config

__all__ = ["load_config", "get_nested", "validate_config"]

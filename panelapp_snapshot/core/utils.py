"""
Utility functions for the panelapp-snapshot tool.

This module provides common utility functions used across the application.
"""

from importlib import metadata
from typing import Any

from .exceptions import DependencyError

# Distributions the pipeline needs at runtime (index names, not import names)
REQUIRED_DISTRIBUTIONS = ("requests", "pandas", "PyYAML")


def check_dependencies(
    distributions: tuple[str, ...] = REQUIRED_DISTRIBUTIONS,
) -> dict[str, str]:
    """
    Verify that the required distributions are installed.

    Args:
        distributions: Distribution names as published on the package index

    Returns:
        Mapping of distribution name to installed version

    Raises:
        DependencyError: If any distribution is missing
    """
    versions = {}
    missing = []
    for name in distributions:
        try:
            versions[name] = metadata.version(name)
        except metadata.PackageNotFoundError:
            missing.append(name)

    if missing:
        raise DependencyError(f"Required package not found: {', '.join(missing)}")
    return versions


def flatten_config(config: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    """
    Flatten a nested configuration into dotted keys.

    Example:
        {"panelapp": {"timeout": 60}} -> {"panelapp.timeout": 60}
    """
    flat: dict[str, Any] = {}
    for key, value in config.items():
        dotted = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict):
            flat.update(flatten_config(value, dotted))
        else:
            flat[dotted] = value
    return flat

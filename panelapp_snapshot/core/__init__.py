"""Core utilities for the panelapp-snapshot package."""

from .config_manager import ConfigManager
from .http_client import PanelAppHTTPClient

__all__ = ["ConfigManager", "PanelAppHTTPClient"]

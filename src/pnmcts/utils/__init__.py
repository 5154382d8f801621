"""Shared utilities for pnmcts."""

from pnmcts.utils.config import Settings, load_config, load_settings, save_config
from pnmcts.utils.logging import setup_logging

__all__ = ["Settings", "load_config", "load_settings", "save_config", "setup_logging"]

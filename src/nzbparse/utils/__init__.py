"""Utility modules for nzbparse."""

from .config import Config, load_config, save_config

__all__ = ["Config", "load_config", "save_config"]

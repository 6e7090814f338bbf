"""Configuration module for thinkly."""

from thinkly.config.loader import get_config_path, load_config
from thinkly.config.schema import Config

__all__ = ["Config", "load_config", "get_config_path"]

"""Configuration management for spexrun."""

from spexrun.config.settings import DEFAULT_CONFIG_FILE, SpexSettings, load_config

__all__ = ["DEFAULT_CONFIG_FILE", "SpexSettings", "load_config"]

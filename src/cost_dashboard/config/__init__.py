"""Configuration for the cloud cost dashboard."""

from .settings import ConfigurationError, DashboardConfig, get_config, reload_config

__all__ = ["ConfigurationError", "DashboardConfig", "get_config", "reload_config"]

"""
Configuration management for the cloud cost dashboard.

Uses dynaconf for flexible configuration with YAML files and environment overrides.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional
from urllib.parse import urlsplit, urlunsplit

from dynaconf import Dynaconf, Validator

logger = logging.getLogger(__name__)

# Packaged defaults live beside this module, local overrides at the project root
PACKAGE_CONFIG = Path(__file__).parent / "config.yaml"
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent

_PUSH_SCHEMES = {"http": "ws", "https": "wss"}


class ConfigurationError(Exception):
    """Configuration-related errors."""

    pass


def _build_settings(extra_files: Iterable[str] = ()) -> Dynaconf:
    return Dynaconf(
        envvar_prefix="CLOUDCOST",
        settings_files=[
            str(PACKAGE_CONFIG),  # Base configuration
            str(PROJECT_ROOT / "config.local.yaml"),  # Local overrides (git-ignored)
            str(PROJECT_ROOT / ".secrets.yaml"),  # Secrets file (git-ignored)
            *extra_files,
        ],
        environments=False,
        load_dotenv=True,
        merge_enabled=True,
        envvar_separator="__",  # Support nested config via CLOUDCOST_API__BASE_URL=...
        validators=[
            Validator("api.base_url", must_exist=True),
            Validator("api.timeout", gt=0),
            Validator("push.path", must_exist=True),
            Validator("push.reconnect.max_attempts", gte=0),
            Validator("push.reconnect.initial_delay", gt=0),
        ],
    )


settings = _build_settings()


class DashboardConfig:
    """Configuration wrapper for the dashboard session."""

    def __init__(self, settings_obj: Optional[Dynaconf] = None):
        self.settings = settings_obj if settings_obj is not None else settings
        self._validate_config()

    @classmethod
    def from_overrides(cls, overrides: Dict[str, Any]) -> "DashboardConfig":
        """Build a standalone configuration from the defaults plus dotted-key overrides."""
        instance = _build_settings()
        for key, value in overrides.items():
            instance.set(key, value)
        return cls(instance)

    def _validate_config(self):
        """Validate the configuration on initialization."""
        try:
            self.settings.validators.validate()
        except Exception as e:
            logger.warning(f"Configuration validation warning: {e}")

        reconnect = self.reconnect
        initial_delay = float(reconnect.get("initial_delay", 1.0))
        if float(reconnect.get("max_delay", initial_delay)) < initial_delay:
            logger.warning(
                "push.reconnect.max_delay is lower than initial_delay, using initial_delay as the cap"
            )

    @property
    def api(self) -> Dict[str, Any]:
        """Backend API settings."""
        return self.settings.get("api", {})

    @property
    def push(self) -> Dict[str, Any]:
        """Push channel settings."""
        return self.settings.get("push", {})

    @property
    def reconnect(self) -> Dict[str, Any]:
        """Push channel reconnection policy."""
        return self.push.get("reconnect", {}) or {}

    @property
    def store(self) -> Dict[str, Any]:
        """View model store settings."""
        return self.settings.get("store", {})

    @property
    def edit(self) -> Dict[str, Any]:
        """Edit buffer settings."""
        return self.settings.get("edit", {})

    @property
    def log_level(self) -> str:
        return str(self.settings.get("logging.level", "INFO")).upper()

    @property
    def base_url(self) -> str:
        return str(self.api.get("base_url", "http://127.0.0.1:8000")).rstrip("/")

    @property
    def timeout(self) -> float:
        return float(self.api.get("timeout", 30))

    @property
    def sequence_updates(self) -> bool:
        return bool(self.store.get("sequence_updates", False))

    @property
    def sync_on_commit(self) -> bool:
        return bool(self.edit.get("sync_on_commit", True))

    @property
    def push_url(self) -> str:
        """Push channel URL derived from the API base URL."""
        parts = urlsplit(self.base_url)
        scheme = _PUSH_SCHEMES.get(parts.scheme)
        if scheme is None:
            raise ConfigurationError(
                f"Cannot derive a push channel URL from base URL {self.base_url!r}"
            )
        path = parts.path.rstrip("/") + "/" + str(self.push.get("path", "/ws")).lstrip("/")
        return urlunsplit((scheme, parts.netloc, path, "", ""))

    def override_from_cli(self, cli_args: Dict[str, Any]):
        """Override configuration with CLI arguments."""
        cli_mapping = {
            "base_url": "api.base_url",
            "timeout": "api.timeout",
            "reconnect": "push.reconnect.enabled",
            "sequence_updates": "store.sequence_updates",
            "log_level": "logging.level",
        }

        for cli_key, config_path in cli_mapping.items():
            if cli_args.get(cli_key) is not None:
                self.settings.set(config_path, cli_args[cli_key])

        self._validate_config()


# Global configuration instance
config = DashboardConfig()


def get_config() -> DashboardConfig:
    """Get the global configuration instance."""
    return config


def reload_config(config_file: Optional[str] = None) -> DashboardConfig:
    """Reload configuration from files, optionally layering an extra YAML file on top."""
    global settings, config
    settings = _build_settings([config_file] if config_file else [])
    config = DashboardConfig(settings)
    return config

"""
Configuration loader for broker.yml.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

import yaml

from vdi_broker.config.models import BrokerSettings
from vdi_broker.config.settings import get_env

logger = logging.getLogger("vdi-broker")


def config_path() -> Path:
    """Directory holding broker.yml (``CONFIG_PATH``)."""
    return Path(get_env("config_path", "/data/config") or "/data/config")


def broker_config_file() -> Path:
    return config_path() / "broker.yml"


class BrokerConfig:
    """Manages broker configuration from YAML file."""

    _lock = threading.Lock()
    _config: dict = {}
    _typed_config: BrokerSettings | None = None

    @classmethod
    def load(cls) -> dict:
        """Load broker configuration from YAML file (once per process)."""
        if cls._config:
            return cls._config

        with cls._lock:
            # Double-check after acquiring the lock
            if cls._config:
                return cls._config
            return cls._load_locked()

    @classmethod
    def _load_locked(cls) -> dict:
        """Load config while holding ``_lock``. Called from :meth:`load`."""
        # Default configuration
        defaults = {
            "pool": {"prefix": "VDI", "size": 9},
            "accounts": {
                "seed_defaults": True,
                "defaults": [
                    {"username": "madhav", "password": "madhav123"},
                    {"username": "tinaga", "password": "tinaga123"},
                ],
            },
            "session": {
                "cookie_name": "vdi.sid",
                "lifetime_hours": 24,
                "secure_cookie": False,
            },
            "notifications": {"sweep_interval": 30},
            "security": {
                "rate_limiting": {
                    "enabled": True,
                    "default_limit": "200/minute",
                    "auth_limit": "10/minute",
                }
            },
            "metrics": {"enabled": True},
            "logging": {"level": "INFO"},
        }

        config_file = broker_config_file()
        if not config_file.exists():
            logger.info(f"Broker config not found, using defaults: {config_file}")
            cls._config = defaults
            cls._typed_config = BrokerSettings.model_validate(cls._config)
            return cls._config

        try:
            with open(config_file, "r") as f:
                file_config = yaml.safe_load(f) or {}

            # Deep merge with defaults
            cls._config = cls._deep_merge(defaults, file_config)
            logger.info(f"Loaded broker config from {config_file}")
        except Exception as e:
            logger.error(f"Error loading broker config: {e}")
            cls._config = defaults

        cls._typed_config = BrokerSettings.model_validate(cls._config)
        return cls._config

    @classmethod
    def _deep_merge(cls, base: dict, override: dict) -> dict:
        """Deep merge two dictionaries."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = cls._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    @classmethod
    def get(cls, *keys: str, default: object = None) -> object:
        """Get a nested config value using multiple keys."""
        config = cls.load()
        for key in keys:
            if isinstance(config, dict) and key in config:
                config = config[key]
            else:
                return default
        return config

    @classmethod
    def settings(cls) -> BrokerSettings:
        """Get typed configuration as a BrokerSettings instance."""
        if cls._typed_config is None:
            cls.load()
        assert cls._typed_config is not None
        return cls._typed_config

    @classmethod
    def reload(cls) -> None:
        """Drop the cached configuration so the next access re-reads the file."""
        with cls._lock:
            cls._config = {}
            cls._typed_config = None

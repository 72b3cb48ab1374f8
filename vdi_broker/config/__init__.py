"""Configuration module for the VDI Broker."""

from vdi_broker.config.settings import (
    VDI_ID_PATTERN,
    USERNAME_PATTERN,
    MAX_USERNAME_LENGTH,
    MIN_PASSWORD_LENGTH,
    MAX_PASSWORD_LENGTH,
    get_env,
)
from vdi_broker.config.models import BrokerSettings
from vdi_broker.config.loader import BrokerConfig, broker_config_file, config_path

__all__ = [
    "VDI_ID_PATTERN",
    "USERNAME_PATTERN",
    "MAX_USERNAME_LENGTH",
    "MIN_PASSWORD_LENGTH",
    "MAX_PASSWORD_LENGTH",
    "get_env",
    "BrokerSettings",
    "BrokerConfig",
    "broker_config_file",
    "config_path",
]

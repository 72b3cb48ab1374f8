"""
Pydantic models for broker configuration.

Mirrors the defaults dict in loader.py, providing typed access
to all broker.yml settings via BrokerConfig.settings().
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vdi_broker.config.settings import VDI_ID_PATTERN, VDI_NUMBER_WIDTH


class PoolConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    prefix: str = "VDI"
    size: int = Field(default=9, ge=1)

    @field_validator("prefix")
    @classmethod
    def check_prefix(cls, value: str) -> str:
        if not VDI_ID_PATTERN.match(f"{value}{1:0{VDI_NUMBER_WIDTH}d}"):
            raise ValueError("pool prefix must contain letters only")
        return value


class SeedAccount(BaseModel):
    model_config = ConfigDict(extra="ignore")

    username: str
    password: str


class AccountsConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    seed_defaults: bool = True
    defaults: list[SeedAccount] = [
        SeedAccount(username="madhav", password="madhav123"),
        SeedAccount(username="tinaga", password="tinaga123"),
    ]


class SessionConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    cookie_name: str = "vdi.sid"
    lifetime_hours: int = 24
    secure_cookie: bool = False


class NotificationsConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    sweep_interval: int = 30


class RateLimitingConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    enabled: bool = True
    default_limit: str = "200/minute"
    auth_limit: str = "10/minute"


class SecurityConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    rate_limiting: RateLimitingConfig = RateLimitingConfig()


class MetricsConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    enabled: bool = True


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    level: str = "INFO"


class BrokerSettings(BaseModel):
    """Root settings model mirroring broker.yml structure."""

    model_config = ConfigDict(extra="ignore")

    pool: PoolConfig = PoolConfig()
    accounts: AccountsConfig = AccountsConfig()
    session: SessionConfig = SessionConfig()
    notifications: NotificationsConfig = NotificationsConfig()
    security: SecurityConfig = SecurityConfig()
    metrics: MetricsConfig = MetricsConfig()
    logging: LoggingConfig = LoggingConfig()

    def vdi_ids(self) -> list[str]:
        """Identifiers of the fixed VDI pool, in creation order."""
        return [
            f"{self.pool.prefix}{i:0{VDI_NUMBER_WIDTH}d}"
            for i in range(1, self.pool.size + 1)
        ]

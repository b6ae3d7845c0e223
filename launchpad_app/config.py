"""
Runtime settings, read from `LAUNCHPAD_*` environment variables (or `.env`).

    LAUNCHPAD_HOST / LAUNCHPAD_PORT          bind address for `run()`
    LAUNCHPAD_LOG_LEVEL                      DEBUG | INFO | WARNING | ERROR
    LAUNCHPAD_CORS_ALLOW_ORIGINS             JSON list of origins
    LAUNCHPAD_OWNER_USERNAME                 factory owner login name
    LAUNCHPAD_OWNER_PASSWORD_HASH            hex PBKDF2-HMAC-SHA256 of the owner password
    LAUNCHPAD_OWNER_SALT                     salt used for the hash
    LAUNCHPAD_PLATFORM_FEE_RECIPIENT         account credited with platform fees
    LAUNCHPAD_DEFAULT_CREATOR_FEE_BPS        0.5% by default
    LAUNCHPAD_DEFAULT_PLATFORM_FEE_BPS       1% by default

Owner login is disabled until both the password hash and the salt are set.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from launchpad_app.schemas import BPS_DENOMINATOR


class Settings(BaseSettings):
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"
    cors_allow_origins: List[str] = Field(
        default_factory=lambda: ["http://127.0.0.1:8000", "http://localhost:8000"]
    )

    # ── Factory owner credentials (only the hash is configured, never the password) ──
    owner_username: str = "admin"
    owner_password_hash: Optional[str] = None
    owner_salt: Optional[str] = None
    password_iterations: int = 600_000
    session_ttl_seconds: int = 86_400

    # ── Factory defaults ──
    platform_fee_recipient: str = "platform-treasury"
    default_creator_fee_bps: int = 50
    default_platform_fee_bps: int = 100
    venue_name: str = "dex"

    model_config = SettingsConfigDict(
        env_prefix="LAUNCHPAD_", env_file=".env", case_sensitive=False, extra="ignore"
    )

    @field_validator("log_level")
    @classmethod
    def valid_log_level(cls, v):
        vv = str(v).upper().strip()
        if vv not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("log_level must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL")
        return vv

    @field_validator("default_creator_fee_bps", "default_platform_fee_bps")
    @classmethod
    def bps_range(cls, v, info):
        if v < 0 or v > BPS_DENOMINATOR:
            raise ValueError(f"{info.field_name} must be between 0 and {BPS_DENOMINATOR}")
        return v

    @model_validator(mode="after")
    def fee_sum(self):
        if self.default_creator_fee_bps + self.default_platform_fee_bps > BPS_DENOMINATOR:
            raise ValueError(f"default fees must sum to <= {BPS_DENOMINATOR} bps")
        return self

    @property
    def owner_login_enabled(self) -> bool:
        return bool(self.owner_password_hash and self.owner_salt)


@lru_cache
def get_settings() -> Settings:
    return Settings()

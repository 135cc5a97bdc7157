# -*- coding: utf-8 -*-
"""Configuration loaded from environment via Pydantic Settings.

Nested env vars use <section>__<key>, e.g. MIRROR__ENVIRONMENT, CONTENT_STORE__URL.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """General application configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    app_name: str = "secure-trade-indexer"
    service_name: Optional[str] = None
    service_version: Optional[str] = None
    environment: Literal["development", "test", "production"] = "development"


class LoggingSettings(BaseSettings):
    """Structured logging configuration for structlog/stdlib/Logfire."""

    model_config = SettingsConfigDict(extra="ignore")

    console_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    file_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # Silences non-error console output (cron runs). Accepts 0/1/true/false.
    suppress_logs: bool = False

    log_to_console: bool = True
    # One JSON file per UTC day, one line per pass event
    log_to_file: bool = False
    log_file_path: str = "logs/secure_trade_indexer.log"
    log_file_backup_days: int = Field(default=14, ge=0)

    # Main output format: JSONRenderer if True, ConsoleRenderer if False
    json_format: bool = False

    # Logfire integration via structlog
    logfire_enabled: bool = False
    logfire_token: Optional[str] = None


class MirrorSettings(BaseSettings):
    """Ledger mirror node access (from env MIRROR__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    # Raw string so an unknown value reaches the indexer's validation instead of
    # failing settings construction; allowed: mainnet, testnet, previewnet, local.
    environment: Optional[str] = Field(
        default=None,
        description="Ledger environment selecting the mirror base URL.",
    )
    operator_account: str = Field(
        default="0.0.888",
        description="Operator account id, attributed in logs. No write authority.",
    )
    base_url: Optional[str] = Field(
        default=None,
        description="Override for the mirror base URL (private mirrors).",
    )
    timeout_seconds: float = Field(
        default=15.0,
        ge=1.0,
        le=120.0,
        description="HTTP request timeout in seconds.",
    )
    max_retries: int = Field(
        default=1,
        ge=1,
        le=20,
        description="Attempts per mirror request. Pass-level retries live in the indexer.",
    )


class ContentStoreSettings(BaseSettings):
    """Directus content store (from env CONTENT_STORE__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    url: Optional[str] = Field(default=None, description="Directus base URL.")
    token: Optional[str] = Field(default=None, description="Directus static bearer token.")
    events_collection: str = Field(
        default="secureTradeEvents",
        description="Collection holding one watermark row per (contract, environment).",
    )
    cache_collection: str = Field(
        default="SecureTradesCache",
        description="Collection holding one row per indexed trade.",
    )
    timeout_seconds: float = Field(default=30.0, ge=1.0, le=300.0)
    max_retries: int = Field(default=4, ge=1, le=20)


class ScannerSettings(BaseSettings):
    """Scan pass behaviour (from env SCANNER__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    contract_address: Optional[str] = Field(
        default=None,
        description="Secure-trade contract id (0.0.N); the CLI argument takes precedence.",
    )
    batch_size: int = Field(default=100, ge=1, le=1000)
    max_pass_attempts: int = Field(default=3, ge=1, le=20)
    pass_retry_backoff_seconds: float = Field(default=2.0, ge=0.0, le=300.0)
    pass_deadline_seconds: Optional[float] = Field(
        default=None,
        gt=0.0,
        description="Abort a pass (without advancing the watermark) after this many seconds.",
    )
    resolver_max_attempts: int = Field(default=8, ge=1, le=50)
    resolver_min_backoff_seconds: float = Field(default=0.5, ge=0.0, le=60.0)
    resolver_max_backoff_seconds: float = Field(default=3.0, ge=0.0, le=120.0)
    address_cache_maxsize: int = Field(default=50_000, ge=1)
    address_cache_ttl_seconds: float = Field(default=6 * 3600.0, gt=0.0)
    log_trades: bool = Field(
        default=False,
        description="Emit one debug line per trade written to the cache.",
    )


class Settings(BaseSettings):
    """Root application configuration.

    Groups all sub-configurations so the rest of the code does not
    read environment variables directly. Nested overrides use
    <section>__<key>, e.g. LOGGING__CONSOLE_LEVEL, MIRROR__ENVIRONMENT.
    """

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    app: AppSettings = Field(default_factory=AppSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    mirror: MirrorSettings = Field(default_factory=MirrorSettings)
    content_store: ContentStoreSettings = Field(default_factory=ContentStoreSettings)
    scanner: ScannerSettings = Field(default_factory=ScannerSettings)

    @classmethod
    def from_env(cls, **overrides: Any) -> Settings:
        """Build settings from environment (and .env), with optional overrides.

        Nested overrides can be passed as nested dicts, e.g.:
        - from_env(mirror={"environment": "testnet"})

        Returns:
            A new Settings instance.
        """
        return cls(**overrides)


@lru_cache
def get_settings() -> Settings:
    """Return a single cached instance of Settings.

    Typical usage:

        from secure_trade_indexer.config import get_settings

        settings = get_settings()
        environment = settings.mirror.environment
        batch_size = settings.scanner.batch_size
    """
    return Settings()

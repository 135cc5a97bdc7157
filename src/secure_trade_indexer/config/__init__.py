"""Configuration subpackage."""

from secure_trade_indexer.config.config import (
    AppSettings,
    ContentStoreSettings,
    LoggingSettings,
    MirrorSettings,
    ScannerSettings,
    Settings,
    get_settings,
)

__all__ = [
    "AppSettings",
    "ContentStoreSettings",
    "LoggingSettings",
    "MirrorSettings",
    "ScannerSettings",
    "Settings",
    "get_settings",
]

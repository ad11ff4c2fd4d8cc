"""
Core module initialization.
Exports configuration and logging utilities.
"""

from orderbot.core.config import (
    get_settings,
    setup_logging,
    Settings,
    EnvironmentMode,
    PaymentProvider,
)

__all__ = [
    "get_settings",
    "setup_logging",
    "Settings",
    "EnvironmentMode",
    "PaymentProvider",
]

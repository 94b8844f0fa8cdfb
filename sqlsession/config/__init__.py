"""
Configuration package.

Exports the singleton settings instance for easy importing.

Usage:
    from sqlsession.config import settings

    print(settings.driver)
"""

from sqlsession.config.settings import Settings, settings, get_settings, print_settings

__all__ = [
    "Settings",
    "settings",
    "get_settings",
    "print_settings",
]

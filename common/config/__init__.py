"""
Configuration module - Frozen settings resolved once at startup.
"""

from common.config.base_settings import AuthSettings, load_settings

__all__ = ["AuthSettings", "load_settings"]

"""Configuration management."""

from .manager import ConfigManager, ConfigValidationError, DEFAULT_PRIVATE_KEY_ENV

__all__ = [
    'ConfigManager',
    'ConfigValidationError',
    'DEFAULT_PRIVATE_KEY_ENV',
]

"""
Logging for Ocean Trading Bot.

Structured JSON logging with rotation, plus redaction of registered
secrets on every installed handler.
"""

from .logger import (
    LoggerManager,
    StructuredFormatter,
    SecretRedactingFilter,
    initialize_logging,
    register_secret,
    clear_secrets,
    REDACTED,
)

__all__ = [
    'LoggerManager',
    'StructuredFormatter',
    'SecretRedactingFilter',
    'initialize_logging',
    'register_secret',
    'clear_secrets',
    'REDACTED',
]

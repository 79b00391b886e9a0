"""Common utilities for iwd_trim."""

from .config import ConfigLoader
from .logging import setup_logging, LogContext
from .logging_config import LoggingConfig
from .errors import IwdTrimError, ConfigurationError

__all__ = [
    'ConfigLoader',
    'LoggingConfig',
    'setup_logging',
    'LogContext',
    'IwdTrimError',
    'ConfigurationError',
]

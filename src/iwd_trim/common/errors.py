"""Base error definitions for iwd_trim."""

from typing import Any, Dict


class IwdTrimError(Exception):
    """Base exception for all iwd_trim errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context


class ConfigurationError(IwdTrimError):
    """Configuration is invalid or cannot be loaded."""
    pass

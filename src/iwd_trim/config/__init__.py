"""Configuration schema."""

from .schema import ProcessingConfig, RemovalPolicyConfig, TrimConfig

__all__ = [
    'ProcessingConfig',
    'RemovalPolicyConfig',
    'TrimConfig',
]
